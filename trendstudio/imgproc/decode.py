"""Decoding of raw image payloads into RGBA pixel buffers."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

from PIL import Image, UnidentifiedImageError


class ImageLoadError(RuntimeError):
    """Base class for failures while acquiring pixel data."""


class ImageDecodeError(ImageLoadError):
    """Raised when image bytes cannot be turned into pixels."""


@dataclass(slots=True, frozen=True)
class DecodedImage:
    """Row-major RGBA bitmap, 4 bytes per pixel."""

    width: int
    height: int
    pixels: bytes


def decode_rgba(data: bytes, *, max_pixels: int | None = None) -> DecodedImage:
    """Decode ``data`` with Pillow and return its RGBA bitmap."""

    if not data:
        raise ImageDecodeError("Image payload is empty.")

    try:
        with Image.open(BytesIO(data)) as img:
            width, height = img.size
            if max_pixels is not None and width * height > max_pixels:
                raise ImageDecodeError(
                    f"Image has {width * height} pixels, limit is {max_pixels}.",
                )
            rgba = img.convert("RGBA")
            pixels = rgba.tobytes()
    except ImageDecodeError:
        raise
    except UnidentifiedImageError as exc:
        raise ImageDecodeError("Unsupported or corrupt image data.") from exc
    except Image.DecompressionBombError as exc:
        raise ImageDecodeError(str(exc)) from exc
    except (OSError, ValueError) as exc:
        raise ImageDecodeError(f"Failed to decode image: {exc}") from exc
    except Exception as exc:
        # Pillow plugins also signal corrupt data with SyntaxError, NotImplementedError and others.
        raise ImageDecodeError(f"Failed to decode image ({type(exc).__name__}): {exc}") from exc

    return DecodedImage(width=width, height=height, pixels=pixels)
