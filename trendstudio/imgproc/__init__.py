"""Pixel acquisition and palette extraction."""

from .color_extract import (
    FALLBACK_PALETTE,
    ColorExtractor,
    ColorGroup,
    ExtractionResult,
    color_distance,
    get_fallback_colors,
    rgb_to_hex,
)
from .decode import DecodedImage, ImageDecodeError, ImageLoadError, decode_rgba
from .loader import ImageFetchError, ImageLoader

__all__ = [
    "FALLBACK_PALETTE",
    "ColorExtractor",
    "ColorGroup",
    "DecodedImage",
    "ExtractionResult",
    "ImageDecodeError",
    "ImageFetchError",
    "ImageLoadError",
    "ImageLoader",
    "color_distance",
    "decode_rgba",
    "get_fallback_colors",
    "rgb_to_hex",
]
