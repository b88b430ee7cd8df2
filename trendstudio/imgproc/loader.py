"""Async download of images referenced by URL."""

from __future__ import annotations

import logging
import urllib.parse

import httpx

from trendstudio.config.settings import Settings
from trendstudio.imgproc.decode import ImageLoadError

USER_AGENT = "TrendStudioPalette/1.0"

logger = logging.getLogger(__name__)


class ImageFetchError(ImageLoadError):
    """Raised when an image cannot be downloaded."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ImageLoader:
    """Downloads image bytes with a timeout and a size cap."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_bytes: int = 10 * 1024 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._max_bytes = max_bytes
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageLoader":
        return cls(timeout=settings.image_fetch_timeout, max_bytes=settings.image_max_bytes)

    async def fetch(self, url: str) -> bytes:
        """Return the body of ``url`` or raise :class:`ImageFetchError`."""

        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in {"http", "https"} or not parsed.hostname:
            raise ImageFetchError(f"Only absolute http/https URLs are allowed: {url!r}")

        try:
            async with self._client.stream("GET", url) as response:
                response.raise_for_status()
                chunks: list[bytes] = []
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > self._max_bytes:
                        raise ImageFetchError(
                            f"Image at {url} exceeds {self._max_bytes} bytes.",
                            status_code=response.status_code,
                        )
                    chunks.append(chunk)
        except httpx.TimeoutException as exc:
            raise ImageFetchError(f"Timed out fetching {url}.") from exc
        except httpx.HTTPStatusError as exc:
            raise ImageFetchError(
                f"Image host returned {exc.response.status_code} for {url}.",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ImageFetchError(f"Failed to fetch {url}: {exc}") from exc

        logger.debug("Fetched %d bytes from %s", received, url)
        return b"".join(chunks)

    async def close(self) -> None:
        """Close the underlying HTTP client."""

        await self._client.aclose()
