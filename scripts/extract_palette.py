"""Print the dominant colours of a local image or an image URL."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Iterable, Sequence

from trendstudio.config.settings import get_settings
from trendstudio.imgproc.color_extract import ColorExtractor
from trendstudio.imgproc.loader import ImageLoader
from trendstudio.monitoring.logging import configure_logging
from trendstudio.services.brand_kit import BrandKitService


def print_results(colors: Iterable[str]) -> None:
    for color in colors:
        print(color)


async def extract(source: str, max_colors: int | None) -> list[str]:
    settings = get_settings()
    service = BrandKitService(
        ImageLoader.from_settings(settings),
        ColorExtractor.from_settings(settings),
        default_max_colors=settings.palette_max_colors,
        max_pixels=settings.image_max_pixels,
    )
    try:
        if source.startswith(("http://", "https://")):
            return await service.extract_colors_from_image(source, max_colors)
        data = await asyncio.to_thread(Path(source).expanduser().read_bytes)
        return await service.extract_colors_from_bytes(data, max_colors)
    finally:
        await service.close()


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Extract a brand palette from an image.")
    parser.add_argument("source", help="Path to an image file or an http(s) URL.")
    parser.add_argument("--max-colors", type=int, default=None)
    args = parser.parse_args(argv)

    configure_logging()
    colors = asyncio.run(extract(args.source, args.max_colors))
    print_results(colors)


if __name__ == "__main__":
    main()
