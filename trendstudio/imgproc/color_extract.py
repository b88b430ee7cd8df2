"""Dominant colour extraction utilities."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from trendstudio.config.settings import Settings

logger = logging.getLogger(__name__)

FALLBACK_PALETTE: tuple[str, ...] = (
    "#3b82f6",  # blue-500
    "#1d4ed8",  # blue-700
    "#8b5cf6",  # violet-500
    "#06b6d4",  # cyan-500
    "#10b981",  # emerald-500
)

BYTES_PER_PIXEL = 4

RGB = tuple[int, int, int]


@dataclass(slots=True)
class ColorGroup:
    """Running-average cluster of similar pixels."""

    color: list[int]
    count: int = 1

    def absorb(self, pixel: RGB) -> None:
        """Add ``pixel`` to the group and move the center towards it."""

        self.count += 1
        self.color = [
            _round_half_up((channel * (self.count - 1) + value) / self.count)
            for channel, value in zip(self.color, pixel)
        ]


@dataclass(slots=True)
class ExtractionResult:
    """Palette together with a flag telling whether it is the fallback."""

    colors: list[str]
    fallback: bool


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def color_distance(first: Sequence[int], second: Sequence[int]) -> float:
    """Euclidean distance between two RGB colours."""

    return math.sqrt(
        (first[0] - second[0]) ** 2
        + (first[1] - second[1]) ** 2
        + (first[2] - second[2]) ** 2
    )


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Pack channel bytes into a lowercase ``#rrggbb`` string."""

    return f"#{r:02x}{g:02x}{b:02x}"


def get_fallback_colors() -> list[str]:
    """Palette used when nothing could be extracted from an image."""

    return list(FALLBACK_PALETTE)


class ColorExtractor:
    """First-fit RGB clustering over a sampled RGBA buffer.

    Pixels are grouped with the first existing cluster whose center lies
    closer than ``distance_threshold``; centers follow the running mean of
    their members. This is order-dependent and intentionally not k-means.
    """

    def __init__(
        self,
        *,
        sample_stride: int = 10,
        distance_threshold: float = 50.0,
        alpha_cutoff: int = 128,
    ) -> None:
        if sample_stride < 1:
            raise ValueError("sample_stride must be a positive integer.")
        self.sample_stride = sample_stride
        self.distance_threshold = distance_threshold
        self.alpha_cutoff = alpha_cutoff

    @classmethod
    def from_settings(cls, settings: Settings) -> "ColorExtractor":
        return cls(
            sample_stride=settings.palette_sample_stride,
            distance_threshold=settings.palette_distance_threshold,
            alpha_cutoff=settings.palette_alpha_cutoff,
        )

    def sample_pixels(self, pixels: Sequence[int]) -> list[RGB]:
        """Return opaque RGB samples taken every ``sample_stride`` pixels."""

        step = self.sample_stride * BYTES_PER_PIXEL
        samples: list[RGB] = []
        for offset in range(0, len(pixels) - BYTES_PER_PIXEL + 1, step):
            if pixels[offset + 3] > self.alpha_cutoff:
                samples.append((pixels[offset], pixels[offset + 1], pixels[offset + 2]))
        return samples

    def group_colors(self, samples: Sequence[RGB], max_groups: int) -> list[ColorGroup]:
        """Cluster samples into at most ``max_groups`` groups, largest first."""

        groups: list[ColorGroup] = []
        for pixel in samples:
            for group in groups:
                if color_distance(pixel, group.color) < self.distance_threshold:
                    group.absorb(pixel)
                    break
            else:
                if len(groups) < max_groups:
                    groups.append(ColorGroup(color=list(pixel)))

        groups.sort(key=lambda group: group.count, reverse=True)
        return groups

    def extract(self, pixels: Sequence[int], max_colors: int = 5) -> ExtractionResult:
        """Run the extraction and report whether the fallback palette was used."""

        if max_colors < 1:
            logger.warning("max_colors=%s is below 1; extracting a single colour.", max_colors)
            max_colors = 1

        samples = self.sample_pixels(pixels)
        if not samples:
            return ExtractionResult(colors=get_fallback_colors(), fallback=True)

        groups = self.group_colors(samples, max_colors)
        logger.debug("Grouped %d samples into %d colour groups.", len(samples), len(groups))
        colors = [rgb_to_hex(*group.color) for group in groups[:max_colors]]
        return ExtractionResult(colors=colors, fallback=False)

    def extract_dominant_colors(self, pixels: Sequence[int], max_colors: int = 5) -> list[str]:
        """Return hex codes of the dominant colours in an RGBA buffer.

        Falls back to :data:`FALLBACK_PALETTE` when no opaque pixel was sampled.
        """

        return self.extract(pixels, max_colors).colors
