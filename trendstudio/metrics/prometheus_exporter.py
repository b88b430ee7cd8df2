"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter


palette_extraction_total = Counter(
    "palette_extraction_total",
    "Total number of brand palette extraction requests.",
)

palette_fallback_total = Counter(
    "palette_fallback_total",
    "Extractions that returned the fallback palette.",
    ["reason"],
)
