"""Logging configuration module."""

from __future__ import annotations

import logging

from trendstudio.config.settings import get_settings

# Libraries that log every download or image decode at INFO/DEBUG.
NOISY_LOGGERS = ("httpx", "httpcore", "PIL")


def configure_logging() -> None:
    """Configure the root logger and keep per-request library chatter at WARNING."""

    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
