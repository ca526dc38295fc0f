"""Loguru configuration shared by the CLI and long-running consumers."""

from __future__ import annotations

import sys

from loguru import logger

from .config import Settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "[{extra[topic]}][{extra[action]}] {message}"
)


def configure_logging(settings: Settings) -> int:
    """Route every component log through a single stderr sink.

    Components log with ``logger.bind(topic=..., action=...)``; records emitted
    without those keys fall back to ``-`` so the format never fails.
    Returns the loguru handler id so callers can remove it again.
    """

    logger.remove()
    logger.configure(extra={"topic": "-", "action": "-"})
    return logger.add(
        sys.stderr,
        level=settings.effective_log_level,
        format=LOG_FORMAT,
        backtrace=settings.debug,
        diagnose=settings.debug,
    )
