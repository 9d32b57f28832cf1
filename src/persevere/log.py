"""Logging helpers for the ``persevere`` logger hierarchy.

persevere only emits records; applications decide where they go. For quick
setups, configure_logging() attaches a stderr handler to the package logger:

    >>> configure_logging("INFO")
    2026-01-03 10:30:45,120 INFO persevere.executor [fetch_quote] Retry 1 after 0.50s (error: TimeoutError: ...)
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from .settings import get_settings

LOGGER_NAME = "persevere"
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | int | None = None, stream: TextIO | None = None) -> logging.Logger:
    """Attach a single stream handler to the ``persevere`` logger.

    Args:
        level: Level name or number (default: ``PERSEVERE_LOG_LEVEL``, WARNING)
        stream: Output stream (default: stderr)
    """
    resolved = level if level is not None else get_settings().log_level
    if isinstance(resolved, str):
        resolved = logging.getLevelNamesMapping().get(resolved.upper(), logging.WARNING)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolved)
    for handler in [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return logger
