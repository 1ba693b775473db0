"""Logging setup for the sweet-spot CLI."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "sweet_spot"


def resolve_level(level: str | int | None, *, default: int = logging.WARNING) -> int:
    if isinstance(level, int):
        return level
    name = (level or "").strip().upper()
    if not name:
        return default
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level}")
    return resolved


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach one stderr handler to the package logger; safe to call repeatedly."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(resolve_level(level))
    for handler in list(logger.handlers):
        if getattr(handler, "_sweet_spot_handler", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._sweet_spot_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = False
    return logger
