"""
Logging configuration for the beaconelo package.

Library modules only create loggers (logging.getLogger(__name__)); the host
process calls setup_logging() once at startup to decide where they go.
"""

from __future__ import annotations

import json
import logging
import sys

PACKAGE_LOGGER = "beaconelo"

CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, so player names and tracebacks are escaped."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _make_formatter(format_style: str) -> logging.Formatter:
    if format_style == "console":
        return logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT)
    if format_style == "json":
        return JsonLineFormatter(datefmt=DATE_FORMAT)
    raise ValueError(f"format_style must be one of ['console', 'json'], got '{format_style}'")


def setup_logging(level: str | int = logging.INFO, format_style: str = "console") -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Logging level name or number. Defaults to logging.INFO.
        format_style: "console" or "json". Defaults to "console".

    Returns:
        The configured "beaconelo" logger.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    formatter = _make_formatter(format_style)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger
