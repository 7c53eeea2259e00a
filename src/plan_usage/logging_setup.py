"""loguru sinks for the command-line pollers."""

from __future__ import annotations

import sys

from loguru import logger

_TIME = "[{time:YYYY-MM-DDTHH:mm:ss.SSS!UTC}Z]"
INFO_FORMAT = _TIME + " {message}"
ERROR_FORMAT = _TIME + " ERROR: {message}"


def configure_logging(level: str = "INFO") -> None:
    """Send normal output to stdout and errors to stderr, with UTC timestamps."""
    logger.remove()
    logger.add(
        sys.stdout,
        level=level,
        format=INFO_FORMAT,
        filter=lambda record: record["level"].no < logger.level("ERROR").no,
    )
    logger.add(sys.stderr, level="ERROR", format=ERROR_FORMAT, backtrace=False)
