"""Logging setup for the mononote CLI and background sync."""

import sys
from pathlib import Path

from loguru import logger


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Send logs to stderr, and optionally to a rotating file.

    The file sink always records DEBUG so a long-running ``sync --watch``
    leaves a trail of every pass, whatever the console level is.
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format="{level.icon} {message}")
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            rotation="1 MB",
            retention=3,
            format="{time:YYYY-MM-DD HH:mm:ss} {level: <8} {name}:{function} {message}",
        )
