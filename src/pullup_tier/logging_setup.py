"""Loguru sink configuration for the CLI and the scheduler."""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """
    Replace loguru's default sink.

    Args:
        level: Minimum level for the stderr sink
        log_file: Optional file sink (DEBUG, rotated daily, kept 30 days)
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            rotation="1 day",
            retention="30 days",
            level="DEBUG",
        )
