"""
HueSort Structured Logging
Centralized logging configuration using loguru.
"""
import sys
from typing import Optional

from loguru import logger

from huesort.config import config


def configure_logging(level: Optional[str] = None) -> None:
    """Replace loguru's default handler with a single structured stdout sink."""
    logger.remove()
    logger.add(
        sys.stdout,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}",
        level=level or config.LOG_LEVEL,
        serialize=False  # Set to True for JSON output
    )


def bind_batch(batch_id: str, **extra):
    """Logger carrying the batch id (and any extra fields) on every record."""
    return logger.bind(batch_id=batch_id, **extra)
