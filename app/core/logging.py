"""
Centralized logging configuration for the try-merge service.

Usage:
    from app.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Try merge completed for %s", job_key)
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers that only matter when something is broken
NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "uvicorn.access",
    "sqlalchemy.engine",
    "aiosqlite",
)


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger.

    Called once from the application lifespan, before any try-merge task
    is scheduled.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown values fall back to INFO.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the logger for ``name`` (typically the caller's ``__name__``)."""
    return logging.getLogger(name)
