# pitwall/core/logging.py
"""Logging setup shared by every module."""
import logging
import sys

from pitwall.config import get_settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger once for the whole application.

    Args:
        level: Log level name; defaults to the configured ``log_level``
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    if settings.debug:
        level_name = "DEBUG"

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
    )

    # uvicorn's access log is noisy at 20 Hz polling
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""
    return logging.getLogger(name)
