"""
Logging setup shared by services.
"""

import logging
import sys

from autoschedule.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str, level: str | None = None) -> logging.Logger:
    """
    Configure and return a named logger.

    Args:
        name: Logger name (usually __name__)
        level: Level override; defaults to LOG_LEVEL from settings

    Returns:
        Logger with a single console handler
    """
    logger = logging.getLogger(name)
    logger.setLevel(level or get_settings().LOG_LEVEL)

    # Prevent duplicate handlers if called multiple times
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    return logger
