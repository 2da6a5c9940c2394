"""
QuerySmith - Logging Utilities
"""

import logging
import sys

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Request/response chatter from the engine client
TRANSPORT_LOGGERS = ("opensearch", "urllib3")


def resolve_level() -> int:
    """Level from QUERYSMITH_LOG_LEVEL, else by environment."""
    if settings.QUERYSMITH_LOG_LEVEL:
        level = logging.getLevelName(settings.QUERYSMITH_LOG_LEVEL)
        if isinstance(level, int):
            return level
    return logging.DEBUG if settings.QUERYSMITH_ENV == "dev" else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger writing to stdout at the configured level
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(resolve_level())

        # transport logs stay at WARNING even when ours are at DEBUG
        for transport in TRANSPORT_LOGGERS:
            logging.getLogger(transport).setLevel(logging.WARNING)

    return logger
