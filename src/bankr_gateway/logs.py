import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """
    Configure the package logger with a single stderr handler.

    Safe to call more than once; the handler is installed only the first time.

    Args:
        level: Level name ("DEBUG", "info", ...) or number.

    Returns:
        logging.Logger: The ``bankr_gateway`` logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("bankr_gateway")
    logger.setLevel(level)
    if not any(getattr(h, "_bankr_gateway", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._bankr_gateway = True
        logger.addHandler(handler)
    return logger
