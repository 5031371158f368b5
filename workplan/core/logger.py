"""
Logging setup shared by services and repositories.
"""

import logging
import sys

from workplan.core.config import get_settings

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """
    Get a module logger writing to stdout.

    Handlers are attached once per logger name so repeated imports do not
    duplicate output.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(get_settings().LOG_LEVEL.upper())
    return logger
