import logging
import os
import sys

LOGGER_NAME = "tracksmith"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(level=None):
    """
    Configure the shared "tracksmith" logger.
    Console level comes from TRACKSMITH_LOG_LEVEL (default INFO).
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    if level is None:
        level = os.environ.get("TRACKSMITH_LOG_LEVEL", "INFO").upper()

    # Console Handler
    if not logger.handlers:
        ch = logging.StreamHandler(sys.stdout)
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(ch)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger


logger = setup_logger()
