import logging
import os
import sys

LOGGER_NAME = "PySoundboard"


def setup_logger(level=None):
    logger = logging.getLogger(LOGGER_NAME)
    if level is None:
        level = os.environ.get("PYSOUNDBOARD_LOG_LEVEL", "DEBUG").upper()
    logger.setLevel(level)

    # Console Handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(logging.DEBUG)

    # Formatter
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    ch.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(ch)

    return logger


logger = setup_logger()
