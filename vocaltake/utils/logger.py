import logging
import os
import sys

LOGGER_NAME = "VocalTake"


def setup_logger(level=None):
    """Configures the package logger. Level comes from VOCALTAKE_LOG_LEVEL when not given."""
    logger = logging.getLogger(LOGGER_NAME)
    level = level or os.environ.get("VOCALTAKE_LOG_LEVEL", "INFO")
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(handler)

    # Records reach our handler only; keep them out of the root logger.
    logger.propagate = False
    return logger

logger = setup_logger()
