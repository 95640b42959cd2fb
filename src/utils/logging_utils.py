"""Logging setup for the planetary climate packages."""

import logging
import os
import sys
from typing import Optional

PACKAGE_LOGGER = "src.planetary_climate"
LOG_LEVEL_ENV = "PLANETARY_CLIMATE_LOG_LEVEL"

# Library code stays silent unless the host configures logging
logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Args:
        level: Level name such as "DEBUG". Falls back to the
            PLANETARY_CLIMATE_LOG_LEVEL environment variable, then "INFO".

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    level_name = (level or os.getenv(LOG_LEVEL_ENV, "INFO")).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.NullHandler)
           for h in logger.handlers):
        return logger  # already configured

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    logger.debug("Logger configured with level %s", level_name)
    return logger
