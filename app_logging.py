"""Application logging setup."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from settings_manager import get_settings_dir

_LOG_FILE_NAME = "notention.log"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure the ``notention`` logger: rotating file in the settings dir plus stderr."""
    logger = logging.getLogger("notention")
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        handler = RotatingFileHandler(
            os.path.join(get_settings_dir(), _LOG_FILE_NAME),
            maxBytes=1_048_576,
            backupCount=5,
            encoding="utf-8",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    except OSError:
        handler = None

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if handler is not None:
        logger.info("Logger initialised; logs available at %s", handler.baseFilename)
    return logger
