"""Logging configuration for the vocabulary service."""
from __future__ import annotations

import logging
import sys

from makonian.config import LoggingSettings

_HANDLER_NAME = "makonian-console"


def setup_logging(settings: LoggingSettings | None = None) -> None:
    """Configure the root logger once; repeated calls only adjust the level."""
    settings = settings or LoggingSettings()
    level = logging.getLevelName(settings.level)
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not any(handler.get_name() == _HANDLER_NAME for handler in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.set_name(_HANDLER_NAME)
        console_handler.setFormatter(logging.Formatter(settings.format))
        root_logger.addHandler(console_handler)

    # Set logging levels for third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured with level: %s", logging.getLevelName(level))
