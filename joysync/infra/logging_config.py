"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from joysync.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_LOGGER_NAME = "joysync"


class LoggingConfig:
    """Configure the root handler once; later instances only adjust the level."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        settings = get_settings()
        self.level = (level or settings.log_level or "INFO").upper()
        self._configure()

    def _configure(self) -> None:
        numeric_level = logging.getLevelName(self.level)
        if not isinstance(numeric_level, int):
            numeric_level = logging.INFO
        root = logging.getLogger()
        if not LoggingConfig._configured:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(handler)
            LoggingConfig._configured = True
        root.setLevel(numeric_level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the joysync namespace."""
    if not name:
        return logging.getLogger(DEFAULT_LOGGER_NAME)
    if name.startswith(DEFAULT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{DEFAULT_LOGGER_NAME}.{name}")
