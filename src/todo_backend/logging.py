"""Logging helpers for the todo backend.

All output goes to stderr so the stdio tool transport keeps stdout for
protocol frames.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Union

_PACKAGE_LOGGER_NAME = "todo_backend"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_CONFIGURED = False


def _qualify(name: Optional[str]) -> str:
    if not name:
        return _PACKAGE_LOGGER_NAME
    if name.startswith(_PACKAGE_LOGGER_NAME):
        return name
    return f"{_PACKAGE_LOGGER_NAME}.{name}"


# PUBLIC_INTERFACE
def configure_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """Install a single stderr handler on the package logger and set its level."""
    global _CONFIGURED

    logger = logging.getLogger(_PACKAGE_LOGGER_NAME)
    if not _CONFIGURED:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
        _CONFIGURED = True
    logger.setLevel(level)
    return logger


# PUBLIC_INTERFACE
def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger scoped to the package namespace."""
    return logging.getLogger(_qualify(name))
