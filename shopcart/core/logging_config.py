"""Logging setup shared by the cart client."""
from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("shopcart")

_configured = False


def setup_logging(level: str | int | None = None) -> logging.Logger:
    """Configure the package logger once.

    Level comes from the argument, then LOG_LEVEL, then INFO.
    """
    global _configured

    resolved = level or os.getenv("LOG_LEVEL", "INFO")
    if isinstance(resolved, str):
        resolved = logging.getLevelName(resolved.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO

    logger.setLevel(resolved)
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True
    return logger
