"""
Logging helpers shared by the service modules
"""

import logging
import os
from typing import Optional


def _default_level() -> int:
    lvl = os.getenv("CANDIDATURE_LOG_LEVEL", "INFO").upper()
    return getattr(logging, lvl, logging.INFO)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger with a single stream handler attached."""
    logger = logging.getLogger(name or "candidatures")
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = os.getenv("CANDIDATURE_LOG_FORMAT", "%(asctime)s %(levelname)s %(name)s: %(message)s")
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)
        logger.setLevel(_default_level())
        logger.propagate = False
    return logger
