# gendata/utils/logging.py
from __future__ import annotations

import logging
import os
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _level() -> int:
    name = os.getenv("GENDATA_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """
    Module logger with a single stderr handler.
    Level comes from GENDATA_LOG_LEVEL (default INFO); records do not propagate,
    so a configured root logger does not print them twice.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(_level())
        logger.propagate = False
    return logger
