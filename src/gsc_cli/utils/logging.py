"""Logging setup and secret-masking helpers shared by the CLI and auth core."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

_ROOT_LOGGER_NAME = "gsc-cli"
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: int | str = logging.WARNING, stream: TextIO | None = None) -> logging.Logger:
    """Configure the ``gsc-cli`` logger hierarchy.

    Handlers are attached once; later calls only adjust the level.  Logs go to
    stderr so that stdout stays clean for command output.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def mask_sensitive(value: str | None, keep_chars: int = 4, *, from_end: bool = False) -> str:
    """Mask *value* keeping ``keep_chars`` characters visible.

    >>> mask_sensitive("abcdefgh", 2)
    'ab******'
    >>> mask_sensitive("abcdefgh", 2, from_end=True)
    '******gh'
    """
    if not value:
        return ""
    if keep_chars <= 0 or len(value) <= keep_chars:
        return "*" * len(value)
    hidden = "*" * (len(value) - keep_chars)
    if from_end:
        return hidden + value[-keep_chars:]
    return value[:keep_chars] + hidden
