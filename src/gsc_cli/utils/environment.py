"""Typed accessors for environment variables."""

import logging
import os
from typing import Final, Tuple

logger = logging.getLogger("gsc-cli.utils.environment")

_TRUTHY: Final[Tuple[str, ...]] = ("true", "1", "yes", "y", "on")


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def env_str(name: str, default: str | None = None) -> str | None:
    """Return the stripped value of *name*, or *default* when unset or blank."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def env_bool(name: str, default: bool = False) -> bool:
    """Interpret *name* as a flag; unset means *default*."""
    value = os.getenv(name)
    if value is None:
        return default
    return _truthy(value)


def env_float(name: str, default: float) -> float:
    """Parse *name* as a positive number, falling back to *default*.

    Invalid values are logged and ignored rather than aborting start-up.
    """
    raw = env_str(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value
