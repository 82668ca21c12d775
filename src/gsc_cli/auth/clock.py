"""Clock abstraction for testable expiry handling in the auth core.

Every time-based decision inside :mod:`gsc_cli.auth` (token expiry, refresh,
attempt deadlines) goes through an injected ``Clock`` instead of calling
``datetime.now()`` directly, so tests can freeze or advance time.

Example
-------
>>> from gsc_cli.auth.clock import default_clock
>>> default_clock().tzinfo is not None
True
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Callable protocol returning the current time as an aware UTC datetime."""

    def __call__(self) -> datetime: ...


def default_clock() -> datetime:
    """Return ``datetime.now(timezone.utc)``."""
    return datetime.now(timezone.utc)
