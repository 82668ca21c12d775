"""Structured logging helpers for the auth core.

This module restricts **which** contextual attributes are attached to log
records so that secrets cannot leak by accident.  Helpers ONLY inject the
following *non-sensitive* fields:

- ``attempt_id`` – identifier of the login attempt (first 6 chars kept)
- ``port``       – loopback port bound for the attempt
- ``client_id``  – OAuth client id, masked down to its last 6 characters

Usage
-----
>>> from gsc_cli.auth.log_utils import get_auth_logger
>>> log = get_auth_logger(attempt_id="3f2a9c81d0e24b6c", port=53124)
>>> log.info("Waiting for callback")

The adapter is a thin wrapper around :class:`logging.LoggerAdapter`.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, MutableMapping

from gsc_cli.utils.logging import mask_sensitive


class _AuthLoggerAdapter(logging.LoggerAdapter):
    """Inject whitelisted auth context into log records."""

    extra_keys = ("attempt_id", "port", "client_id")

    def __init__(self, logger: logging.Logger, extra: Mapping[str, Any] | None = None):
        extra_clean: MutableMapping[str, Any] = {}
        for k in self.extra_keys:
            if not extra or extra.get(k) is None:
                continue
            if k == "attempt_id":
                extra_clean[k] = str(extra[k])[:6]
            elif k == "client_id":
                extra_clean[k] = mask_sensitive(str(extra[k]), 6, from_end=True)
            else:
                extra_clean[k] = extra[k]
        super().__init__(logger, extra_clean)

    def process(self, msg: str, kwargs: MutableMapping[str, Any]):
        if "extra" not in kwargs or kwargs["extra"] is None:
            kwargs["extra"] = {}
        # call-site extras take precedence
        for k, v in self.extra.items():
            kwargs["extra"].setdefault(k, v)
        return msg, kwargs


def get_auth_logger(
    *,
    base_logger_name: str = "gsc-cli.auth",
    attempt_id: str | None = None,
    port: int | None = None,
    client_id: str | None = None,
) -> logging.LoggerAdapter:
    """Return a LoggerAdapter pre-filled with auth context."""
    logger = logging.getLogger(base_logger_name)
    return _AuthLoggerAdapter(
        logger,
        {"attempt_id": attempt_id, "port": port, "client_id": client_id},
    )
