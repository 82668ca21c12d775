"""Exception types raised by the auth core.

Only lightweight, **data-carrying** exceptions live here so that the CLI layer
can turn them into user-facing messages and exit codes.  None of them ever
carries a token, authorization code or client secret.
"""

from __future__ import annotations

from typing import Any


class AuthError(RuntimeError):
    """Base class for every classified authentication failure."""

    code: str = "auth_error"
    default_message: str = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-serialisable payload **without secrets**."""
        return {"error": self.code, "message": str(self)}


class ConfigurationError(AuthError):
    """Client credentials or settings are missing or malformed."""

    code = "configuration_error"
    default_message = "OAuth client configuration is invalid."


class AuthorizationDenied(AuthError):
    """The provider redirected back with an explicit ``error`` parameter."""

    code = "authorization_denied"

    def __init__(self, reason: str) -> None:
        super().__init__(f"authorization failed: {reason}")
        self.reason = reason

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["reason"] = self.reason
        return payload


class ExchangeError(AuthError):
    """The authorization code could not be exchanged for a token."""

    code = "exchange_failed"
    default_message = "Could not exchange authorization code."


class AuthorizationTimeoutError(AuthError):
    """No callback arrived before the login deadline."""

    code = "authorization_timeout"

    def __init__(self, timeout_seconds: float) -> None:
        minutes = timeout_seconds / 60
        if timeout_seconds % 60 == 0:
            window = f"{int(minutes)} minute{'s' if minutes != 1 else ''}"
        else:
            window = f"{timeout_seconds:g} seconds"
        super().__init__(f"authorization timed out after {window}")
        self.timeout_seconds = timeout_seconds

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["timeout_seconds"] = self.timeout_seconds
        return payload


class NotAuthenticated(AuthError):
    """Nothing is stored yet; the user has to log in first."""

    code = "not_authenticated"
    default_message = "not logged in - run 'gsc auth login' first"


class RefreshFailed(AuthError):
    """The stored refresh token was rejected (revoked, expired grant...)."""

    code = "refresh_failed"
    default_message = "could not refresh token - run 'gsc auth login' again"


class StorageError(AuthError):
    """The OS secure storage backend failed or holds an unreadable record."""

    code = "storage_error"
    default_message = "secure credential storage is unavailable"
