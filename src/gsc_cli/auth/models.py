"""Typed, immutable records used by the auth core."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Final, Literal

from gsc_cli.auth.clock import Clock, default_clock
from gsc_cli.auth.errors import ConfigurationError, StorageError

SEARCH_CONSOLE_SCOPE: Final[str] = "https://www.googleapis.com/auth/webmasters.readonly"
GOOGLE_AUTH_URI: Final[str] = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI: Final[str] = "https://oauth2.googleapis.com/token"
DEFAULT_REDIRECT_TEMPLATE: Final[str] = "http://localhost:{port}/callback"


@dataclass(frozen=True, slots=True)
class ClientCredentials:
    """OAuth client descriptor, loaded once per process and passed explicitly."""

    client_id: str
    client_secret: str
    scope: str = SEARCH_CONSOLE_SCOPE
    redirect_uri_template: str = DEFAULT_REDIRECT_TEMPLATE
    auth_uri: str = GOOGLE_AUTH_URI
    token_uri: str = GOOGLE_TOKEN_URI
    project_id: str | None = None

    def __repr__(self) -> str:
        return (
            f"ClientCredentials(client_id={self.client_id!r}, "
            f"client_secret='****', scope={self.scope!r})"
        )

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` unless every field is usable."""
        missing = [
            name
            for name in ("client_id", "client_secret", "scope", "auth_uri", "token_uri")
            if not (getattr(self, name) or "").strip()
        ]
        if missing:
            raise ConfigurationError(
                f"client credentials missing: {', '.join(missing)}"
            )
        if "{port}" not in self.redirect_uri_template:
            raise ConfigurationError(
                "redirect URI template must contain a {port} placeholder"
            )

    def redirect_uri(self, port: int) -> str:
        """Render the redirect template for the port bound by this attempt."""
        return self.redirect_uri_template.format(port=port)

    @classmethod
    def from_client_secret_file(
        cls, path: str | Path, *, scope: str = SEARCH_CONSOLE_SCOPE
    ) -> "ClientCredentials":
        """Parse a Google ``client_secret.json`` (``installed`` or ``web``)."""
        p = Path(path).expanduser()
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise ConfigurationError(f"client secret file not found: {p}") from None
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"could not parse client secret: {exc}") from None

        section = None
        if isinstance(raw, dict):
            section = raw.get("installed") or raw.get("web")
        if not isinstance(section, dict):
            raise ConfigurationError(
                "could not parse client secret: expected an 'installed' or 'web' section"
            )

        creds = cls(
            client_id=section.get("client_id", ""),
            client_secret=section.get("client_secret", ""),
            scope=scope,
            auth_uri=section.get("auth_uri") or GOOGLE_AUTH_URI,
            token_uri=section.get("token_uri") or GOOGLE_TOKEN_URI,
            project_id=section.get("project_id"),
        )
        creds.validate()
        return creds


@dataclass(frozen=True, slots=True)
class AuthAttempt:
    """One browser login attempt. Lives only for the duration of ``login``."""

    state: str
    port: int
    redirect_uri: str
    timeout_seconds: float = 300.0
    created_at: datetime = field(default_factory=default_clock)

    @property
    def deadline(self) -> datetime:
        return self.created_at + timedelta(seconds=self.timeout_seconds)


Outcome = Literal["completed", "failed", "timed_out"]


@dataclass(frozen=True, slots=True)
class CallbackResult:
    """Terminal outcome of an :class:`AuthAttempt`."""

    outcome: Outcome
    code: str | None = None
    reason: str | None = None

    @classmethod
    def completed(cls, code: str) -> "CallbackResult":
        return cls("completed", code=code)

    @classmethod
    def failed(cls, reason: str) -> "CallbackResult":
        return cls("failed", reason=reason)

    @classmethod
    def timed_out(cls) -> "CallbackResult":
        return cls("timed_out")

    def __repr__(self) -> str:
        # the authorization code is a short-lived secret
        return f"CallbackResult(outcome={self.outcome!r}, reason={self.reason!r})"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class Token:
    """Snapshot of an OAuth access/refresh token pair."""

    access_token: str
    expiry: datetime
    token_type: str = "Bearer"
    refresh_token: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "expiry", _as_utc(self.expiry))

    def __repr__(self) -> str:
        return (
            f"Token(token_type={self.token_type!r}, expiry={self.expiry.isoformat()!r}, "
            f"has_refresh_token={self.refresh_token is not None})"
        )

    def is_expired(self, *, clock: Clock = default_clock) -> bool:
        """Return *True* if the expiry lies strictly before ``clock()``."""
        return self.expiry < clock()

    def with_fallback_refresh_token(self, previous: str | None) -> "Token":
        """Keep *previous* when the provider did not issue a new refresh token."""
        if self.refresh_token or not previous:
            return self
        return Token(
            access_token=self.access_token,
            expiry=self.expiry,
            token_type=self.token_type,
            refresh_token=previous,
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expiry": self.expiry.isoformat(),
            "token_type": self.token_type,
        }

    @classmethod
    def from_record(cls, data: Any) -> "Token":
        """Rebuild a token from its persisted form.

        Raises
        ------
        StorageError
            If the record is not a dict or any required field is unreadable.
        """
        if not isinstance(data, dict):
            raise StorageError("stored credential is corrupt: expected an object")
        access_token = data.get("access_token")
        expiry_raw = data.get("expiry")
        if not isinstance(access_token, str) or not access_token:
            raise StorageError("stored credential is corrupt: missing access_token")
        if not isinstance(expiry_raw, str):
            raise StorageError("stored credential is corrupt: missing expiry")
        try:
            expiry = datetime.fromisoformat(expiry_raw)
        except ValueError:
            raise StorageError("stored credential is corrupt: unreadable expiry") from None
        refresh_token = data.get("refresh_token")
        return cls(
            access_token=access_token,
            expiry=expiry,
            token_type=data.get("token_type") or "Bearer",
            refresh_token=refresh_token if isinstance(refresh_token, str) else None,
        )


@dataclass(frozen=True, slots=True)
class TokenInfo:
    """Read-only view of the stored credential returned by ``inspect``."""

    present: bool
    expiry: datetime | None = None
    is_expired: bool = False
    token_type: str | None = None

    @classmethod
    def absent(cls) -> "TokenInfo":
        return cls(present=False)
