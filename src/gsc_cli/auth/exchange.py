"""Token endpoint round-trips: code exchange and refresh.

Each call performs exactly one POST to the provider's token endpoint and never
retries; a failed exchange is terminal for that call and the caller decides
whether to restart the login or ask the user to re-authenticate.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Callable, Final

import requests

from gsc_cli.auth.clock import Clock, default_clock
from gsc_cli.auth.errors import AuthError, ExchangeError, RefreshFailed
from gsc_cli.auth.models import ClientCredentials, Token

_LOG = logging.getLogger("gsc-cli.auth.exchange")

_DEFAULT_EXPIRES_IN: Final[int] = 3600
_TIMEOUT: Final[tuple[int, int]] = (5, 20)


def _provider_error(resp: requests.Response) -> str:
    """Best human-readable error from a failed token response, no secrets."""
    try:
        data = resp.json()
    except ValueError:
        return f"token endpoint returned {resp.status_code}: {resp.text[:200]}"
    if isinstance(data, dict) and data.get("error"):
        detail = data.get("error_description")
        err = f"{data['error']}: {detail}" if detail else str(data["error"])
        return f"token endpoint returned {resp.status_code}: {err}"
    return f"token endpoint returned {resp.status_code}"


class TokenExchanger:
    """Talks to the provider token endpoint on behalf of :class:`AuthService`."""

    def __init__(
        self,
        *,
        post: Callable[..., requests.Response] | None = None,
        clock: Clock = default_clock,
    ) -> None:
        # resolved at call time so tests can monkeypatch ``requests.post``
        self._post = post
        self.clock = clock

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def exchange_code(
        self, credentials: ClientCredentials, *, code: str, redirect_uri: str
    ) -> Token:
        """Swap an authorization code for a token.

        ``redirect_uri`` must be byte-identical to the one sent in the
        authorization request.
        """
        if not code:
            raise ExchangeError("could not exchange authorization code: empty code")
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
        }
        token = self._request(credentials, payload, ExchangeError, "could not exchange authorization code")
        _LOG.info(
            "Exchanged authorization code (expires %s, refresh token %s)",
            token.expiry.isoformat(),
            "present" if token.refresh_token else "absent",
        )
        return token

    def refresh(self, credentials: ClientCredentials, *, refresh_token: str | None) -> Token:
        """Mint a new access token from *refresh_token*.

        The returned token's ``refresh_token`` is whatever the provider sent;
        callers merge it with the previous one.
        """
        if not refresh_token:
            raise RefreshFailed("could not refresh token: no refresh token stored - run 'gsc auth login' again")
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
        }
        token = self._request(credentials, payload, RefreshFailed, "could not refresh token")
        _LOG.info("Refreshed access token (expires %s)", token.expiry.isoformat())
        return token

    # ---------------- internal helpers --------------------------------- #
    def _request(
        self,
        credentials: ClientCredentials,
        payload: dict[str, str],
        error_cls: type[AuthError],
        context: str,
    ) -> Token:
        post = self._post or requests.post
        try:
            resp = post(credentials.token_uri, data=payload, timeout=_TIMEOUT)
        except requests.RequestException as exc:
            raise error_cls(f"{context}: {exc}") from exc

        if not resp.ok:
            raise error_cls(f"{context}: {_provider_error(resp)}")

        try:
            data: Any = resp.json()
        except ValueError:
            raise error_cls(f"{context}: token endpoint returned invalid JSON") from None
        if not isinstance(data, dict):
            raise error_cls(f"{context}: token endpoint returned invalid JSON")
        return self._parse_token(data, error_cls, context)

    def _parse_token(
        self, data: dict[str, Any], error_cls: type[AuthError], context: str
    ) -> Token:
        access_token = data.get("access_token")
        if not access_token:
            raise error_cls(f"{context}: token response missing access_token")
        try:
            expires_in = int(data.get("expires_in") or _DEFAULT_EXPIRES_IN)
        except (TypeError, ValueError):
            raise error_cls(f"{context}: token response has invalid expires_in") from None

        return Token(
            access_token=access_token,
            expiry=self.clock() + timedelta(seconds=expires_in),
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token") or None,
        )
