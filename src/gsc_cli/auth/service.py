"""AuthService – credential lifecycle for the CLI.

This service is the only part of the auth core the rest of the program calls:

* :meth:`AuthService.login`           – browser consent via a loopback redirect
* :meth:`AuthService.get_valid_token` – lazy refresh before each API call
* :meth:`AuthService.inspect`         – read-only status, never refreshes
* :meth:`AuthService.logout`          – forget the stored credential

Client credentials are passed explicitly into every operation; the service
holds no global configuration.  **All secrets are redacted** from logs.
"""

from __future__ import annotations

import logging
import threading
import uuid
import webbrowser
from typing import Callable

from gsc_cli.auth.authorize import build_authorization_url
from gsc_cli.auth.browser import Echo, Opener, open_browser
from gsc_cli.auth.callback_server import DEFAULT_TIMEOUT, LoopbackCallbackServer
from gsc_cli.auth.clock import Clock, default_clock
from gsc_cli.auth.errors import (
    AuthorizationDenied,
    AuthorizationTimeoutError,
    NotAuthenticated,
)
from gsc_cli.auth.exchange import TokenExchanger
from gsc_cli.auth.log_utils import get_auth_logger
from gsc_cli.auth.models import AuthAttempt, ClientCredentials, Token, TokenInfo
from gsc_cli.auth.state import generate_state
from gsc_cli.auth.store import CredentialStore, default_store

_LOG = logging.getLogger("gsc-cli.auth.service")

ServerFactory = Callable[..., LoopbackCallbackServer]


class AuthService:
    """Application service orchestrating login, refresh and logout."""

    def __init__(
        self,
        store: CredentialStore | None = None,
        *,
        exchanger: TokenExchanger | None = None,
        clock: Clock = default_clock,
        opener: Opener | None = webbrowser.open,
        echo: Echo = print,
        callback_timeout: float = DEFAULT_TIMEOUT,
        server_factory: ServerFactory = LoopbackCallbackServer,
    ) -> None:
        self.store = store or default_store()
        self.clock = clock
        self.exchanger = exchanger or TokenExchanger(clock=clock)
        self.opener = opener
        self.echo = echo
        self.callback_timeout = callback_timeout
        self.server_factory = server_factory
        self._refresh_lock = threading.Lock()
        self.last_attempt: AuthAttempt | None = None

    # ------------------------------------------------------------------ #
    # Login                                                              #
    # ------------------------------------------------------------------ #
    def login(self, credentials: ClientCredentials) -> Token:
        """Run the browser consent flow and persist the resulting token.

        Raises
        ------
        ConfigurationError
            Invalid client credentials.
        AuthorizationDenied
            The provider redirected back with an error.
        AuthorizationTimeoutError
            No redirect arrived before ``callback_timeout``.
        ExchangeError
            The token endpoint rejected the authorization code.
        StorageError
            The token could not be written to secure storage.
        """
        credentials.validate()
        state = generate_state()
        attempt_id = uuid.uuid4().hex

        with self.server_factory(expected_state=state) as server:
            attempt = AuthAttempt(
                state=state,
                port=server.port,
                redirect_uri=credentials.redirect_uri(server.port),
                timeout_seconds=self.callback_timeout,
                created_at=self.clock(),
            )
            self.last_attempt = attempt
            log = get_auth_logger(
                base_logger_name="gsc-cli.auth.service",
                attempt_id=attempt_id,
                port=attempt.port,
                client_id=credentials.client_id,
            )
            url = build_authorization_url(
                credentials, redirect_uri=attempt.redirect_uri, state=state
            )
            if self.opener is None:
                self.echo("Open this URL in your browser to authorize:")
                self.echo(url)
                self.echo("")
            else:
                open_browser(url, echo=self.echo, opener=self.opener)

            log.info("Waiting up to %ss for authorization callback", attempt.timeout_seconds)
            result = server.wait(timeout=attempt.timeout_seconds)

        if result.outcome == "timed_out":
            log.warning("Authorization attempt timed out")
            raise AuthorizationTimeoutError(attempt.timeout_seconds)
        if result.outcome == "failed":
            log.warning("Authorization attempt failed: %s", result.reason)
            raise AuthorizationDenied(result.reason or "unknown error")

        token = self.exchanger.exchange_code(
            credentials, code=result.code or "", redirect_uri=attempt.redirect_uri
        )
        self.store.set(token)
        log.info("Login complete; credential stored")
        return token

    # ------------------------------------------------------------------ #
    # Token access & lazy refresh                                        #
    # ------------------------------------------------------------------ #
    def get_valid_token(self, credentials: ClientCredentials) -> Token:
        """Return a non-expired token, refreshing once if needed.

        Refresh is serialized within the process: a caller that waited on the
        lock re-reads the store and reuses a token another caller already
        refreshed.  On refresh failure the expired record stays in the store.
        """
        token = self.store.get()
        if token is None:
            raise NotAuthenticated()
        if not token.is_expired(clock=self.clock):
            return token

        with self._refresh_lock:
            latest = self.store.get()
            if latest is None:
                raise NotAuthenticated()
            if not latest.is_expired(clock=self.clock):
                return latest

            refreshed = self.exchanger.refresh(
                credentials, refresh_token=latest.refresh_token
            ).with_fallback_refresh_token(latest.refresh_token)
            self.store.set(refreshed)

        _LOG.info("Refreshed stored credential (expires %s)", refreshed.expiry.isoformat())
        return refreshed

    # ------------------------------------------------------------------ #
    # Introspection & logout                                             #
    # ------------------------------------------------------------------ #
    def inspect(self) -> TokenInfo:
        """Describe the stored credential without touching the network."""
        token = self.store.get()
        if token is None:
            return TokenInfo.absent()
        return TokenInfo(
            present=True,
            expiry=token.expiry,
            is_expired=token.is_expired(clock=self.clock),
            token_type=token.token_type,
        )

    def logout(self) -> None:
        """Delete the stored credential; succeeds when nothing is stored."""
        self.store.delete()
        _LOG.debug("Logged out")
