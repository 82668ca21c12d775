"""Authentication core package.

Loopback OAuth 2.0 login against Google and lifecycle management of the
resulting credential (secure storage, expiry detection, lazy refresh).

Sub-modules
-----------
clock
    Test-friendly time abstraction.
state
    Anti-forgery ``state`` generation and comparison.
models
    Immutable dataclasses for client credentials, attempts and tokens.
errors
    Exception taxonomy surfaced to the CLI.
log_utils
    Structured logging helpers (thin wrapper around :pymod:`logging`).
store
    Keyring-backed and in-memory credential stores.
authorize
    Consent URL construction.
browser
    Best-effort browser launch.
callback_server
    Single-use loopback redirect target.
exchange
    Token endpoint round-trips (code exchange and refresh).
service
    :class:`AuthService`, the entry point used by the rest of the program.

All public objects are re-exported here for convenience.
"""

from __future__ import annotations

from .clock import Clock, default_clock  # noqa: F401
from .state import generate_state, state_matches  # noqa: F401
from .models import (  # noqa: F401
    AuthAttempt,
    CallbackResult,
    ClientCredentials,
    Token,
    TokenInfo,
)
from .errors import (  # noqa: F401
    AuthError,
    AuthorizationDenied,
    AuthorizationTimeoutError,
    ConfigurationError,
    ExchangeError,
    NotAuthenticated,
    RefreshFailed,
    StorageError,
)
from .log_utils import get_auth_logger  # noqa: F401
from .store import (  # noqa: F401
    CredentialStore,
    KeyringCredentialStore,
    MemoryCredentialStore,
    default_store,
)
from .authorize import build_authorization_url  # noqa: F401
from .browser import open_browser  # noqa: F401
from .callback_server import LoopbackCallbackServer  # noqa: F401
from .exchange import TokenExchanger  # noqa: F401
from .service import AuthService  # noqa: F401

__all__ = [
    # clock
    "Clock",
    "default_clock",
    # state
    "generate_state",
    "state_matches",
    # models
    "AuthAttempt",
    "CallbackResult",
    "ClientCredentials",
    "Token",
    "TokenInfo",
    # errors
    "AuthError",
    "AuthorizationDenied",
    "AuthorizationTimeoutError",
    "ConfigurationError",
    "ExchangeError",
    "NotAuthenticated",
    "RefreshFailed",
    "StorageError",
    # logging helpers
    "get_auth_logger",
    # storage
    "CredentialStore",
    "KeyringCredentialStore",
    "MemoryCredentialStore",
    "default_store",
    # flow components
    "build_authorization_url",
    "open_browser",
    "LoopbackCallbackServer",
    "TokenExchanger",
    "AuthService",
]
