"""Secure storage for the single active OAuth credential.

This module introduces a *narrow* persistence interface
(:class:`CredentialStore`) and two implementations:

* :class:`KeyringCredentialStore` – OS secret storage through :pypi:`keyring`
  (macOS Keychain, Windows Credential Locker, Linux Secret Service).
* :class:`MemoryCredentialStore` – process-local, used by tests and
  throw-away sessions.

Design goals:

* **One slot** – exactly one credential is stored under a fixed
  ``(service, account)`` key; switching accounts means logout + login.
* **Atomicity** – a write is a single backend call replacing the whole blob,
  so a crash can never leave a half-updated token behind.
* **No plaintext files** – the blob only ever lives in the OS secret store.
* **Fail loudly** – an unreadable blob raises :class:`StorageError` instead of
  being mistaken for a different, valid-looking token.

Environment variables
---------------------
GSC_KEYRING_SERVICE
    Service name used by :func:`default_store`. Defaults to ``gsc-cli``.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Final, Protocol, runtime_checkable

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from gsc_cli.auth.errors import StorageError
from gsc_cli.auth.models import Token

_LOG = logging.getLogger("gsc-cli.auth.store")

DEFAULT_SERVICE: Final[str] = "gsc-cli"
DEFAULT_ACCOUNT: Final[str] = "oauth_token"

# --------------------------------------------------------------------------- #
# helpers                                                                     #
# --------------------------------------------------------------------------- #


def encode_token(token: Token) -> str:
    """Serialize *token* into the opaque blob handed to the backend."""
    return json.dumps(token.to_record(), separators=(",", ":"), sort_keys=True)


def decode_token(blob: str) -> Token:
    """Inverse of :func:`encode_token`; raises :class:`StorageError` on garbage."""
    try:
        data = json.loads(blob)
    except ValueError:
        raise StorageError("stored credential is corrupt: could not decode token") from None
    return Token.from_record(data)


# --------------------------------------------------------------------------- #
# public interface                                                            #
# --------------------------------------------------------------------------- #


@runtime_checkable
class CredentialStore(Protocol):
    """Minimal persistence contract for the active credential."""

    def get(self) -> Token | None: ...
    def set(self, token: Token) -> None: ...
    def delete(self) -> None: ...


# --------------------------------------------------------------------------- #
# Keyring implementation                                                      #
# --------------------------------------------------------------------------- #


class KeyringCredentialStore(CredentialStore):
    """OS keyring implementation of :class:`CredentialStore`."""

    def __init__(self, service: str = DEFAULT_SERVICE, account: str = DEFAULT_ACCOUNT) -> None:
        self.service = service
        self.account = account

    def get(self) -> Token | None:
        try:
            blob = keyring.get_password(self.service, self.account)
        except KeyringError as exc:
            raise StorageError(f"could not retrieve token from keyring: {exc}") from exc
        if blob is None:
            return None
        return decode_token(blob)

    def set(self, token: Token) -> None:
        blob = encode_token(token)
        try:
            keyring.set_password(self.service, self.account, blob)
        except KeyringError as exc:
            raise StorageError(f"could not store token in keyring: {exc}") from exc
        _LOG.debug("Stored credential service=%s account=%s", self.service, self.account)

    def delete(self) -> None:
        try:
            keyring.delete_password(self.service, self.account)
        except PasswordDeleteError:
            # nothing stored
            return
        except KeyringError as exc:
            raise StorageError(f"could not delete token from keyring: {exc}") from exc
        _LOG.debug("Deleted credential service=%s account=%s", self.service, self.account)


# --------------------------------------------------------------------------- #
# In-memory implementation                                                    #
# --------------------------------------------------------------------------- #


class MemoryCredentialStore(CredentialStore):
    """Keeps the encoded blob in memory, going through the same codec."""

    def __init__(self, token: Token | None = None) -> None:
        self._lock = threading.Lock()
        self._blob: str | None = encode_token(token) if token else None
        self.writes = 0

    def get(self) -> Token | None:
        with self._lock:
            blob = self._blob
        return decode_token(blob) if blob is not None else None

    def set(self, token: Token) -> None:
        blob = encode_token(token)
        with self._lock:
            self._blob = blob
            self.writes += 1

    def delete(self) -> None:
        with self._lock:
            self._blob = None


# --------------------------------------------------------------------------- #
# Convenience – default singleton                                            #
# --------------------------------------------------------------------------- #

_default_store: KeyringCredentialStore | None = None


def default_store() -> KeyringCredentialStore:
    """Return a process-wide singleton :class:`KeyringCredentialStore`."""
    global _default_store  # noqa: PLW0603
    if _default_store is None:
        _default_store = KeyringCredentialStore(
            service=os.getenv("GSC_KEYRING_SERVICE") or DEFAULT_SERVICE
        )
    return _default_store
