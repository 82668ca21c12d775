"""State parameter helpers for the loopback OAuth flow.

The *state* parameter protects the user against CSRF: a value generated for
this attempt only is sent to the authorization endpoint and must come back
unchanged on the redirect.  Nothing is persisted; the expected value lives in
memory for the lifetime of a single login attempt.

Logging
-------
Only a short prefix of the state is ever logged; the full value never is.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from typing import Final

_LOG = logging.getLogger("gsc-cli.auth.state")

_STATE_BYTES: Final[int] = 24


def generate_state(nbytes: int = _STATE_BYTES) -> str:
    """Return a fresh URL-safe random state value.

    Parameters
    ----------
    nbytes:
        Entropy in bytes; at least 16.
    """
    if nbytes < 16:
        raise ValueError("state needs at least 16 bytes of entropy")
    state = secrets.token_urlsafe(nbytes)
    _LOG.debug("Generated state %s****", state[:4])
    return state


def state_matches(expected: str, received: str | None) -> bool:
    """Constant-time comparison of the state echoed back by the provider."""
    if not received:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))
