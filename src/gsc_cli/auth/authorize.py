"""Authorization URL construction for the loopback flow."""

from __future__ import annotations

import logging
from urllib.parse import urlencode, urlsplit

from gsc_cli.auth.errors import ConfigurationError
from gsc_cli.auth.models import ClientCredentials

_LOG = logging.getLogger("gsc-cli.auth.authorize")


def build_authorization_url(
    credentials: ClientCredentials, *, redirect_uri: str, state: str
) -> str:
    """Return the provider consent URL for one login attempt.

    ``access_type=offline`` asks for a refresh token and ``prompt=consent``
    forces the consent screen every time; the provider only reliably
    re-issues a refresh token when consent is forced.

    Raises
    ------
    ConfigurationError
        If the credentials are incomplete or the redirect URI is not an
        absolute http(s) URL.
    """
    credentials.validate()
    parts = urlsplit(redirect_uri)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigurationError(f"invalid redirect URI: {redirect_uri!r}")
    if not state:
        raise ConfigurationError("state must not be empty")

    query_params: dict[str, str] = {
        "client_id": credentials.client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": credentials.scope,
        "state": state,
        "access_type": "offline",
        "prompt": "consent",
    }
    separator = "&" if "?" in credentials.auth_uri else "?"
    url = f"{credentials.auth_uri}{separator}{urlencode(query_params)}"
    _LOG.debug("Built authorization URL redirect_uri=%s", redirect_uri)
    return url
