"""Tests for TokenExchanger code exchange and refresh round-trips."""

from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace
from typing import Any, Callable

import pytest
import requests

from gsc_cli.auth.errors import ExchangeError, RefreshFailed
from gsc_cli.auth.exchange import TokenExchanger
from gsc_cli.auth.models import ClientCredentials

REDIRECT_URI = "http://localhost:53124/callback"


def fake_response(status: int = 200, body: Any = None, text: str | None = None) -> SimpleNamespace:
    """Minimal stand-in for ``requests.Response``."""
    resp = SimpleNamespace()
    resp.ok = 200 <= status < 400
    resp.status_code = status
    resp.text = text if text is not None else str(body)

    def _json() -> Any:
        if text is not None:
            raise ValueError("no json")
        return body

    resp.json = _json
    return resp


def recording_post(response: SimpleNamespace, calls: list[dict[str, Any]]) -> Callable[..., Any]:
    def _post(url: str, *, data: dict, timeout: tuple[int, int]) -> SimpleNamespace:  # noqa: ANN001
        calls.append({"url": url, "data": data, "timeout": timeout})
        return response

    return _post


# --------------------------------------------------------------------------- #
# Code exchange                                                               #
# --------------------------------------------------------------------------- #
def test_exchange_code_posts_exact_redirect_uri(
    credentials: ClientCredentials, clock, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list[dict[str, Any]] = []
    resp = fake_response(
        body={
            "access_token": "tok1",
            "refresh_token": "ref1",
            "expires_in": 3600,
            "token_type": "Bearer",
        }
    )
    monkeypatch.setattr(requests, "post", recording_post(resp, calls), raising=True)

    token = TokenExchanger(clock=clock).exchange_code(
        credentials, code="AUTH123", redirect_uri=REDIRECT_URI
    )

    assert len(calls) == 1
    assert calls[0]["url"] == credentials.token_uri
    assert calls[0]["data"] == {
        "grant_type": "authorization_code",
        "code": "AUTH123",
        "redirect_uri": REDIRECT_URI,
        "client_id": "abc",
        "client_secret": "xyz",
    }
    assert token.access_token == "tok1"
    assert token.refresh_token == "ref1"
    assert token.token_type == "Bearer"
    assert token.expiry == clock() + timedelta(seconds=3600)


def test_exchange_defaults_expiry_and_type(credentials: ClientCredentials, clock) -> None:
    calls: list[dict[str, Any]] = []
    post = recording_post(fake_response(body={"access_token": "tok1"}), calls)

    token = TokenExchanger(post=post, clock=clock).exchange_code(
        credentials, code="c", redirect_uri=REDIRECT_URI
    )
    assert token.expiry == clock() + timedelta(hours=1)
    assert token.token_type == "Bearer"
    assert token.refresh_token is None


@pytest.mark.parametrize(
    "response, match",
    [
        (fake_response(400, {"error": "invalid_grant", "error_description": "Bad Request"}), "invalid_grant: Bad Request"),
        (fake_response(500, text="upstream exploded"), "500: upstream exploded"),
        (fake_response(200, text="<html>"), "invalid JSON"),
        (fake_response(200, ["not", "a", "dict"]), "invalid JSON"),
        (fake_response(200, {"token_type": "Bearer"}), "missing access_token"),
        (fake_response(200, {"access_token": "t", "expires_in": "soon"}), "expires_in"),
    ],
)
def test_exchange_failures_raise_exchange_error(
    credentials: ClientCredentials, clock, response: SimpleNamespace, match: str
) -> None:
    calls: list[dict[str, Any]] = []
    exchanger = TokenExchanger(post=recording_post(response, calls), clock=clock)
    with pytest.raises(ExchangeError, match=match):
        exchanger.exchange_code(credentials, code="c", redirect_uri=REDIRECT_URI)
    assert len(calls) == 1  # no retry


def test_exchange_network_error(credentials: ClientCredentials, clock) -> None:
    def _post(*args: Any, **kwargs: Any) -> None:
        raise requests.ConnectionError("connection refused")

    with pytest.raises(ExchangeError, match="connection refused"):
        TokenExchanger(post=_post, clock=clock).exchange_code(
            credentials, code="c", redirect_uri=REDIRECT_URI
        )


def test_exchange_rejects_empty_code(credentials: ClientCredentials, clock) -> None:
    calls: list[dict[str, Any]] = []
    exchanger = TokenExchanger(post=recording_post(fake_response(), calls), clock=clock)
    with pytest.raises(ExchangeError):
        exchanger.exchange_code(credentials, code="", redirect_uri=REDIRECT_URI)
    assert calls == []


def test_error_messages_never_contain_secrets(credentials: ClientCredentials, clock) -> None:
    calls: list[dict[str, Any]] = []
    resp = fake_response(401, {"error": "invalid_client"})
    with pytest.raises(ExchangeError) as excinfo:
        TokenExchanger(post=recording_post(resp, calls), clock=clock).exchange_code(
            credentials, code="AUTH123", redirect_uri=REDIRECT_URI
        )
    assert "xyz" not in str(excinfo.value)
    assert "AUTH123" not in str(excinfo.value)


# --------------------------------------------------------------------------- #
# Refresh                                                                     #
# --------------------------------------------------------------------------- #
def test_refresh_posts_refresh_grant(credentials: ClientCredentials, clock) -> None:
    calls: list[dict[str, Any]] = []
    resp = fake_response(body={"access_token": "tok2", "expires_in": 1800})

    token = TokenExchanger(post=recording_post(resp, calls), clock=clock).refresh(
        credentials, refresh_token="ref1"
    )

    assert calls[0]["data"] == {
        "grant_type": "refresh_token",
        "refresh_token": "ref1",
        "client_id": "abc",
        "client_secret": "xyz",
    }
    assert token.access_token == "tok2"
    assert token.refresh_token is None  # provider omitted it; caller merges
    assert token.expiry == clock() + timedelta(seconds=1800)


def test_refresh_without_refresh_token(credentials: ClientCredentials, clock) -> None:
    calls: list[dict[str, Any]] = []
    exchanger = TokenExchanger(post=recording_post(fake_response(), calls), clock=clock)
    with pytest.raises(RefreshFailed, match="login"):
        exchanger.refresh(credentials, refresh_token=None)
    assert calls == []


def test_refresh_rejected_raises_refresh_failed(credentials: ClientCredentials, clock) -> None:
    calls: list[dict[str, Any]] = []
    resp = fake_response(400, {"error": "invalid_grant", "error_description": "Token has been expired or revoked."})
    with pytest.raises(RefreshFailed, match="revoked"):
        TokenExchanger(post=recording_post(resp, calls), clock=clock).refresh(
            credentials, refresh_token="ref1"
        )
    assert len(calls) == 1
