"""
Unit tests for the auth data model.

Coverage:
* Token expiry is strict and clock-driven
* Refresh-token fallback keeps the previous value only when none was issued
* Persisted record parsing rejects structurally invalid input
* client_secret.json parsing (installed / web / broken files)
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from gsc_cli.auth.errors import ConfigurationError, StorageError
from gsc_cli.auth.models import AuthAttempt, CallbackResult, ClientCredentials, Token

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def fixed(now: datetime):
    return lambda: now


# --------------------------------------------------------------------------- #
# Token                                                                       #
# --------------------------------------------------------------------------- #
def test_token_expiry_is_strictly_before_now() -> None:
    tok = Token(access_token="at", expiry=NOW)
    assert tok.is_expired(clock=fixed(NOW)) is False
    assert tok.is_expired(clock=fixed(NOW + timedelta(seconds=1))) is True
    assert tok.is_expired(clock=fixed(NOW - timedelta(seconds=1))) is False


def test_naive_expiry_is_treated_as_utc() -> None:
    tok = Token(access_token="at", expiry=datetime(2024, 6, 1, 12, 0, 0))
    assert tok.expiry == NOW


def test_fallback_refresh_token_only_when_absent() -> None:
    fresh = Token(access_token="new", expiry=NOW)
    assert fresh.with_fallback_refresh_token("old-rt").refresh_token == "old-rt"

    rotated = Token(access_token="new", expiry=NOW, refresh_token="new-rt")
    assert rotated.with_fallback_refresh_token("old-rt").refresh_token == "new-rt"

    assert fresh.with_fallback_refresh_token(None).refresh_token is None


def test_record_round_trip() -> None:
    tok = Token(access_token="at", expiry=NOW, token_type="Bearer", refresh_token="rt")
    record = tok.to_record()
    assert set(record) == {"access_token", "refresh_token", "expiry", "token_type"}
    assert Token.from_record(record) == tok


@pytest.mark.parametrize(
    "record",
    [
        [],
        {"expiry": NOW.isoformat()},
        {"access_token": "at"},
        {"access_token": "at", "expiry": "not-a-date"},
    ],
)
def test_from_record_rejects_invalid(record: object) -> None:
    with pytest.raises(StorageError):
        Token.from_record(record)


def test_repr_hides_secrets() -> None:
    tok = Token(access_token="secret-access", expiry=NOW, refresh_token="secret-refresh")
    assert "secret" not in repr(tok)
    assert "AUTH123" not in repr(CallbackResult.completed("AUTH123"))


# --------------------------------------------------------------------------- #
# Attempt                                                                     #
# --------------------------------------------------------------------------- #
def test_attempt_deadline() -> None:
    attempt = AuthAttempt(
        state="s",
        port=5000,
        redirect_uri="http://localhost:5000/callback",
        timeout_seconds=300,
        created_at=NOW,
    )
    assert attempt.deadline == NOW + timedelta(minutes=5)


# --------------------------------------------------------------------------- #
# ClientCredentials                                                           #
# --------------------------------------------------------------------------- #
def _write(tmp_path: Path, payload: object) -> Path:
    path = tmp_path / "client_secret.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_redirect_uri_renders_port() -> None:
    creds = ClientCredentials(client_id="abc", client_secret="xyz")
    assert creds.redirect_uri(53124) == "http://localhost:53124/callback"


def test_validate_reports_missing_fields() -> None:
    with pytest.raises(ConfigurationError, match="client_id"):
        ClientCredentials(client_id="", client_secret="xyz").validate()
    with pytest.raises(ConfigurationError, match="placeholder"):
        ClientCredentials(
            client_id="abc", client_secret="xyz", redirect_uri_template="http://localhost/cb"
        ).validate()


@pytest.mark.parametrize("section", ["installed", "web"])
def test_from_client_secret_file(tmp_path: Path, section: str) -> None:
    path = _write(
        tmp_path,
        {
            section: {
                "client_id": "cid.apps.googleusercontent.com",
                "client_secret": "shh",
                "project_id": "demo-project",
                "auth_uri": "https://accounts.google.com/o/oauth2/auth",
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        },
    )
    creds = ClientCredentials.from_client_secret_file(path, scope="read-only")
    assert creds.client_id == "cid.apps.googleusercontent.com"
    assert creds.client_secret == "shh"
    assert creds.project_id == "demo-project"
    assert creds.scope == "read-only"
    assert "shh" not in repr(creds)


def test_from_client_secret_file_missing(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        ClientCredentials.from_client_secret_file(tmp_path / "nope.json")


def test_from_client_secret_file_garbage(tmp_path: Path) -> None:
    path = tmp_path / "client_secret.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="could not parse"):
        ClientCredentials.from_client_secret_file(path)


def test_from_client_secret_file_without_section(tmp_path: Path) -> None:
    path = _write(tmp_path, {"other": {}})
    with pytest.raises(ConfigurationError, match="installed"):
        ClientCredentials.from_client_secret_file(path)
