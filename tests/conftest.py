"""Shared fixtures and the ``--integration`` switch."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from gsc_cli.auth.models import ClientCredentials
from gsc_cli.auth.store import MemoryCredentialStore


def pytest_configure(config):
    """Add integration marker."""
    config.addinivalue_line(
        "markers", "integration: mark test as requiring integration with real services"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly requested."""
    if not config.getoption("--integration", default=False):
        skip_integration = pytest.mark.skip(reason="Need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_addoption(parser):
    """Add integration option to pytest."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests",
    )


# --------------------------------------------------------------------------- #
# Fixtures                                                                    #
# --------------------------------------------------------------------------- #
class FakeClock:
    """Mutable clock; call :meth:`advance` to move time forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    """Clock frozen at 2024-06-01T12:00:00Z."""
    return FakeClock(datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture()
def memory_store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture()
def credentials() -> ClientCredentials:
    return ClientCredentials(
        client_id="abc",
        client_secret="xyz",
        scope="read-only",
        token_uri="https://oauth.example.test/token",
        auth_uri="https://oauth.example.test/authorize",
    )
