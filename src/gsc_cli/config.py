"""CLI configuration: JSON settings file overridden by environment variables.

Only non-secret settings live here (site URL, path to ``client_secret.json``).
The OAuth token itself is kept in the OS keyring by :mod:`gsc_cli.auth.store`.

Environment variables
---------------------
GSC_CONFIG_DIR
    Directory holding ``config.json``. Defaults to ``~/.config/gsc-cli``.
GSC_CLIENT_SECRET_PATH, GSC_SITE_URL
    Override the values saved in ``config.json``.
GSC_OAUTH_SCOPE
    OAuth scope requested at login (Search Console read-only by default).
GSC_AUTH_TIMEOUT
    Seconds to wait for the browser redirect (default 300).
GSC_KEYRING_SERVICE
    Keyring service name (default ``gsc-cli``).
GSC_LOG_LEVEL
    Logging level for the ``gsc-cli`` loggers (default ``WARNING``).
GSC_NO_BROWSER
    Truthy value disables automatic browser launch.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Final

from gsc_cli.auth.errors import ConfigurationError
from gsc_cli.auth.models import SEARCH_CONSOLE_SCOPE, ClientCredentials
from gsc_cli.auth.store import DEFAULT_SERVICE
from gsc_cli.utils.environment import env_bool, env_float, env_str

logger = logging.getLogger("gsc-cli.config")

CONFIG_FILENAME: Final[str] = "config.json"
DEFAULT_CONFIG_DIR: Final[Path] = Path.home() / ".config" / "gsc-cli"
DEFAULT_AUTH_TIMEOUT: Final[float] = 300.0

_PERSISTED_KEYS: Final[tuple[str, ...]] = ("site_url", "client_secret_path")


def _atomic_write(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, sort_keys=True)
    os.replace(tmp, path)  # atomic on POSIX


def _read_settings(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"could not read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"could not read config file {path}: expected an object")
    return data


@dataclass(frozen=True)
class AppConfig:
    """Resolved settings for one CLI invocation."""

    config_dir: Path = DEFAULT_CONFIG_DIR
    site_url: str = ""
    client_secret_path: str = ""
    scope: str = SEARCH_CONSOLE_SCOPE
    auth_timeout: float = DEFAULT_AUTH_TIMEOUT
    keyring_service: str = DEFAULT_SERVICE
    log_level: str = "WARNING"
    open_browser: bool = True

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILENAME

    @property
    def is_configured(self) -> bool:
        return bool(self.site_url and self.client_secret_path)

    @classmethod
    def load(cls, config_dir: str | os.PathLike | None = None) -> "AppConfig":
        """Build the config from ``config.json`` then apply env overrides."""
        base = Path(
            config_dir or env_str("GSC_CONFIG_DIR") or DEFAULT_CONFIG_DIR
        ).expanduser()
        saved = _read_settings(base / CONFIG_FILENAME)

        return cls(
            config_dir=base,
            site_url=env_str("GSC_SITE_URL") or str(saved.get("site_url") or ""),
            client_secret_path=env_str("GSC_CLIENT_SECRET_PATH")
            or str(saved.get("client_secret_path") or ""),
            scope=env_str("GSC_OAUTH_SCOPE", SEARCH_CONSOLE_SCOPE) or SEARCH_CONSOLE_SCOPE,
            auth_timeout=env_float("GSC_AUTH_TIMEOUT", DEFAULT_AUTH_TIMEOUT),
            keyring_service=env_str("GSC_KEYRING_SERVICE", DEFAULT_SERVICE) or DEFAULT_SERVICE,
            log_level=env_str("GSC_LOG_LEVEL", "WARNING") or "WARNING",
            open_browser=not env_bool("GSC_NO_BROWSER"),
        )

    def with_updates(self, **changes: Any) -> "AppConfig":
        return replace(self, **changes)

    def save_settings(self) -> None:
        """Persist the non-secret settings to ``config.json``.

        Unknown keys already present in the file are preserved.
        """
        current = _read_settings(self.config_file)
        for key in _PERSISTED_KEYS:
            current[key] = getattr(self, key)
        _atomic_write(self.config_file, current)
        logger.debug("Saved settings to %s", self.config_file)


def load_client_credentials(config: AppConfig, path: str | None = None) -> ClientCredentials:
    """Return the :class:`ClientCredentials` for *config*.

    Raises
    ------
    ConfigurationError
        If no client secret path is known or the file cannot be parsed.
    """
    secret_path = path or config.client_secret_path
    if not secret_path:
        raise ConfigurationError(
            "no client secret configured - pass --client-secret or set GSC_CLIENT_SECRET_PATH"
        )
    return ClientCredentials.from_client_secret_file(secret_path, scope=config.scope)
