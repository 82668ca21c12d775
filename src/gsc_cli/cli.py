"""gsc command line: ``auth`` and ``config`` commands.

Example
-------
    gsc auth login --client-secret ~/Downloads/client_secret.json --site sc-domain:example.com
    gsc auth status
    gsc auth token | xargs -I{} curl -H "Authorization: Bearer {}" ...
"""

from __future__ import annotations

import argparse
import logging
import sys
import webbrowser
from pathlib import Path
from typing import Sequence

from gsc_cli import __version__
from gsc_cli.auth.errors import AuthError
from gsc_cli.auth.service import AuthService
from gsc_cli.auth.store import KeyringCredentialStore
from gsc_cli.config import AppConfig, load_client_credentials
from gsc_cli.utils.logging import setup_logging

logger = logging.getLogger("gsc-cli.cli")

CHECK = "✓"


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #
def _build_service(config: AppConfig, *, open_browser: bool = True) -> AuthService:
    """Wire an :class:`AuthService` against the OS keyring."""
    return AuthService(
        KeyringCredentialStore(service=config.keyring_service),
        opener=webbrowser.open if (open_browser and config.open_browser) else None,
        callback_timeout=config.auth_timeout,
    )


def _prompt(label: str) -> str:
    """Ask for a value on an interactive terminal; empty otherwise."""
    if not sys.stdin.isatty():
        return ""
    try:
        return input(label).strip()
    except EOFError:
        return ""


# --------------------------------------------------------------------------- #
# auth commands                                                               #
# --------------------------------------------------------------------------- #
def cmd_auth_login(args: argparse.Namespace, config: AppConfig) -> int:
    secret_path = args.client_secret or config.client_secret_path
    if not secret_path:
        secret_path = _prompt("Path to client_secret.json: ")

    site = args.site or config.site_url
    if not site:
        print()
        print("Enter your Search Console site URL.")
        print("Examples:")
        print("  - sc-domain:example.com (domain property)")
        print("  - https://example.com/ (URL prefix property)")
        site = _prompt("Site URL: ")
    print()

    if args.timeout:
        config = config.with_updates(auth_timeout=args.timeout)

    credentials = load_client_credentials(config, secret_path or None)
    service = _build_service(config, open_browser=not args.no_browser)
    service.login(credentials)

    config.with_updates(
        client_secret_path=str(Path(secret_path).expanduser().resolve()),
        site_url=site,
    ).save_settings()

    print(f"{CHECK} Successfully authenticated!")
    if site:
        print(f"  Site: {site}")
    return 0


def cmd_auth_logout(args: argparse.Namespace, config: AppConfig) -> int:
    _build_service(config).logout()
    print(f"{CHECK} Logged out successfully")
    return 0


def cmd_auth_status(args: argparse.Namespace, config: AppConfig) -> int:
    info = _build_service(config).inspect()
    if not info.present:
        print("! Not logged in")
        print("Run 'gsc auth login' to authenticate")
        return 0

    print("Authentication Status:")
    print("  Logged in: Yes")
    if info.is_expired:
        print("  Token:     Expired (will refresh on next use)")
    else:
        print("  Token:     Valid")
        if info.expiry is not None:
            print(f"  Expires:   {info.expiry.astimezone().strftime('%Y-%m-%d %H:%M:%S')}")
    if config.site_url:
        print(f"  Site:      {config.site_url}")
    return 0


def cmd_auth_token(args: argparse.Namespace, config: AppConfig) -> int:
    credentials = load_client_credentials(config)
    token = _build_service(config).get_valid_token(credentials)
    print(token.access_token)
    return 0


# --------------------------------------------------------------------------- #
# config commands                                                             #
# --------------------------------------------------------------------------- #
def cmd_config_show(args: argparse.Namespace, config: AppConfig) -> int:
    print("Current configuration:")
    print(f"  Site URL:           {config.site_url}")
    print(f"  Client secret path: {config.client_secret_path}")
    print(f"  Config file:        {config.config_file}")
    return 0


def cmd_config_set_site(args: argparse.Namespace, config: AppConfig) -> int:
    config.with_updates(site_url=args.site_url).save_settings()
    print(f"{CHECK} Default site set to: {args.site_url}")
    return 0


# --------------------------------------------------------------------------- #
# Parser                                                                      #
# --------------------------------------------------------------------------- #
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gsc", description="Google Search Console CLI")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING (default), ERROR")
    parser.add_argument("--config-dir", default=None, help="Directory holding config.json")
    sub = parser.add_subparsers(dest="command", required=True)

    auth = sub.add_parser("auth", help="Manage authentication")
    auth_sub = auth.add_subparsers(dest="auth_command", required=True)

    login = auth_sub.add_parser("login", help="Authenticate with Google Search Console")
    login.add_argument("--client-secret", default=None, help="Path to client_secret.json")
    login.add_argument("--site", default=None, help="Search Console site URL")
    login.add_argument("--no-browser", action="store_true", help="Print the URL only")
    login.add_argument("--timeout", type=float, default=None, help="Seconds to wait for the redirect")
    login.set_defaults(func=cmd_auth_login)

    auth_sub.add_parser("logout", help="Remove stored credentials").set_defaults(func=cmd_auth_logout)
    auth_sub.add_parser("status", help="Show authentication status").set_defaults(func=cmd_auth_status)
    auth_sub.add_parser("token", help="Print a valid access token").set_defaults(func=cmd_auth_token)

    cfg = sub.add_parser("config", help="Manage configuration")
    cfg_sub = cfg.add_subparsers(dest="config_command", required=True)
    cfg_sub.add_parser("show", help="Show current configuration").set_defaults(func=cmd_config_show)
    set_site = cfg_sub.add_parser("set-site", help="Set the default Search Console site")
    set_site.add_argument("site_url")
    set_site.set_defaults(func=cmd_config_set_site)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = AppConfig.load(args.config_dir)
        setup_logging(args.log_level or config.log_level)
        return args.func(args, config)
    except AuthError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130
