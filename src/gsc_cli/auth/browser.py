"""Best-effort browser launch.

Opening the browser is a convenience only: the URL is always echoed first so
the user can paste it manually, and a failure here never aborts the login.
"""

from __future__ import annotations

import logging
import webbrowser
from typing import Callable

_LOG = logging.getLogger("gsc-cli.auth.browser")

Opener = Callable[[str], bool]
Echo = Callable[[str], None]


def open_browser(url: str, *, echo: Echo = print, opener: Opener = webbrowser.open) -> bool:
    """Print *url* and try to open it; return whether a browser was launched."""
    echo("Opening browser for authorization...")
    echo("If the browser doesn't open, visit this URL:")
    echo(url)
    echo("")

    try:
        opened = bool(opener(url))
    except (webbrowser.Error, OSError) as exc:
        _LOG.info("Browser launch failed: %s", exc)
        echo(f"Could not open browser automatically: {exc}")
        return False

    if not opened:
        _LOG.info("No runnable browser found")
        echo("Could not open browser automatically; open the URL above manually.")
    return opened
