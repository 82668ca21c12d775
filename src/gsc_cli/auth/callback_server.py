"""Transient loopback server receiving the OAuth redirect.

One instance serves exactly one login attempt:

1. :meth:`LoopbackCallbackServer.start` binds an OS-assigned port on
   ``127.0.0.1`` and runs a single-route Starlette app under uvicorn in a
   daemon thread.
2. The ``/callback`` handler resolves the attempt *once* (code, error, or
   "no code"); the first terminal result wins and later writers are no-ops.
3. :meth:`LoopbackCallbackServer.wait` blocks the caller until the attempt
   resolves or the deadline passes, in which case it resolves ``timed_out``.
4. :meth:`LoopbackCallbackServer.close` (also run by ``__exit__``) stops
   uvicorn, joins the thread and closes the listening socket.

SECURITY NOTE
-------------
The authorization code and the full state value are never logged.  A request
carrying a code with the wrong ``state`` is rejected without resolving the
attempt, so a forged redirect cannot end a login.
"""

from __future__ import annotations

import html
import socket
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Final

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, Response
from starlette.routing import Route

from gsc_cli.auth.errors import AuthError
from gsc_cli.auth.log_utils import get_auth_logger
from gsc_cli.auth.models import CallbackResult
from gsc_cli.auth.state import state_matches

LOOPBACK_HOST: Final[str] = "127.0.0.1"
CALLBACK_PATH: Final[str] = "/callback"
DEFAULT_TIMEOUT: Final[float] = 300.0
NO_CODE_REASON: Final[str] = "no authorization code received"


def _html_page(title: str, body: str, status: int = 200) -> HTMLResponse:
    """Return a tiny success / error HTML page (``body`` must be escaped)."""
    content = (
        "<!doctype html><html lang='en'>"
        "<head><meta charset='utf-8'><title>"
        f"{title}</title></head><body><h1>{title}</h1><p>{body}</p></body></html>"
    )
    return HTMLResponse(content, status_code=status)


def _already_completed() -> HTMLResponse:
    return _html_page(
        "Sign-in already completed",
        "This sign-in attempt has already finished. You can close this window.",
    )


class LoopbackCallbackServer:
    """Single-use redirect target bound to an ephemeral loopback port.

    Use as a context manager so the socket is released on every exit path::

        with LoopbackCallbackServer(expected_state=state) as server:
            redirect_uri = credentials.redirect_uri(server.port)
            ...
            result = server.wait(timeout=300)
    """

    def __init__(
        self,
        *,
        expected_state: str | None,
        host: str = LOOPBACK_HOST,
        path: str = CALLBACK_PATH,
        startup_timeout: float = 5.0,
        shutdown_timeout: float = 5.0,
    ) -> None:
        self.expected_state = expected_state
        self.host = host
        self.path = path
        self.startup_timeout = startup_timeout
        self.shutdown_timeout = shutdown_timeout

        self._result: Future[CallbackResult] = Future()
        self._resolve_lock = threading.Lock()
        self._sock: socket.socket | None = None
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None
        self._port: int | None = None
        self._log = get_auth_logger(base_logger_name="gsc-cli.auth.callback")

        self.app = Starlette(routes=[Route(self.path, self._callback, methods=["GET"])])

    # ------------------------------------------------------------------ #
    # State                                                              #
    # ------------------------------------------------------------------ #
    @property
    def port(self) -> int:
        if self._port is None:
            raise RuntimeError("callback server has not been started")
        return self._port

    @property
    def done(self) -> bool:
        return self._result.done()

    @property
    def is_listening(self) -> bool:
        return self._sock is not None

    def resolve(self, result: CallbackResult) -> bool:
        """Record *result* unless the attempt is already resolved.

        Returns *True* when this call won the race.
        """
        with self._resolve_lock:
            if self._result.done():
                return False
            self._result.set_result(result)
        self._log.info("Callback attempt resolved outcome=%s", result.outcome)
        return True

    # ------------------------------------------------------------------ #
    # HTTP route                                                         #
    # ------------------------------------------------------------------ #
    async def _callback(self, request: Request) -> Response:
        if self.done:
            return _already_completed()

        params = request.query_params
        code = params.get("code")
        if code:
            if self.expected_state is not None and not state_matches(
                self.expected_state, params.get("state")
            ):
                self._log.warning("Rejected callback with mismatched state")
                return _html_page("Authorization Failed", "state mismatch", 400)
            if not self.resolve(CallbackResult.completed(code)):
                return _already_completed()
            return _html_page(
                "Authorization Successful!",
                "You can close this window and return to the terminal.",
            )

        reason = params.get("error") or NO_CODE_REASON
        if not self.resolve(CallbackResult.failed(reason)):
            return _already_completed()
        return _html_page("Authorization Failed", html.escape(reason), 400)

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #
    def start(self) -> "LoopbackCallbackServer":
        if self._thread is not None:
            raise RuntimeError("callback server already started")

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((self.host, 0))
            sock.listen(16)
        except OSError as exc:
            sock.close()
            raise AuthError(f"could not start callback server: {exc}") from exc
        self._sock = sock
        self._port = sock.getsockname()[1]
        self._log = get_auth_logger(base_logger_name="gsc-cli.auth.callback", port=self._port)

        config = uvicorn.Config(
            self.app,
            lifespan="off",
            loop="asyncio",
            http="h11",
            log_config=None,
            log_level="warning",
            access_log=False,
            timeout_graceful_shutdown=1,
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={"sockets": [sock]},
            name=f"gsc-auth-callback-{self._port}",
            daemon=True,
        )
        self._thread.start()

        deadline = time.monotonic() + self.startup_timeout
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                self.close()
                raise AuthError("could not start callback server")
            time.sleep(0.01)

        self._log.debug("Callback server listening on %s:%s%s", self.host, self._port, self.path)
        return self

    def wait(self, timeout: float = DEFAULT_TIMEOUT) -> CallbackResult:
        """Block until the attempt resolves or *timeout* seconds elapse."""
        try:
            return self._result.result(timeout=timeout)
        except FutureTimeoutError:
            self.resolve(CallbackResult.timed_out())
            return self._result.result()

    def close(self) -> None:
        """Stop serving and release the port. Safe to call more than once."""
        server, thread, sock = self._server, self._thread, self._sock
        self._sock = None
        if server is not None:
            server.should_exit = True
        if thread is not None and thread.is_alive():
            thread.join(self.shutdown_timeout)
            if thread.is_alive() and server is not None:
                self._log.warning("Callback server slow to stop; forcing exit")
                server.force_exit = True
                thread.join(self.shutdown_timeout)
        if sock is not None:
            sock.close()
        self._log.debug("Callback server closed")

    def __enter__(self) -> "LoopbackCallbackServer":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()
