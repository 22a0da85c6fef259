"""Temporary local HTTP server for OAuth callbacks."""
import socket
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Optional, Tuple
from urllib.parse import parse_qs, urlparse

from slack_status.logger import logger

SUCCESS_BODY = b"Successfully got Temporary Authorization Code, you may close this tab.\n"


class AuthorizationError(RuntimeError):
    """Raised when the OAuth flow cannot produce a usable user token."""


class AuthorizationTimeout(AuthorizationError):
    """Raised when no redirect with a code arrived in time."""


def parse_bind_address(bind: str) -> Tuple[str, int]:
    """Split ``host:port`` (``:port`` binds every interface)."""
    host, sep, port = bind.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid HTTP bind address, expected host:port: {bind!r}")
    return host.strip("[]"), int(port)


class _OAuthCallbackHandler(BaseHTTPRequestHandler):
    server: "_CallbackHTTPServer"

    def do_GET(self):
        parsed = urlparse(self.path)
        if parsed.path != self.server.listener.route:
            self.send_response(404)
            self.send_header("Content-Length", "0")
            self.end_headers()
            return

        logger.debug(f"[OAuth] Redirect handler received: {self.path}")
        code = parse_qs(parsed.query).get("code", [""])[0]
        if not code:
            logger.error("[OAuth] Redirect handler did not receive code parameter")
            self.send_response(400)
            self.send_header("Content-Length", "0")
            self.end_headers()
            return

        self.send_response(200)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(SUCCESS_BODY)))
        self.end_headers()
        self.wfile.write(SUCCESS_BODY)
        self.server.listener._deliver(code)

    def log_message(self, format, *args):
        logger.debug(f"[OAuth] {self.address_string()} {format % args}")


class _CallbackHTTPServer(HTTPServer):
    def __init__(self, address: Tuple[str, int], listener: "OAuthCallbackServer"):
        self.listener = listener
        self.address_family = socket.AF_INET6 if ":" in address[0] else socket.AF_INET
        super().__init__(address, _OAuthCallbackHandler)


class OAuthCallbackServer:
    """
    Single-shot listener for the provider redirect.

    ``start()`` serves on a background thread; ``wait()`` blocks until the
    first request carrying a ``code`` arrives, then shuts the server down.
    Requests without a code get a 400 and leave the server listening.
    """

    def __init__(self, bind: str, route: str = "/redirect"):
        self.host, self.port = parse_bind_address(bind)
        self.route = route or "/"
        self._code: Optional[str] = None
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._server: Optional[_CallbackHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.host, self.port

    def start(self) -> "OAuthCallbackServer":
        logger.info(f"[OAuth] Starting HTTP server on: {self.host}:{self.port}")
        self._server = _CallbackHTTPServer((self.host, self.port), self)
        # port 0 asks the OS for a free port
        self.host, self.port = self._server.server_address[:2]
        self._thread = threading.Thread(target=self._server.serve_forever, name="oauth-callback", daemon=True)
        self._thread.start()
        return self

    def _deliver(self, code: str) -> None:
        with self._lock:
            if self._done.is_set():
                return
            self._code = code
            self._done.set()
        logger.info("[OAuth] Redirect handler successfully received Temporary Authorization Code")

    def wait(self, timeout: Optional[float] = None) -> str:
        """Block for the code. ``timeout=None`` waits forever."""
        if self._server is None:
            raise RuntimeError("OAuthCallbackServer not started. Call start() first.")
        try:
            if not self._done.wait(timeout):
                raise AuthorizationTimeout(f"no OAuth redirect received within {timeout} second(s)")
        finally:
            self.close()
        logger.info("[OAuth] Got Temporary Authorization Code, HTTP server shut down")
        return self._code

    def close(self) -> None:
        """Stop serving and release the socket. Errors here are not recovered."""
        if self._server is None:
            return
        server, self._server = self._server, None
        server.shutdown()
        server.server_close()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def __enter__(self) -> "OAuthCallbackServer":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.close()

