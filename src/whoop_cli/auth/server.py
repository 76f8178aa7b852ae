"""Local OAuth callback listener.

A one-shot HTTP server that waits for WHOOP to redirect the browser back to
/callback with an authorization code, validating the CSRF state.
"""

import time
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlparse

import structlog

from whoop_cli.core.errors import AuthError

logger = structlog.get_logger()

DEFAULT_PORT = 3000
DEFAULT_TIMEOUT_SECONDS = 120

SUCCESS_PAGE = """<html>
  <body style="font-family: system-ui; padding: 40px; text-align: center;">
    <h1>Authorization Successful!</h1>
    <p>You can close this window and return to the terminal.</p>
    <script>setTimeout(() => window.close(), 2000);</script>
  </body>
</html>"""

FAILURE_PAGE = """<html>
  <body style="font-family: system-ui; padding: 40px; text-align: center;">
    <h1>Authorization Failed</h1>
    <p>Error: {error}</p>
    <p>You can close this window.</p>
  </body>
</html>"""


@dataclass
class CallbackResult:
    code: str
    state: str


class CallbackServer:
    """Receives exactly one OAuth redirect on /callback."""

    def __init__(
        self,
        expected_state: str,
        port: int = DEFAULT_PORT,
        host: str = "127.0.0.1",
    ) -> None:
        """Bind the listener.

        Args:
            expected_state: State value sent in the authorization request
            port: Port to listen on (0 picks a free port)
            host: Interface to bind
        """
        self.expected_state = expected_state
        self.result: CallbackResult | None = None
        self.error: AuthError | None = None
        self.httpd = HTTPServer((host, port), self._handler_class())

    @property
    def port(self) -> int:
        return self.httpd.server_address[1]

    def _handler_class(self) -> type[BaseHTTPRequestHandler]:
        server = self

        class CallbackHandler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:  # noqa: N802
                url = urlparse(self.path)
                if url.path != "/callback":
                    self._respond(404, "Not Found", "text/plain")
                    return

                params = parse_qs(url.query)
                code = params.get("code", [None])[0]
                state = params.get("state", [None])[0]
                error = params.get("error", [None])[0]

                if error:
                    self._respond(400, FAILURE_PAGE.format(error=error))
                    server.error = AuthError(f"OAuth error: {error}")
                elif not code or not state:
                    self._respond(400, "Missing code or state", "text/plain")
                    server.error = AuthError("Missing code or state in callback")
                elif state != server.expected_state:
                    self._respond(400, "Invalid state", "text/plain")
                    server.error = AuthError("State mismatch - possible CSRF attack")
                else:
                    self._respond(200, SUCCESS_PAGE)
                    server.result = CallbackResult(code=code, state=state)

            def _respond(self, status: int, body: str, content_type: str = "text/html") -> None:
                payload = body.encode()
                self.send_response(status)
                self.send_header("Content-Type", content_type)
                self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                self.wfile.write(payload)

            def log_message(self, format: str, *args: object) -> None:  # noqa: A002
                logger.debug("Callback request", request=format % args)

        return CallbackHandler

    def wait(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> CallbackResult:
        """Serve until the callback arrives, then shut down.

        Requests to other paths are answered with 404 and ignored.

        Raises:
            AuthError: On OAuth error, missing params, state mismatch or timeout
        """
        deadline = time.monotonic() + timeout
        try:
            while self.result is None and self.error is None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise AuthError("OAuth callback timed out")
                self.httpd.timeout = remaining
                self.httpd.handle_request()
        finally:
            self.httpd.server_close()

        if self.error is not None:
            raise self.error
        return self.result
