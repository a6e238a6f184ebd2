"""One-shot local listener that captures the login token from the browser.

After the user signs in, the remote login page sends the browser back to the
``returnTo`` address it was given -- ``http://localhost:8765/intelliMind``
by default -- with the token in the query string::

    GET /intelliMind?token=abc123 HTTP/1.1
    Host: localhost:8765
    ...

:class:`TokenCaptureListener` binds that address, accepts exactly one
connection, reads a single fixed-size chunk, answers with a short plain-text
acknowledgement and closes everything again. It is not an HTTP
server: the request is scanned line by line for ``token=<value>`` and
nothing else is interpreted.

Any socket failure is reported as a warning and turns into "no token"; the
caller carries on without one.
"""

from __future__ import annotations

import re
import socket
import threading
from typing import Callable, Optional
from urllib.parse import unquote_plus

from loginbridge.exceptions import TokenCaptureError
from loginbridge.models import DEFAULT_ACKNOWLEDGEMENT, DEFAULT_LISTENER_PORT
from loginbridge.output import debug, warning

_TOKEN_PATTERN = re.compile(r"token=(\S+)")


def extract_token(payload: str) -> Optional[str]:
    """Return the first ``token=<non-whitespace>`` value found in *payload*.

    Line endings are normalised first and each line is searched on its
    own, so a request line such as ``GET /cb?token=abc123 HTTP/1.1``
    yields ``abc123``. The value is percent-decoded once, so
    ``token=ab%2Bc`` yields ``ab+c`` and re-encoding it on the retry
    reproduces what the login page sent.

    Args:
        payload: Raw text received from the browser.

    Returns:
        The token, or ``None`` when no line carries one.
    """
    for line in payload.replace("\r", "").split("\n"):
        match = _TOKEN_PATTERN.search(line)
        if match:
            return unquote_plus(match.group(1))
    return None


class TokenCaptureListener:
    """Single-use TCP listener for the login callback.

    Each :meth:`capture_token` call binds, serves one connection and closes
    again, so the same instance can be reused for consecutive handshakes
    but never for two at once.

    Args:
        host: Interface to bind and to advertise in :attr:`callback_url`.
        port: Fixed port agreed with the remote service. ``0`` picks a free
            port at bind time (useful in tests).
        callback_path: Path component of :attr:`callback_url`.
        buffer_size: Maximum number of bytes read from the browser.
        acknowledgement: Plain-text body written back before closing.
        timeout: Seconds to wait for the connection and for the data.
            ``None`` blocks until the browser calls back.

    Example::

        listener = TokenCaptureListener(port=8765)
        token = listener.capture_token(
            launch=lambda: webbrowser.open(login_url + "?returnTo=" + listener.callback_url)
        )
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = DEFAULT_LISTENER_PORT,
        callback_path: str = "intelliMind",
        buffer_size: int = 1024,
        acknowledgement: str = DEFAULT_ACKNOWLEDGEMENT,
        timeout: Optional[float] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.callback_path = callback_path.strip("/")
        self.buffer_size = buffer_size
        self.acknowledgement = acknowledgement
        self.timeout = timeout
        self.last_error: Optional[TokenCaptureError] = None
        self._server: Optional[socket.socket] = None
        self._cancelled = threading.Event()
        self._lock = threading.Lock()

    @property
    def callback_url(self) -> str:
        """The address the browser has to be sent back to."""
        return f"http://{self.host}:{self.port}/{self.callback_path}"

    def capture_token(self, launch: Optional[Callable[[], None]] = None) -> Optional[str]:
        """Wait for the browser callback and return the token it carries.

        Args:
            launch: Called once the port is bound and before accepting, so
                the browser cannot reach the listener before it exists.

        Returns:
            The captured token, or ``None`` if the payload holds none, the
            wait timed out, :meth:`cancel` was called, or a socket error
            occurred. Errors are kept on :attr:`last_error`.
        """
        self.last_error = None
        self._cancelled.clear()
        try:
            payload = self._serve_once(launch)
        except TokenCaptureError as exc:
            self.last_error = exc
            warning(str(exc))
            return None

        token = extract_token(payload)
        if token is None:
            debug("Callback did not contain a token")
        return token

    def cancel(self) -> None:
        """Abort a pending :meth:`capture_token` from another thread."""
        self._cancelled.set()
        with self._lock:
            server = self._server
        if server is not None:
            try:
                server.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            server.close()

    # ------------------------------------------------------------------ #
    # Socket handling
    # ------------------------------------------------------------------ #

    def _serve_once(self, launch: Optional[Callable[[], None]]) -> str:
        server = self._bind()
        try:
            if launch is not None:
                launch()
            client = self._accept(server)
            with client:
                payload = self._exchange(client)
        finally:
            with self._lock:
                self._server = None
            server.close()
        return payload

    def _bind(self) -> socket.socket:
        try:
            server = socket.create_server((self.host, self.port))
        except OSError as exc:
            raise TokenCaptureError(
                f"Cannot listen on {self.host}:{self.port} for the login callback: {exc}"
            ) from exc
        server.settimeout(self.timeout)
        if self.port == 0:
            self.port = server.getsockname()[1]
        with self._lock:
            self._server = server
        if self._cancelled.is_set():
            with self._lock:
                self._server = None
            server.close()
            raise TokenCaptureError("Waiting for the login callback was cancelled")
        debug(f"Waiting for login callback on {self.callback_url}")
        return server

    def _accept(self, server: socket.socket) -> socket.socket:
        try:
            client, address = server.accept()
        except socket.timeout as exc:
            raise TokenCaptureError(
                f"No login callback received within {self.timeout} seconds"
            ) from exc
        except OSError as exc:
            if self._cancelled.is_set():
                raise TokenCaptureError("Waiting for the login callback was cancelled") from exc
            raise TokenCaptureError(f"Accepting the login callback failed: {exc}") from exc
        client.settimeout(self.timeout)
        debug(f"Login callback connection from {address[0]}")
        return client

    def _exchange(self, client: socket.socket) -> str:
        try:
            data = client.recv(self.buffer_size)
            client.sendall(self.acknowledgement.encode("utf-8"))
        except OSError as exc:
            raise TokenCaptureError(f"Reading the login callback failed: {exc}") from exc
        return data.decode("utf-8", errors="replace")
