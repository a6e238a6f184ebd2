"""Request engine: manual redirect handling with an embedded login handshake.

:class:`RequestEngine` sends a GET (or a form POST when form data is given)
and never lets the transport follow redirects. Each ``Location`` header is
inspected by the engine itself:

- an ordinary redirect is followed, keeping the method and form data;
- a redirect to the login page (path ending in ``/login`` with a query
  string) starts the handshake -- the browser is opened at the login page
  with ``returnTo`` pointing at the local
  :class:`~loginbridge.auth.listener.TokenCaptureListener` -- and the
  *original* URL is sent again with the captured token attached.

Tokens are cached per login hostname on the engine's
:class:`~loginbridge.session.Session`, so only the first login redirect
for a host opens the browser. One counter covers every redirect of a call;
once it passes ``max_redirects`` a
:class:`~loginbridge.exceptions.RedirectLoopError` is raised.

See Also:
    :mod:`loginbridge.client.encoding` for the URL and form helpers.
"""

from __future__ import annotations

from typing import Mapping, Optional

import httpx

from loginbridge.auth.browser import BrowserLauncher, WebBrowserLauncher
from loginbridge.auth.listener import TokenCaptureListener
from loginbridge.auth.token_store import hostname_of
from loginbridge.client.encoding import (
    encode_form,
    is_login_redirect,
    login_page_url,
    resolve_location,
    with_query_param,
)
from loginbridge.exceptions import ConnectionError_, RedirectLoopError
from loginbridge.models import ConnectorConfig, PendingRequest
from loginbridge.output import debug, info, warning
from loginbridge.session import Session


def _mask(token: str) -> str:
    return token[:4] + "..." if len(token) > 4 else "***"


class RequestEngine:
    """HTTP connector that signs in through the browser when the server asks for it.

    Can be used as a context manager, in which case the underlying
    :class:`httpx.Client` is closed on exit. Outside a ``with`` block the
    client is created on first use and kept until :meth:`close`.

    Args:
        config: Connector settings; defaults to :class:`ConnectorConfig()`.
        session: Cookie jar and token store. A fresh one is created when
            omitted.
        launcher: Shows the login page to the user. Defaults to
            :class:`~loginbridge.auth.browser.WebBrowserLauncher`.
        listener: Receives the token from the browser. Defaults to a
            :class:`~loginbridge.auth.listener.TokenCaptureListener` built
            from *config*.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`.

    Example::

        with RequestEngine() as engine:
            page = engine.request("https://service.example.com/task/1/view")
            engine.request("https://service.example.com/task/add", {"name": "x"})
    """

    def __init__(
        self,
        config: Optional[ConnectorConfig] = None,
        session: Optional[Session] = None,
        launcher: Optional[BrowserLauncher] = None,
        listener: Optional[TokenCaptureListener] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config or ConnectorConfig()
        self.session = session or Session()
        self._launcher = launcher or WebBrowserLauncher()
        self._listener = listener or TokenCaptureListener(
            host=self.config.listener_host,
            port=self.config.listener_port,
            callback_path=self.config.callback_path,
            buffer_size=self.config.buffer_size,
            acknowledgement=self.config.acknowledgement,
            timeout=self.config.capture_timeout,
        )
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Client lifecycle
    # ------------------------------------------------------------------ #

    def __enter__(self) -> RequestEngine:
        self._ensure_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            # Passing the CookieJar itself (not an httpx.Cookies) makes the
            # client share it with the session instead of copying it.
            self._client = httpx.Client(
                cookies=self.session.cookies.jar,
                follow_redirects=False,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
                transport=self._transport,
            )
        return self._client

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def request(self, url: str, form_data: Optional[Mapping[str, str]] = None) -> str:
        """Fetch *url*, signing in through the browser if redirected to the login page.

        Args:
            url: Absolute target URL.
            form_data: Field name to value. When given the request is a
                form-encoded POST, otherwise a GET.

        Returns:
            The body of the first response without a ``Location`` header,
            decoded as UTF-8.

        Raises:
            RedirectLoopError: More than ``max_redirects`` redirects were
                observed; ``.location`` holds the last one.
            ConnectionError_: The transport failed (DNS, refused, TLS,
                timeout). Not retried.
        """
        pending = PendingRequest(
            url=url,
            form_data=dict(form_data) if form_data is not None else None,
        )
        debug(f"{pending.method} {url}")

        while True:
            response = self._send(pending)
            location = response.headers.get("Location")
            if location is None:
                return response.content.decode("utf-8", errors="replace")

            pending.redirects += 1
            if pending.redirects > self.config.max_redirects:
                raise RedirectLoopError(location, pending.redirects)

            target = resolve_location(pending.next_url, location)
            if is_login_redirect(target, self.config.login_path):
                debug(f"Login redirect to {target}")
                token = self._token_for(target)
                self._retry_with_token(pending, token)
            else:
                debug(f"Redirect {pending.redirects} to {target}")
                pending.next_url = target

    def get(self, url: str) -> str:
        return self.request(url)

    def post(self, url: str, form_data: Mapping[str, str]) -> str:
        return self.request(url, form_data)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _send(self, pending: PendingRequest) -> httpx.Response:
        client = self._ensure_client()
        try:
            if pending.form_data is None:
                return client.get(pending.next_url)
            body, headers = encode_form(pending.form_data)
            return client.post(pending.next_url, content=body, headers=headers)
        except httpx.TransportError as exc:
            raise ConnectionError_(
                f"{pending.method} {pending.next_url} failed: {exc}"
            ) from exc

    def _token_for(self, login_url: str) -> Optional[str]:
        """Return the cached token for the login host, or run the handshake."""
        hostname = hostname_of(login_url)
        token = self.session.tokens.get_token(login_url)
        if token is not None:
            debug(f"Reusing token for {hostname}")
            return token

        token = self._handshake(login_url)
        if token is None:
            warning(f"No token obtained from {hostname}, retrying without one")
            return None

        self.session.tokens.remember(hostname, token)
        debug(f"Token for {hostname}: {_mask(token)}")
        return token

    def _handshake(self, login_url: str) -> Optional[str]:
        info(f"Login required at {hostname_of(login_url)}, waiting for browser sign-in")

        def launch() -> None:
            # callback_url is read after bind so an ephemeral port is known.
            self._launcher.open(login_page_url(login_url, self._listener.callback_url))

        return self._listener.capture_token(launch=launch)

    def _retry_with_token(self, pending: PendingRequest, token: Optional[str]) -> None:
        """Point the next hop back at the original URL, carrying *token*."""
        field = self.config.token_field
        if token is None:
            pending.next_url = pending.url
        elif pending.form_data is not None:
            pending.form_data[field] = token
            pending.next_url = pending.url
        else:
            pending.next_url = with_query_param(pending.url, field, token)
