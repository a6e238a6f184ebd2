"""Browser launch capability used to start the interactive login.

The engine only needs "open this URL where the user can see it". That need
is expressed as the :class:`BrowserLauncher` protocol so tests and embedding
applications can supply their own implementation; :class:`WebBrowserLauncher`
is the default and delegates to the standard :mod:`webbrowser` module.
"""

from __future__ import annotations

import webbrowser
from typing import Protocol, runtime_checkable

from loginbridge.output import info, warning


@runtime_checkable
class BrowserLauncher(Protocol):
    """Anything that can show a URL to the user."""

    def open(self, url: str) -> None:
        ...


class WebBrowserLauncher:
    """Open URLs in the system default browser.

    When no browser can be started (headless host, no ``$BROWSER``), the
    URL is printed so the user can open it by hand; the listener keeps
    waiting either way.
    """

    def open(self, url: str) -> None:
        info(f"Opening browser for login: {url}")
        if not webbrowser.open(url):
            warning(f"Could not start a browser. Open this URL manually: {url}")
