"""Login handshake building blocks.

- :class:`TokenStore` -- hostname to token mapping for one session.
- :class:`TokenCaptureListener` -- one-shot local listener that receives
  the token from the browser.
- :class:`BrowserLauncher` / :class:`WebBrowserLauncher` -- how the login
  page is shown to the user.
"""

from loginbridge.auth.browser import BrowserLauncher, WebBrowserLauncher
from loginbridge.auth.listener import TokenCaptureListener, extract_token
from loginbridge.auth.token_store import TokenStore, hostname_of, normalize_hostname

__all__ = [
    "BrowserLauncher",
    "WebBrowserLauncher",
    "TokenCaptureListener",
    "TokenStore",
    "extract_token",
    "hostname_of",
    "normalize_hostname",
]
