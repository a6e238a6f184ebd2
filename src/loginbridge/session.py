"""Per-connector session state: the cookie jar and the token store.

Every physical request made for one logical call reads and updates the same
cookie jar, so a session cookie set while the login redirect happens is sent
again when the original request is retried with its token. Tokens are kept
next to the cookies for the lifetime of the session.

Sharing a :class:`Session` between two engines shares both; giving each
engine its own keeps them fully independent.
"""

from __future__ import annotations

from typing import Optional

import httpx

from loginbridge.auth.token_store import TokenStore


class Session:
    """Cookie and token state owned by a connector.

    Args:
        cookies: Initial cookies, e.g. copied from a browser.
        tokens: An existing token store to reuse.
    """

    def __init__(
        self,
        cookies: Optional[httpx.Cookies] = None,
        tokens: Optional[TokenStore] = None,
    ) -> None:
        self.cookies = cookies if cookies is not None else httpx.Cookies()
        self.tokens = tokens if tokens is not None else TokenStore()

    def clear(self) -> None:
        """Forget all cookies. Tokens are kept: they never expire within a session."""
        self.cookies.clear()

    def __repr__(self) -> str:
        return f"Session(cookies={len(self.cookies.jar)}, tokens={self.tokens.hostnames()})"
