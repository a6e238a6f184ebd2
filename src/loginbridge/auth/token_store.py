"""In-memory token store keyed by authentication hostname.

A login handshake authenticates the user against one domain, so the token
it yields is remembered under that domain's hostname and reused for every
later login redirect to the same host. Nothing is written to disk and
nothing expires: an entry lives as long as the
:class:`~loginbridge.session.Session` that owns the store.
"""

from __future__ import annotations

from typing import Iterator, Optional

import httpx


def normalize_hostname(hostname: str) -> str:
    """Lower-case *hostname* and drop a trailing root dot.

    Example::

        >>> normalize_hostname("Service.Example.COM.")
        'service.example.com'
    """
    return hostname.strip().rstrip(".").lower()


def hostname_of(url: str | httpx.URL) -> str:
    """Return the normalized hostname of *url* (empty for relative URLs)."""
    return normalize_hostname(httpx.URL(str(url)).host)


class TokenStore:
    """Mapping of hostname to the token captured for it.

    Example::

        store = TokenStore()
        store.remember("service.example.com", "abc123")
        assert store.get_token("https://SERVICE.example.com/login?x=1") == "abc123"
        assert store.get_token("https://other.example.com/") is None
    """

    def __init__(self) -> None:
        self._tokens: dict[str, str] = {}

    def get_token(self, url: str | httpx.URL) -> Optional[str]:
        """Look up the cached token for the host of *url*. Never triggers a handshake."""
        return self._tokens.get(hostname_of(url))

    def remember(self, hostname: str, token: str) -> None:
        """Store *token* for *hostname*, replacing any earlier token."""
        self._tokens[normalize_hostname(hostname)] = token

    def hostnames(self) -> list[str]:
        return sorted(self._tokens)

    def __contains__(self, hostname: object) -> bool:
        return isinstance(hostname, str) and normalize_hostname(hostname) in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(self.hostnames())
