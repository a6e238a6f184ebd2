"""URL and form-body helpers for the request engine."""

from __future__ import annotations

from typing import Mapping
from urllib.parse import urlencode, urlsplit

import httpx

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"


def encode_form(form_data: Mapping[str, str]) -> tuple[bytes, dict[str, str]]:
    """Encode *form_data* as a UTF-8 form body plus the headers that describe it.

    ``Content-Length`` is the exact byte length of the encoded body so the
    request is never sent chunked.

    Example::

        >>> encode_form({"id": "5"})
        (b'id=5', {'Content-Type': 'application/x-www-form-urlencoded; charset=UTF-8', 'Content-Length': '4'})
    """
    body = urlencode(list(form_data.items()), encoding="utf-8").encode("ascii")
    headers = {
        "Content-Type": FORM_CONTENT_TYPE,
        "Content-Length": str(len(body)),
    }
    return body, headers


def is_login_redirect(url: str | httpx.URL, login_path: str = "/login") -> bool:
    """Return True if *url* points at a login page.

    A login page is a path ending in *login_path* that carries a query
    string (``https://host/login?return=...``). A bare ``/login`` without
    a query is treated as an ordinary redirect.
    """
    parsed = urlsplit(str(url))
    return parsed.path.endswith(login_path) and bool(parsed.query)


def login_page_url(redirect: str | httpx.URL, return_to: str) -> str:
    """Replace the query of a login *redirect* with a single ``returnTo`` parameter."""
    page = urlsplit(str(redirect))._replace(query="", fragment="").geturl()
    return f"{page}?{urlencode({'returnTo': return_to})}"


def with_query_param(url: str, name: str, value: str) -> str:
    """Set query parameter *name* on *url*, replacing an existing value."""
    return str(httpx.URL(url).copy_set_param(name, value))


def resolve_location(current: str, location: str) -> str:
    """Resolve a ``Location`` header value against the URL that returned it."""
    return str(httpx.URL(current).join(location))
