"""HTTP side of loginbridge.

:class:`RequestEngine` wraps :class:`httpx.Client` with manual redirect
handling and the browser login handshake; :mod:`loginbridge.client.encoding`
holds the URL and form helpers it uses.

Example::

    from loginbridge.client import RequestEngine

    with RequestEngine() as engine:
        body = engine.request("https://service.example.com/task/1/view")
"""

from loginbridge.client.engine import RequestEngine

__all__ = ["RequestEngine"]
