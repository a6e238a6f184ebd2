"""loginbridge -- reach services that sit behind a browser-based login page.

The connector issues ordinary HTTP requests and watches every response for a
redirect. When the server sends the client to its login page, the connector
opens the user's browser at that page, waits on a one-shot local listener for
the browser to come back with a token, and then repeats the original request
with the token attached. Cookies set along the way are kept on a
:class:`~loginbridge.session.Session` so that every hop of one logical call
shares the same server-side session.

Typical usage::

    from loginbridge import RequestEngine

    with RequestEngine() as engine:
        body = engine.request("https://service.example.com/task/1/view")

Modules:
    app: Typer application and console-script entry point.
    models: Pydantic configuration models.
    config: XDG-aware configuration loading and precedence resolution.
    session: Cookie jar plus token store owned by one connector.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr diagnostics with Rich support.
"""

__version__ = "0.1.0"

from loginbridge.client.engine import RequestEngine  # noqa: E402
from loginbridge.session import Session  # noqa: E402

__all__ = ["RequestEngine", "Session", "__version__"]
