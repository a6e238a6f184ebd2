"""Request command -- fetch one URL through the connector.

Usage::

    loginbridge request https://service.example.com/task/1/view
    loginbridge request https://service.example.com/task/add -d name=Shopping -d due=today

The final response body goes to stdout; redirects, the login handshake and
errors are reported on stderr.
"""

from __future__ import annotations

from typing import Optional

import typer

from loginbridge.exceptions import InvalidUsageError, LoginBridgeError, RedirectLoopError
from loginbridge.output import error, format_response, suggest


def parse_form_fields(pairs: list[str]) -> dict[str, str]:
    """Turn ``KEY=VALUE`` strings into a form mapping.

    The value may itself contain ``=``; only the first one splits.

    Raises:
        InvalidUsageError: If a pair has no ``=`` or an empty key.
    """
    form: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Invalid form field '{pair}', expected KEY=VALUE")
        form[key] = value
    return form


def request_command(
    url: str = typer.Argument(help="URL to fetch."),
    data: Optional[list[str]] = typer.Option(
        None, "--data", "-d", help="Form field KEY=VALUE; sends a POST. Repeatable."
    ),
    port: Optional[int] = typer.Option(
        None, "--port", help="Port of the local token listener."
    ),
    max_redirects: Optional[int] = typer.Option(
        None, "--max-redirects", help="Redirects followed before giving up."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="HTTP timeout in seconds."
    ),
    capture_timeout: Optional[float] = typer.Option(
        None, "--capture-timeout", help="Seconds to wait for the browser sign-in."
    ),
) -> None:
    """Fetch URL, completing the browser login if the server redirects to it.

    Raises:
        typer.Exit: With the error's exit code on any connector failure.
    """
    from loginbridge.client import RequestEngine
    from loginbridge.config import resolve_config

    try:
        form = parse_form_fields(data) if data else None
        _, connector = resolve_config(
            cli_overrides={
                "listener_port": port,
                "max_redirects": max_redirects,
                "timeout": timeout,
                "capture_timeout": capture_timeout,
            }
        )
        with RequestEngine(config=connector) as engine:
            body = engine.request(url, form)
    except LoginBridgeError as exc:
        error(str(exc))
        if isinstance(exc, RedirectLoopError):
            suggest("Raise the bound with --max-redirects if the chain is legitimate.")
        raise typer.Exit(code=exc.exit_code) from None

    format_response(body)
