"""Pydantic models shared across loginbridge.

Configuration models are serialised as JSON in the user's config directory
(see :mod:`loginbridge.config`):

* :class:`ConnectorConfig` -- everything the request engine and the token
  listener need: redirect bound, login-page pattern, listener address,
  timeouts.
* :class:`OutputConfig` -- default output preferences.
* :class:`GlobalConfig` -- the top-level document holding both.

:class:`PendingRequest` is not persisted; it describes one logical call
while the engine walks its redirect chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field, field_validator


DEFAULT_MAX_REDIRECTS = 7
DEFAULT_LISTENER_PORT = 8765
DEFAULT_ACKNOWLEDGEMENT = "You may now close this page."


class ConnectorConfig(BaseModel):
    """Settings for the request engine and the token capture listener.

    The listener address has to match what the remote service is willing
    to redirect back to, so ``listener_host``, ``listener_port`` and
    ``callback_path`` are usually agreed with the service operator.

    Example::

        ConnectorConfig(listener_port=9000, max_redirects=10)
    """

    max_redirects: int = Field(
        default=DEFAULT_MAX_REDIRECTS,
        ge=0,
        description="Redirects followed per request before giving up",
    )
    login_path: str = Field(
        default="/login",
        description="Path suffix that marks a redirect as a login page",
    )
    token_field: str = Field(
        default="token",
        description="Query parameter / form field the token is sent back in",
    )
    listener_host: str = Field(
        default="localhost", description="Interface the token listener binds to"
    )
    listener_port: int = Field(
        default=DEFAULT_LISTENER_PORT,
        ge=0,
        le=65535,
        description="Fixed port of the token listener",
    )
    callback_path: str = Field(
        default="intelliMind",
        description="Path of the listener URL handed to the login page",
    )
    buffer_size: int = Field(
        default=1024, gt=0, description="Bytes read from the browser callback"
    )
    acknowledgement: str = Field(
        default=DEFAULT_ACKNOWLEDGEMENT,
        description="Plain-text reply sent to the browser after capture",
    )
    capture_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the browser callback (None = forever)",
    )
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")

    @field_validator("login_path")
    @classmethod
    def _login_path_has_slash(cls, value: str) -> str:
        if not value.startswith("/"):
            value = "/" + value
        return value.rstrip("/") or "/"

    @field_validator("callback_path")
    @classmethod
    def _strip_callback_slashes(cls, value: str) -> str:
        return value.strip("/")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/loginbridge/config.json``.

    Loaded and saved by :func:`~loginbridge.config.load_global_config` and
    :func:`~loginbridge.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~loginbridge.config.resolve_config`.
    """

    connector: ConnectorConfig = Field(default_factory=ConnectorConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


@dataclass
class PendingRequest:
    """One logical call in flight: where it goes next and what it carries.

    ``url`` is the original target and never changes; ``next_url`` is the
    hop about to be sent. ``form_data`` is ``None`` for a GET.
    """

    url: str
    form_data: Optional[dict[str, str]] = None
    next_url: str = ""
    redirects: int = 0

    def __post_init__(self) -> None:
        if not self.next_url:
            self.next_url = self.url

    @property
    def method(self) -> str:
        return "GET" if self.form_data is None else "POST"
