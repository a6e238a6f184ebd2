"""Exception hierarchy for loginbridge.

All exceptions inherit from :class:`LoginBridgeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`loginbridge.exit_codes`.
The top-level error handler in :func:`loginbridge.app.main` catches
``LoginBridgeError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    LoginBridgeError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- RedirectLoopError   (exit 3)
    +-- TokenCaptureError   (exit 4)
    +-- ConnectionError_    (exit 6)
    +-- ConfigError         (exit 1)
"""

from __future__ import annotations

from loginbridge.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_REDIRECT_LOOP,
    EXIT_TOKEN_CAPTURE,
)


class LoginBridgeError(Exception):
    """Base exception for all loginbridge errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`loginbridge.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(LoginBridgeError):
    """Raised for invalid CLI arguments such as a malformed ``--data`` pair."""

    exit_code = EXIT_INVALID_USAGE


class RedirectLoopError(LoginBridgeError):
    """Raised when one request observes more redirects than the configured bound.

    Args:
        location: The last redirect target the server sent, kept so the
            caller can see where the chain was heading.
        redirects: How many redirects had been observed when the bound
            was exceeded.
    """

    exit_code = EXIT_REDIRECT_LOOP

    def __init__(self, location: str, redirects: int | None = None):
        message = f"Too many redirects, last location: {location}"
        if redirects is not None:
            message = f"Too many redirects ({redirects}), last location: {location}"
        super().__init__(message)
        self.location = location
        self.redirects = redirects


class TokenCaptureError(LoginBridgeError):
    """Raised inside the token listener when bind, accept, read, or write fails.

    :meth:`~loginbridge.auth.listener.TokenCaptureListener.capture_token`
    never lets this escape: it is reported as a warning and the capture
    yields no token.
    """

    exit_code = EXIT_TOKEN_CAPTURE


class ConnectionError_(LoginBridgeError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(LoginBridgeError):
    """Raised for configuration problems (invalid JSON, values that fail validation)."""

    exit_code = EXIT_GENERIC_FAILURE
