"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~loginbridge.exceptions.LoginBridgeError` subclass.
Shell wrappers can inspect the exit code to tell the failure class apart
without parsing stderr.

Example::

    $ loginbridge request https://service.example.com/loop
    $ echo $?
    3   # EXIT_REDIRECT_LOOP -- the server kept redirecting
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_REDIRECT_LOOP = 3
"""The redirect bound was exceeded for a single request."""

EXIT_TOKEN_CAPTURE = 4
"""The local listener could not capture a login token."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
