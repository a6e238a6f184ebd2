"""Built-in CLI sub-commands for loginbridge.

- :func:`~loginbridge.commands.request.request_command` -- fetch a URL,
  signing in through the browser when needed.
- :data:`~loginbridge.commands.config.config_app` -- view and change the
  stored configuration.
"""
