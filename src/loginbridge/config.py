"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for loginbridge:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.loginbridge/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~loginbridge.models.GlobalConfig`
  JSON file holding connector and output defaults.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  effective :class:`~loginbridge.models.ConnectorConfig`.

Tokens are never written here; they live only in memory on a
:class:`~loginbridge.session.Session`.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from loginbridge.exceptions import ConfigError
from loginbridge.models import ConnectorConfig, GlobalConfig

_APP_NAME = "loginbridge"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "loginbridge.json"

# Environment variable -> ConnectorConfig field
_ENV_OVERRIDES = {
    "LOGINBRIDGE_PORT": "listener_port",
    "LOGINBRIDGE_MAX_REDIRECTS": "max_redirects",
    "LOGINBRIDGE_CAPTURE_TIMEOUT": "capture_timeout",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/loginbridge/`` (default ``~/.config/loginbridge/``).
    On macOS/Windows: ``~/.loginbridge/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/loginbridge/`` (default ``~/.local/share/loginbridge/``).
    On macOS/Windows: ``~/.loginbridge/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~loginbridge.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk.

    Args:
        config: The configuration to save.
    """
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local connector settings from ``./loginbridge.json``.

    The file holds a flat mapping of :class:`~loginbridge.models.ConnectorConfig`
    fields, e.g. ``{"listener_port": 9000}``, so that a repository can pin
    the listener address its service expects.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def _env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for var, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(var)
        if value:
            overrides[field_name] = value
    return overrides


def resolve_config(
    cli_overrides: Optional[dict[str, Any]] = None,
    cli_format: Optional[str] = None,
) -> tuple[GlobalConfig, ConnectorConfig]:
    """Resolve the effective connector config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_overrides``; ``None`` values are ignored)
        2. Environment variables (``LOGINBRIDGE_PORT``,
           ``LOGINBRIDGE_MAX_REDIRECTS``, ``LOGINBRIDGE_CAPTURE_TIMEOUT``)
        3. Project config (``./loginbridge.json``)
        4. User config (``~/.config/loginbridge/config.json``)
        5. Defaults

    Returns:
        A tuple of ``(global_config, connector_config)``.

    Raises:
        ConfigError: If the merged values fail validation.
    """
    global_cfg = load_global_config()
    merged: dict[str, Any] = global_cfg.connector.model_dump()

    project = load_project_config()
    if project is not None:
        merged.update(project)

    merged.update(_env_overrides())

    for key, value in (cli_overrides or {}).items():
        if value is not None:
            merged[key] = value

    try:
        connector = ConnectorConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid connector settings: {exc}") from exc

    if cli_format is not None:
        global_cfg.output.format = cli_format

    return global_cfg, connector
