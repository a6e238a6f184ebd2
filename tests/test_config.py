"""Tests for loginbridge.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from loginbridge.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    load_global_config,
    load_project_config,
    resolve_config,
    save_global_config,
)
from loginbridge.exceptions import ConfigError
from loginbridge.models import ConnectorConfig, GlobalConfig, OutputConfig


def _write_json(path: Path, data: Any) -> None:
    """Write *data* as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("loginbridge.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)

        result = get_config_dir()
        assert result == tmp_path / ".config" / "loginbridge"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("loginbridge.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "custom"))

        assert get_config_dir() == tmp_path / "custom" / "loginbridge"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("loginbridge.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)

        assert get_data_dir() == tmp_path / ".local" / "share" / "loginbridge"

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("loginbridge.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)

        assert get_config_dir() == tmp_path / ".loginbridge"

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("loginbridge.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)

        assert get_data_dir() == tmp_path / ".loginbridge" / "logs"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "out.json"
        _atomic_write(target, '{"a": 1}')
        assert target.read_text(encoding="utf-8") == '{"a": 1}'

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "out.json"
        _atomic_write(target, "x")
        assert target.read_text(encoding="utf-8") == "x"

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "out.json"
        with patch("loginbridge.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                _atomic_write(target, "data")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        config = load_global_config()
        assert config == GlobalConfig()
        assert config.connector.max_redirects == 7
        assert config.connector.listener_port == 8765
        assert config.connector.capture_timeout is None

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        config = GlobalConfig(
            connector=ConnectorConfig(listener_port=9000, capture_timeout=120),
            output=OutputConfig(format="json"),
        )
        save_global_config(config)

        loaded = load_global_config()
        assert loaded.connector.listener_port == 9000
        assert loaded.connector.capture_timeout == 120
        assert loaded.output.format == "json"

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text("{broken", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(get_config_dir() / "config.json", {"connector": {"listener_port": 70000}})
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Model validation
# ---------------------------------------------------------------------------


class TestConnectorConfig:
    def test_login_path_normalised(self) -> None:
        assert ConnectorConfig(login_path="signin/").login_path == "/signin"

    def test_callback_path_normalised(self) -> None:
        assert ConnectorConfig(callback_path="/cb/").callback_path == "cb"

    def test_negative_bound_rejected(self) -> None:
        with pytest.raises(ValueError):
            ConnectorConfig(max_redirects=-1)


# ---------------------------------------------------------------------------
# Project config and precedence
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_load_returns_none_when_missing(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_load_valid_project_config(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "loginbridge.json", {"listener_port": 9100})
        assert load_project_config() == {"listener_port": 9100}

    def test_non_object_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "loginbridge.json", [1, 2])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config()


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        _, connector = resolve_config()
        assert connector == ConnectorConfig()

    def test_global_config_used(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(connector=ConnectorConfig(max_redirects=3)))
        _, connector = resolve_config()
        assert connector.max_redirects == 3

    def test_project_overrides_global(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(connector=ConnectorConfig(listener_port=9000)))
        _write_json(isolated_config / "loginbridge.json", {"listener_port": 9100})
        _, connector = resolve_config()
        assert connector.listener_port == 9100

    def test_env_overrides_project(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "loginbridge.json", {"listener_port": 9100})
        monkeypatch.setenv("LOGINBRIDGE_PORT", "9200")
        monkeypatch.setenv("LOGINBRIDGE_CAPTURE_TIMEOUT", "2.5")
        _, connector = resolve_config()
        assert connector.listener_port == 9200
        assert connector.capture_timeout == 2.5

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LOGINBRIDGE_MAX_REDIRECTS", "4")
        _, connector = resolve_config(cli_overrides={"max_redirects": 12})
        assert connector.max_redirects == 12

    def test_cli_none_values_ignored(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LOGINBRIDGE_MAX_REDIRECTS", "4")
        _, connector = resolve_config(cli_overrides={"max_redirects": None})
        assert connector.max_redirects == 4

    def test_invalid_env_value_raises_config_error(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LOGINBRIDGE_PORT", "not-a-port")
        with pytest.raises(ConfigError, match="Invalid connector settings"):
            resolve_config()

    def test_cli_format_overrides_global(self, isolated_config: Path) -> None:
        global_cfg, _ = resolve_config(cli_format="json")
        assert global_cfg.output.format == "json"
