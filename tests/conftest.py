"""Shared test fixtures for loginbridge.

Provides fixtures for isolated config directories, output state, stub
collaborators for the login handshake, and the Typer CLI runner. pytest
discovers them automatically for every test module.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional
from unittest.mock import MagicMock

import pytest

from loginbridge.auth.browser import BrowserLauncher
from loginbridge.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When the CLI runner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager on next use.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format output manager."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Handshake collaborators
# ---------------------------------------------------------------------------


class StubListener:
    """Stands in for TokenCaptureListener: hands out queued tokens in order."""

    callback_url = "http://localhost:8765/intelliMind"

    def __init__(self, *tokens: Optional[str]) -> None:
        self._tokens = list(tokens)
        self.calls = 0

    def capture_token(self, launch: Optional[Callable[[], None]] = None) -> Optional[str]:
        self.calls += 1
        if launch is not None:
            launch()
        return self._tokens.pop(0) if self._tokens else None


@pytest.fixture
def launcher() -> MagicMock:
    """A browser launcher that records the URLs it was asked to open."""
    return MagicMock(spec=BrowserLauncher)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME at subdirectories of
    tmp_path, clears LOGINBRIDGE_* environment variables and changes the
    working directory to tmp_path.
    """
    monkeypatch.setattr("loginbridge.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "LOGINBRIDGE_PORT",
        "LOGINBRIDGE_MAX_REDIRECTS",
        "LOGINBRIDGE_CAPTURE_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def make_listener() -> type[StubListener]:
    """Factory for :class:`StubListener` instances: ``make_listener("tok1", None)``."""
    return StubListener
