"""Pytest fixtures and configuration for rund tests."""
from __future__ import annotations

import pathlib

import pytest

from rund import ui
from rund.config import Config, Geometry, PauseBehavior, TerminalKind


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with all system calls mocked")


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch, tmp_path):
    """Keep config lookups inside the test's temp directory."""
    monkeypatch.delenv("RUND_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "appdata"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    ui.set_verbose(False)


@pytest.fixture
def temp_config_file(tmp_path, monkeypatch):
    """Config path exported through RUND_CONFIG."""
    path = tmp_path / "cfg" / "config.toml"
    monkeypatch.setenv("RUND_CONFIG", str(path))
    return path


@pytest.fixture
def sample_config(tmp_path):
    return Config(
        geometry=Geometry(width=800, height=600, x=100, y=100),
        terminal=TerminalKind.XTERM,
        pause_behavior=PauseBehavior.AUTO,
        backup_dir=tmp_path / "backups",
        app_geometries={"bat": Geometry(width=1200, height=800, x=200, y=150)},
    )


@pytest.fixture
def text_file(tmp_path):
    """Factory writing a file with `lines` lines."""
    def _make(name: str = "notes.txt", lines: int = 3) -> pathlib.Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(f"line {i}\n" for i in range(lines)), encoding="utf-8")
        return path
    return _make


@pytest.fixture
def mock_popen(mocker):
    """Mock subprocess.Popen as seen by the launcher."""
    mock = mocker.patch("rund.launcher.subprocess.Popen")
    proc = mocker.MagicMock()
    proc.wait.return_value = 0
    mock.return_value = proc
    return mock
