"""Tests for rund.launcher module."""
from __future__ import annotations

import subprocess
import sys
from unittest.mock import MagicMock

import pytest

from rund.config import Geometry, TerminalKind
from rund.errors import LaunchError
from rund.launcher import (
    CREATE_NEW_CONSOLE,
    NO_TERMINAL_MSG,
    apply_console_settings,
    launch_first,
    raise_window,
    spawn,
    wait_for,
)
from rund.terminals import ConsoleSettings, build_cmd, build_kitty, build_xterm

GEOM = Geometry()


@pytest.fixture
def fake_winreg(monkeypatch):
    """Stand-in winreg module so registry writes can be asserted off Windows."""
    fake = MagicMock()
    fake.HKEY_CURRENT_USER = "HKCU"
    fake.KEY_WRITE = 0x20006
    fake.REG_DWORD = 4
    key = MagicMock(name="key")
    fake.CreateKeyEx.return_value.__enter__.return_value = key
    monkeypatch.setitem(sys.modules, "winreg", fake)
    return fake, key


@pytest.mark.unit
class TestApplyConsoleSettings:
    def test_writes_position_and_size(self, fake_winreg):
        fake, key = fake_winreg
        settings = ConsoleSettings(title="rund_1", x=100, y=200, columns=100, rows=37)

        apply_console_settings(settings)

        fake.CreateKeyEx.assert_called_once_with("HKCU", "Console\\rund_1", 0, 0x20006)
        fake.SetValueEx.assert_any_call(key, "WindowPosition", 0, 4, settings.position_word)
        fake.SetValueEx.assert_any_call(key, "WindowSize", 0, 4, settings.size_word)

    def test_auto_position_deletes_values(self, fake_winreg):
        fake, key = fake_winreg
        fake.DeleteValue.side_effect = [None, FileNotFoundError()]
        settings = ConsoleSettings(title="rund_1", x=0, y=0, columns=1, rows=1, auto_position=True)

        apply_console_settings(settings)

        assert fake.DeleteValue.call_count == 2
        fake.SetValueEx.assert_not_called()

    def test_registry_failure(self, fake_winreg):
        fake, _ = fake_winreg
        fake.CreateKeyEx.side_effect = PermissionError("denied")

        with pytest.raises(LaunchError, match="registry"):
            apply_console_settings(ConsoleSettings(title="t", x=0, y=0, columns=1, rows=1))


@pytest.mark.unit
class TestSpawn:
    def test_posix_detached(self, mock_popen):
        command = build_xterm("nvim", GEOM, "rund_1", wait=False)

        proc = spawn(command, "linux")

        assert proc is mock_popen.return_value
        args, kwargs = mock_popen.call_args
        assert args[0] == command.args
        assert kwargs["start_new_session"] is True
        assert kwargs["stdout"] is subprocess.DEVNULL

    def test_cmd_new_console_with_registry(self, mock_popen, mocker):
        apply = mocker.patch("rund.launcher.apply_console_settings")
        command = build_cmd("nvim", GEOM, "rund_1", wait=True)

        spawn(command, "windows")

        apply.assert_called_once_with(command.console)
        args, kwargs = mock_popen.call_args
        assert args[0] == "cmd.exe /C title rund_1 & nvim"
        assert kwargs == {"creationflags": CREATE_NEW_CONSOLE}

    def test_missing_binary(self, mock_popen):
        mock_popen.side_effect = FileNotFoundError("kitty")

        with pytest.raises(LaunchError, match="Failed to launch kitty"):
            spawn(build_kitty("nvim", GEOM, "t", wait=False), "linux")


@pytest.mark.unit
class TestLaunchFirst:
    def test_falls_through_to_working_terminal(self, mock_popen):
        proc = MagicMock()
        mock_popen.side_effect = [FileNotFoundError("kitty"), proc]
        commands = [build_kitty("nvim", GEOM, "t", False), build_xterm("nvim", GEOM, "t", False)]

        command, result = launch_first(commands, "linux")

        assert command.kind is TerminalKind.XTERM
        assert result is proc

    def test_no_candidates(self):
        with pytest.raises(LaunchError, match="No supported terminal found"):
            launch_first([], "linux")

    def test_all_fail(self, mock_popen):
        mock_popen.side_effect = FileNotFoundError("nope")
        commands = [build_kitty("nvim", GEOM, "t", False), build_xterm("nvim", GEOM, "t", False)]

        with pytest.raises(LaunchError) as exc_info:
            launch_first(commands, "linux")

        assert NO_TERMINAL_MSG in str(exc_info.value)

    def test_single_failure_keeps_message(self, mock_popen):
        mock_popen.side_effect = OSError("bad exe")

        with pytest.raises(LaunchError, match="Failed to launch xterm: bad exe"):
            launch_first([build_xterm("nvim", GEOM, "t", False)], "linux")


@pytest.mark.unit
def test_wait_for_returns_exit_code():
    proc = MagicMock()
    proc.wait.return_value = 3

    assert wait_for(proc) == 3


@pytest.mark.unit
class TestRaiseWindow:
    def test_linux_wmctrl_retries(self, mocker):
        mocker.patch("rund.launcher.shutil.which", return_value="/usr/bin/wmctrl")
        sleep = mocker.patch("rund.launcher.time.sleep")
        run = mocker.patch(
            "rund.launcher.subprocess.run",
            side_effect=[MagicMock(returncode=1), MagicMock(returncode=0)],
        )

        assert raise_window("rund_1", "linux") is True
        assert run.call_count == 2
        assert run.call_args[0][0] == ["wmctrl", "-r", "rund_1", "-b", "add,above"]
        sleep.assert_called_once()

    def test_linux_without_wmctrl(self, mocker):
        mocker.patch("rund.launcher.shutil.which", return_value=None)
        warn = mocker.patch("rund.launcher.ui.log_warning")

        assert raise_window("rund_1", "linux") is False
        warn.assert_called_once()

    def test_window_never_appears(self, mocker):
        mocker.patch("rund.launcher.shutil.which", return_value="/usr/bin/wmctrl")
        mocker.patch("rund.launcher.time.sleep")
        mocker.patch("rund.launcher.subprocess.run", return_value=MagicMock(returncode=1))
        warn = mocker.patch("rund.launcher.ui.log_warning")

        assert raise_window("rund_1", "linux", attempts=3) is False
        assert "rund_1" in warn.call_args[0][0]

    def test_windows_uses_topmost(self, mocker):
        topmost = mocker.patch("rund.launcher._topmost_windows", return_value=True)

        assert raise_window("rund_1", "windows") is True
        topmost.assert_called_once_with("rund_1")

    def test_macos_unsupported(self, mocker):
        warn = mocker.patch("rund.launcher.ui.log_warning")

        assert raise_window("rund_1", "macos") is False
        warn.assert_called_once()


def _fake_user32(titles):
    """user32 stand-in whose EnumWindows walks `titles` (hwnd -> window text)."""
    user32 = MagicMock()
    user32.GetWindowTextLengthW.side_effect = lambda hwnd: len(titles[hwnd])
    user32.GetWindowTextW.side_effect = lambda hwnd, buf, size: setattr(buf, "value", titles[hwnd])

    def enum_windows(proc, lparam):
        for hwnd in titles:
            if not proc(hwnd, lparam):
                break
        return True

    user32.EnumWindows.side_effect = enum_windows
    user32.SetWindowPos.return_value = 1
    return user32


@pytest.mark.unit
class TestTopmostWindows:
    def test_matches_title_with_running_command(self, mocker):
        user32 = _fake_user32({11: "Program Manager", 12: "", 13: 'rund_1 - nvim "x"'})
        mocker.patch("rund.launcher._user32", return_value=user32)

        assert raise_window("rund_1", "windows") is True
        assert user32.SetWindowPos.call_args[0][:2] == (13, -1)

    def test_exact_title(self, mocker):
        user32 = _fake_user32({5: "rund_1"})
        mocker.patch("rund.launcher._user32", return_value=user32)

        assert raise_window("rund_1", "windows") is True

    def test_other_windows_ignored(self, mocker):
        user32 = _fake_user32({11: "Program Manager", 12: "notes - rund_1"})
        mocker.patch("rund.launcher._user32", return_value=user32)
        mocker.patch("rund.launcher.time.sleep")
        mocker.patch("rund.launcher.ui.log_warning")

        assert raise_window("rund_1", "windows", attempts=2) is False
        user32.SetWindowPos.assert_not_called()
