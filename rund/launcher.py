from __future__ import annotations

import ctypes
import logging
import shutil
import subprocess
import time
import typing as t

from . import ui
from .errors import LaunchError
from .terminals import LINUX_TERMINALS, ConsoleSettings, LaunchCommand

LOGGER = logging.getLogger(__name__)

CREATE_NEW_CONSOLE = getattr(subprocess, "CREATE_NEW_CONSOLE", 0x00000010)
HWND_TOPMOST = -1
SWP_NOSIZE = 0x0001
SWP_NOMOVE = 0x0002

_ENUM_WINDOWS_PROC = getattr(ctypes, "WINFUNCTYPE", ctypes.CFUNCTYPE)(
    ctypes.c_bool, ctypes.c_void_p, ctypes.c_void_p
)

NO_TERMINAL_MSG = "No supported terminal found. Please install: " + ", ".join(
    k.value for k in LINUX_TERMINALS
)


def apply_console_settings(settings: ConsoleSettings) -> None:
    """
    Store window position/size for consoles titled `settings.title`
    (HKCU\\Console\\<title>). With auto_position the values are removed so
    Windows picks the placement.
    """
    try:
        import winreg  # type: ignore
    except ImportError as e:  # pragma: no cover - non-Windows
        raise LaunchError("winreg unavailable; cmd.exe geometry needs Windows") from e

    key_path = f"Console\\{settings.title}"
    try:
        with winreg.CreateKeyEx(winreg.HKEY_CURRENT_USER, key_path, 0, winreg.KEY_WRITE) as key:
            if settings.auto_position:
                for name in ("WindowPosition", "WindowSize"):
                    try:
                        winreg.DeleteValue(key, name)
                    except FileNotFoundError:
                        pass
            else:
                winreg.SetValueEx(key, "WindowPosition", 0, winreg.REG_DWORD, settings.position_word)
                winreg.SetValueEx(key, "WindowSize", 0, winreg.REG_DWORD, settings.size_word)
    except OSError as e:
        raise LaunchError(f"Failed to create registry key {key_path}: {e}") from e


def spawn(command: LaunchCommand, platform: str) -> subprocess.Popen:
    """Start the terminal detached from this process."""
    kwargs: dict[str, t.Any] = {}
    if command.new_console:
        kwargs["creationflags"] = CREATE_NEW_CONSOLE
    elif platform != "windows":
        kwargs.update(
            start_new_session=True,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    if command.console is not None:
        apply_console_settings(command.console)

    LOGGER.debug("Spawning: %s", command.display())
    try:
        return subprocess.Popen(command.args, **kwargs)
    except OSError as e:
        raise LaunchError(f"Failed to launch {command.kind.value}: {e}") from e


def launch_first(commands: t.Sequence[LaunchCommand], platform: str) -> tuple[LaunchCommand, subprocess.Popen]:
    """Spawn the first command that starts; LaunchError if none does."""
    if not commands:
        raise LaunchError(NO_TERMINAL_MSG)
    errors: list[str] = []
    for command in commands:
        try:
            return command, spawn(command, platform)
        except LaunchError as e:
            LOGGER.debug("%s", e)
            errors.append(str(e))
    if len(commands) == 1:
        raise LaunchError(errors[0])
    raise LaunchError(f"{NO_TERMINAL_MSG} ({'; '.join(errors)})")


def wait_for(proc: subprocess.Popen) -> int:
    return proc.wait()


# ---------- always-on-top ----------


def _user32():
    return ctypes.windll.user32  # type: ignore[attr-defined]


def _find_window(user32, prefix: str) -> int | None:
    """First top-level window whose title starts with `prefix`.

    cmd.exe appends the running command to the console title:
    "rund_<ts> - nvim file".
    """
    found: list[int] = []

    def _check(hwnd, _lparam):
        length = user32.GetWindowTextLengthW(hwnd)
        if length <= 0:
            return True
        buf = ctypes.create_unicode_buffer(length + 1)
        user32.GetWindowTextW(hwnd, buf, length + 1)
        if buf.value.startswith(prefix):
            found.append(hwnd)
            return False
        return True

    user32.EnumWindows(_ENUM_WINDOWS_PROC(_check), 0)
    return found[0] if found else None


def _topmost_windows(title: str) -> bool:
    user32 = _user32()
    hwnd = _find_window(user32, title)
    if hwnd is None:
        return False
    return bool(user32.SetWindowPos(hwnd, HWND_TOPMOST, 0, 0, 0, 0, SWP_NOMOVE | SWP_NOSIZE))


def _topmost_wmctrl(title: str) -> bool:
    proc = subprocess.run(
        ["wmctrl", "-r", title, "-b", "add,above"],
        capture_output=True,
        text=True,
        check=False,
    )
    return proc.returncode == 0


def raise_window(title: str, platform: str, attempts: int = 10, delay: float = 0.2) -> bool:
    """
    Best-effort: keep the window titled `title` above others. Polls until the
    window shows up or `attempts` run out.
    """
    if platform == "windows":
        attempt = _topmost_windows
    elif platform == "linux":
        if shutil.which("wmctrl") is None:
            ui.log_warning("Always-on-top needs 'wmctrl' on Linux.")
            return False
        attempt = _topmost_wmctrl
    else:
        ui.log_warning(f"Always-on-top is not supported on {platform}.")
        return False

    for _ in range(attempts):
        if attempt(title):
            LOGGER.debug("Window %r set always-on-top", title)
            return True
        time.sleep(delay)
    ui.log_warning(f"Could not find window {title!r} to keep on top.")
    return False
