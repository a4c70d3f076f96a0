from __future__ import annotations

import ctypes
import logging
import subprocess
import sys

from . import ui
from .config import current_platform

LOGGER = logging.getLogger(__name__)

DIALOG_TITLE = "rund - Error"
MB_OK = 0x00000000
MB_ICONERROR = 0x00000010
MB_TASKMODAL = 0x00002000


def _stderr_is_tty() -> bool:
    stream = sys.stderr
    return bool(stream is not None and stream.isatty())


def _dialog_windows(msg: str) -> None:
    ctypes.windll.user32.MessageBoxW(  # type: ignore[attr-defined]
        None, msg, DIALOG_TITLE, MB_OK | MB_ICONERROR | MB_TASKMODAL
    )


def _dialog_macos(msg: str) -> None:
    escaped = msg.replace("\\", "\\\\").replace('"', '\\"')
    script = (
        f'display dialog "{escaped}" with title "{DIALOG_TITLE}" '
        'buttons {"OK"} default button "OK" with icon stop'
    )
    subprocess.run(["osascript", "-e", script], capture_output=True, check=False)


def _dialog_linux(msg: str) -> None:
    candidates = (
        ["zenity", "--error", f"--title={DIALOG_TITLE}", f"--text={msg}", "--width=400"],
        ["kdialog", "--error", msg, "--title", DIALOG_TITLE],
        ["notify-send", "-u", "critical", DIALOG_TITLE, msg],
    )
    for argv in candidates:
        try:
            subprocess.run(argv, capture_output=True, check=False)
            return
        except FileNotFoundError:
            continue
    LOGGER.debug("No dialog tool available (zenity/kdialog/notify-send)")


def show_dialog(msg: str, platform: str | None = None) -> None:
    platform = platform or current_platform()
    try:
        if platform == "windows":
            _dialog_windows(msg)
        elif platform == "macos":
            _dialog_macos(msg)
        else:
            _dialog_linux(msg)
    except OSError as e:
        LOGGER.debug("Error dialog failed: %s", e)


def show_error(msg: str, platform: str | None = None, interactive: bool | None = None) -> None:
    """
    Print the error to stderr. When there is no terminal to read it from
    (hotkey or launcher invocation), also pop up a native dialog.
    """
    ui.log_error(msg)
    if interactive is None:
        interactive = _stderr_is_tty()
    if not interactive:
        show_dialog(msg, platform)
