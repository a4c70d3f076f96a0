"""
Terminal command builders.

Each supported terminal has one pure builder that turns the shell line to
run plus the window geometry into a LaunchCommand. Nothing here touches the
system; launcher.py does the spawning.
"""
from __future__ import annotations

import dataclasses as dc
import logging
import shlex
import shutil
import typing as t

from .config import Geometry, TerminalKind
from .pause import PauseDecision

LOGGER = logging.getLogger(__name__)

CMD_EXE = "cmd.exe"
WT_EXE = "wt.exe"
POSIX_SHELL = "bash"
POSIX_PAUSE = "printf 'Press Enter to exit...'; read _"

# Pixel -> character cell conversions
CMD_CELL = (8, 16)
WT_CELL = (9, 19)
POSIX_CELL = (8, 16)

LINUX_TERMINALS = (
    TerminalKind.ALACRITTY,
    TerminalKind.KITTY,
    TerminalKind.GNOME_TERMINAL,
    TerminalKind.KONSOLE,
    TerminalKind.XTERM,
)


@dc.dataclass(frozen=True)
class ConsoleSettings:
    """Per-title console geometry stored under HKCU\\Console\\<title>."""
    title: str
    x: int
    y: int
    columns: int
    rows: int
    auto_position: bool = False

    @property
    def position_word(self) -> int:
        return ((self.y & 0xFFFF) << 16) | (self.x & 0xFFFF)

    @property
    def size_word(self) -> int:
        return ((self.rows & 0xFFFF) << 16) | (self.columns & 0xFFFF)


@dc.dataclass(frozen=True)
class LaunchCommand:
    kind: TerminalKind
    args: tuple[str, ...] | str
    title: str
    new_console: bool = False
    console: ConsoleSettings | None = None
    # True when the spawned process lives exactly as long as the window
    waitable: bool = True

    def display(self) -> str:
        if isinstance(self.args, str):
            return self.args
        return shlex.join(self.args)


# ---------- shell line ----------


def _quote_windows(arg: str, force: bool = False) -> str:
    if arg.startswith('"') and arg.endswith('"') and len(arg) > 1:
        return arg
    if force or not arg or any(c in arg for c in ' \t&|<>^()'):
        return f'"{arg}"'
    return arg


def compose_command(
    app: str,
    args: t.Sequence[str],
    target: str | None,
    decision: PauseDecision,
    pager: str | None,
    windows: bool,
) -> str:
    """
    Build the line the shell inside the popup runs: app, quoted args, the
    target file last, then the optional pager pipe and pause step.
    """
    if windows:
        parts = [app] + [_quote_windows(a) for a in args]
        if target:
            parts.append(_quote_windows(target, force=True))
    else:
        parts = [app] + [shlex.quote(a) for a in args]
        if target:
            parts.append(shlex.quote(target))
    line = " ".join(parts)
    if decision.pager and pager:
        line += f" | {pager}"
    if decision.pause:
        line += " & pause" if windows else f"; {POSIX_PAUSE}"
    return line


def _cells(geometry: Geometry, cell: tuple[int, int]) -> tuple[int, int]:
    return max(1, geometry.width // cell[0]), max(1, geometry.height // cell[1])


def _x_geometry(geometry: Geometry) -> str:
    cols, rows = _cells(geometry, POSIX_CELL)
    value = f"{cols}x{rows}"
    if not geometry.auto_position:
        value += f"+{geometry.x}+{geometry.y}"
    return value


# ---------- builders ----------


def build_cmd(command: str, geometry: Geometry, title: str, wait: bool) -> LaunchCommand:
    cols, rows = _cells(geometry, CMD_CELL)
    console = ConsoleSettings(
        title=title,
        x=geometry.x,
        y=geometry.y,
        columns=cols,
        rows=rows,
        auto_position=geometry.auto_position,
    )
    line = f"{CMD_EXE} /C title {title} & {command}"
    return LaunchCommand(TerminalKind.CMD, line, title, new_console=True, console=console)


def build_windows_terminal(command: str, geometry: Geometry, title: str, wait: bool) -> LaunchCommand:
    args = [WT_EXE]
    if not geometry.auto_position:
        cols, rows = _cells(geometry, WT_CELL)
        args += ["--pos", f"{geometry.x},{geometry.y}", "--size", f"{cols},{rows}"]
    args += ["--title", title, CMD_EXE, "/C", command]
    # wt.exe hands the tab to an existing Terminal process and returns at once
    return LaunchCommand(TerminalKind.WINDOWS_TERMINAL, tuple(args), title, waitable=False)


def _applescript_string(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def build_terminal_app(command: str, geometry: Geometry, title: str, wait: bool) -> LaunchCommand:
    lines = [
        'tell application "Terminal"',
        "    activate",
        f'    do script "{_applescript_string(command)}; exit"',
        f'    set custom title of selected tab of front window to "{_applescript_string(title)}"',
    ]
    if not geometry.auto_position:
        right = geometry.x + geometry.width
        bottom = geometry.y + geometry.height
        lines.append(f"    set bounds of front window to {{{geometry.x}, {geometry.y}, {right}, {bottom}}}")
    lines.append("end tell")
    return LaunchCommand(
        TerminalKind.TERMINAL_APP,
        ("osascript", "-e", "\n".join(lines)),
        title,
        waitable=False,
    )


def build_alacritty(command: str, geometry: Geometry, title: str, wait: bool) -> LaunchCommand:
    cols, rows = _cells(geometry, POSIX_CELL)
    args = [
        "alacritty",
        "--title", title,
        "--option", f"window.dimensions.columns={cols}",
        "--option", f"window.dimensions.lines={rows}",
    ]
    if not geometry.auto_position:
        args += [
            "--option", f"window.position.x={geometry.x}",
            "--option", f"window.position.y={geometry.y}",
        ]
    args += ["-e", POSIX_SHELL, "-c", command]
    return LaunchCommand(TerminalKind.ALACRITTY, tuple(args), title)


def build_kitty(command: str, geometry: Geometry, title: str, wait: bool) -> LaunchCommand:
    cols, rows = _cells(geometry, POSIX_CELL)
    args = (
        "kitty",
        "--title", title,
        "-o", f"initial_window_width={cols}c",
        "-o", f"initial_window_height={rows}c",
        POSIX_SHELL, "-c", command,
    )
    return LaunchCommand(TerminalKind.KITTY, args, title)


def build_gnome_terminal(command: str, geometry: Geometry, title: str, wait: bool) -> LaunchCommand:
    args = ["gnome-terminal", "--title", title, f"--geometry={_x_geometry(geometry)}"]
    if wait:
        args.append("--wait")
    args += ["--", POSIX_SHELL, "-c", command]
    return LaunchCommand(TerminalKind.GNOME_TERMINAL, tuple(args), title, waitable=wait)


def build_konsole(command: str, geometry: Geometry, title: str, wait: bool) -> LaunchCommand:
    args = ["konsole", "-p", f"tabtitle={title}"]
    if wait:
        args.append("--nofork")
    args += ["-e", POSIX_SHELL, "-c", command]
    return LaunchCommand(TerminalKind.KONSOLE, tuple(args), title, waitable=wait)


def build_xterm(command: str, geometry: Geometry, title: str, wait: bool) -> LaunchCommand:
    args = ("xterm", "-T", title, "-geometry", _x_geometry(geometry), "-e", POSIX_SHELL, "-c", command)
    return LaunchCommand(TerminalKind.XTERM, args, title)


Builder = t.Callable[[str, Geometry, str, bool], LaunchCommand]

BUILDERS: dict[TerminalKind, Builder] = {
    TerminalKind.CMD: build_cmd,
    TerminalKind.WINDOWS_TERMINAL: build_windows_terminal,
    TerminalKind.TERMINAL_APP: build_terminal_app,
    TerminalKind.ALACRITTY: build_alacritty,
    TerminalKind.KITTY: build_kitty,
    TerminalKind.GNOME_TERMINAL: build_gnome_terminal,
    TerminalKind.KONSOLE: build_konsole,
    TerminalKind.XTERM: build_xterm,
}


def build_command(kind: TerminalKind, command: str, geometry: Geometry, title: str, wait: bool = False) -> LaunchCommand:
    try:
        builder = BUILDERS[kind]
    except KeyError:
        raise ValueError(f"No command builder for terminal {kind.value!r}") from None
    return builder(command, geometry, title, wait)


def terminal_candidates(
    kind: TerminalKind,
    platform: str,
    which: t.Callable[[str], str | None] = shutil.which,
) -> list[TerminalKind]:
    """Terminals to try, in order. Auto picks the platform default or installed Linux emulators."""
    if kind is not TerminalKind.AUTO:
        return [kind]
    if platform == "windows":
        return [TerminalKind.CMD]
    if platform == "macos":
        return [TerminalKind.TERMINAL_APP]
    found = [k for k in LINUX_TERMINALS if which(k.value)]
    LOGGER.debug("Detected terminals: %s", [k.value for k in found])
    return found


def uses_windows_shell(kind: TerminalKind) -> bool:
    return kind in (TerminalKind.CMD, TerminalKind.WINDOWS_TERMINAL)
