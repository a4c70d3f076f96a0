from __future__ import annotations

import dataclasses as dc
import logging
import pathlib
import time
import typing as t

from . import ui
from .backup import BackupWatch
from .clipboard import clipboard_to_file
from .config import Config, current_platform
from .launcher import launch_first, raise_window, wait_for
from .pause import count_lines, resolve_pager, resolve_pause
from .terminals import (
    LaunchCommand,
    build_command,
    compose_command,
    terminal_candidates,
    uses_windows_shell,
)

LOGGER = logging.getLogger(__name__)


@dc.dataclass(frozen=True)
class Invocation:
    app: str
    args: tuple[str, ...] = ()
    use_clipboard: bool = False
    output_file: pathlib.Path | None = None
    backup_dir: pathlib.Path | None = None
    always_on_top: bool = False


@dc.dataclass(frozen=True)
class RunResult:
    command: LaunchCommand
    target: pathlib.Path | None = None
    backup: pathlib.Path | None = None
    waited: bool = False


def window_title(now: float | None = None) -> str:
    return f"rund_{int(now if now is not None else time.time())}"


def prepare_target(inv: Invocation) -> pathlib.Path | None:
    """
    The file handed to the app as its last argument:
      -o + -c -> clipboard written into the output file
      -o      -> the output file as is
      -c      -> clipboard written into a temp file
    """
    if inv.output_file is not None:
        if inv.use_clipboard:
            clipboard_to_file(inv.output_file)
        return inv.output_file
    if inv.use_clipboard:
        return clipboard_to_file()
    return None


def line_source(target: pathlib.Path | None, args: t.Iterable[str]) -> pathlib.Path | None:
    if target is not None:
        return target
    for arg in args:
        candidate = pathlib.Path(arg)
        if candidate.is_file():
            return candidate
    return None


def build_commands(inv: Invocation, config: Config, target: pathlib.Path | None, platform: str, wait: bool) -> list[LaunchCommand]:
    """One LaunchCommand per terminal candidate, in launch order."""
    decision = resolve_pause(inv.app, config, count_lines(line_source(target, inv.args)))
    geometry = config.geometry_for(inv.app)
    title = window_title()

    commands = []
    for kind in terminal_candidates(config.terminal, platform):
        windows = uses_windows_shell(kind)
        pager = resolve_pager(inv.app, config, "windows" if windows else "posix") if decision.pager else None
        line = compose_command(
            inv.app,
            inv.args,
            str(target) if target is not None else None,
            decision,
            pager,
            windows,
        )
        commands.append(build_command(kind, line, geometry, title, wait=wait))
    return commands


def run_in_terminal(inv: Invocation, config: Config, platform: str | None = None) -> RunResult:
    """
    Launch `inv` in a popup terminal. When a target file is involved and the
    terminal can be waited on, block until the window closes and back the
    file up if it changed.
    """
    platform = platform or current_platform()
    target = prepare_target(inv)
    watch = BackupWatch(target, inv.backup_dir or config.backup_dir) if target is not None else None

    commands = build_commands(inv, config, target, platform, wait=watch is not None)
    command, proc = launch_first(commands, platform)
    ui.log_info(f"Launched {command.kind.value}: {command.display()}")

    if inv.always_on_top:
        raise_window(command.title, platform)

    if watch is None:
        return RunResult(command, target)
    if not command.waitable:
        ui.log_warning(f"{command.kind.value} returns before the window closes; not tracking changes to {target}.")
        return RunResult(command, target)

    wait_for(proc)
    backup = watch.finish()
    if backup is not None:
        ui.log_success(f"Backup created: {backup}")
    return RunResult(command, target, backup, waited=True)
