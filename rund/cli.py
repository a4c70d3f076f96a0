from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import NoReturn, Sequence

from . import __version__, notify, ui
from .config import Config, load_config, resolve_config_path
from .errors import RundError
from .paths import resolve_arguments, resolve_path
from .runner import Invocation, run_in_terminal

LOGGER = logging.getLogger(__name__)

EXIT_IO_ERROR = 5


def _epilog() -> str:
    return (
        "Examples:\n"
        "  rund nvim file.txt\n"
        "  rund -c -o ~/tmp/test.py bat\n"
        "  rund -t \"python -m rich.emoji\"\n"
        "\n"
        "Arguments naming existing files are passed to APP as absolute paths.\n"
        f"Config file: {resolve_config_path()} (override with RUND_CONFIG)\n"
    )


class RundArgumentParser(argparse.ArgumentParser):
    """Usage errors also reach hotkey launches through notify.show_error."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        notify.show_error(f"{self.prog}: {message}")
        self.exit(2)


def build_parser() -> argparse.ArgumentParser:
    p = RundArgumentParser(
        prog="rund",
        description="Run CLI apps in a detached terminal popup",
        epilog=_epilog(),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    p.add_argument("--version", "-V", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--clipboard", "-c", action="store_true", help="Read clipboard to file (temp file unless -o is given)")
    p.add_argument("--output", "-o", metavar="FILE", help="Output file path; passed to APP as its last argument")
    p.add_argument("--backup", "-b", metavar="DIR", help="Override backup directory")
    p.add_argument("--top", "-t", action="store_true", help="Keep the popup always-on-top")
    p.add_argument("--config", dest="show_config", action="store_true", help="Show config file path and exit")
    p.add_argument("--verbose", "-v", action="store_true", help="Verbose output and debug logging")
    p.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        metavar="APP",
        help="App to run followed by its arguments (default: default_app from config)",
    )
    return p


def _configure_logging(verbose: bool) -> None:
    ui.set_verbose(verbose)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def build_invocation(args: argparse.Namespace, config: Config, cwd: str | os.PathLike[str] | None = None) -> Invocation:
    command = list(args.command or [])
    if command and command[0] == "--":
        command = command[1:]

    if command:
        app, app_args = command[0], resolve_arguments(command[1:], cwd)
    elif config.default_app:
        app, app_args = config.default_app, []
    else:
        raise RundError("No app specified and no default_app in config")

    return Invocation(
        app=app,
        args=tuple(app_args),
        use_clipboard=args.clipboard,
        output_file=resolve_path(args.output, cwd) if args.output else None,
        backup_dir=resolve_path(args.backup, cwd) if args.backup else None,
        always_on_top=args.top,
    )


def show_config(verbose: bool) -> int:
    path = resolve_config_path()
    ui.console.print(f"Config file: {path}", soft_wrap=True)
    if not verbose:
        return 0
    cfg = load_config(path)
    g = cfg.geometry
    rows = [
        ("geometry", f"{g.width}x{g.height} at ({g.x}, {g.y})" + (" auto" if g.auto_position else "")),
        ("terminal", cfg.terminal.value),
        ("pause_behavior", cfg.pause_behavior.value),
        ("backup_dir", cfg.backup_dir),
        ("editor_apps", ", ".join(cfg.editor_apps)),
        ("viewer_apps", ", ".join(cfg.viewer_apps)),
        ("always_pause_apps", ", ".join(cfg.always_pause_apps)),
        ("default_app", cfg.default_app or "-"),
        ("pager", cfg.pager or "-"),
    ]
    for name, geom in sorted(cfg.app_geometries.items()):
        rows.append((f"{name} geometry", f"{geom.width}x{geom.height} at ({geom.x}, {geom.y})"))
    ui.print_table(["Setting", "Value"], rows)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.show_config:
            return show_config(args.verbose)
        config = load_config()
        invocation = build_invocation(args, config)
        run_in_terminal(invocation, config)
        return 0
    except RundError as e:
        notify.show_error(str(e))
        return e.exit_code
    except OSError as e:
        notify.show_error(f"Failed to run terminal: {e}")
        return EXIT_IO_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
