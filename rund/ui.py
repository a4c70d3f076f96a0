"""
ui.py

Console output for rund, built on Rich:
  - log_info (verbose only), log_warning, log_error, log_success.
  - print_table for the `--config` summary.

Errors go to stderr so they stay visible when stdout is redirected.
"""

from __future__ import annotations

from typing import Iterable, List

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

# ---------- Console + Theme ----------

_THEME = Theme(
    {
        "ui.info": "cyan",
        "ui.success": "green bold",
        "ui.warn": "yellow bold",
        "ui.error": "red bold",
        "ui.dim": "dim",
    }
)

console = Console(theme=_THEME, highlight=False)
err_console = Console(theme=_THEME, highlight=False, stderr=True)

# ---------- Global State ----------

VERBOSE = False


def set_verbose(verbose: bool) -> None:
    """Set global verbosity. If False, log_info is suppressed."""
    global VERBOSE
    VERBOSE = bool(verbose)


# ---------- Basic Logging ----------


def log_info(message: str) -> None:
    """Info is suppressed unless VERBOSE is True."""
    if VERBOSE:
        console.print(f"[ui.info]{escape(message)}[/]")


def log_warning(message: str) -> None:
    err_console.print(f"[ui.warn]Warning: {escape(message)}[/]")


def log_error(message: str) -> None:
    err_console.print(f"[ui.error]Error: {escape(message)}[/]")


def log_success(message: str) -> None:
    console.print(f"[ui.success]{escape(message)}[/]")


# ---------- Tables ----------


def print_table(columns: List[str], rows: List[Iterable]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    for c in columns:
        table.add_column(str(c))
    for r in rows:
        table.add_row(*[escape(str(x)) for x in r])
    console.print(table)
