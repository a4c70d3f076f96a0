from __future__ import annotations

import os
import pathlib
from typing import Iterable


def resolve_argument(arg: str, cwd: str | os.PathLike[str] | None = None) -> str:
    """
    Return the absolute path for `arg` if it names an existing file or
    directory (relative to `cwd`, default the process cwd), else `arg` as is.
    """
    if not arg:
        return arg
    base = pathlib.Path(cwd) if cwd is not None else pathlib.Path.cwd()
    candidate = pathlib.Path(os.path.expanduser(arg))
    if not candidate.is_absolute():
        candidate = base / candidate
    if not candidate.exists():
        return arg
    try:
        return str(candidate.resolve())
    except OSError:
        return arg


def resolve_arguments(args: Iterable[str], cwd: str | os.PathLike[str] | None = None) -> list[str]:
    return [resolve_argument(a, cwd) for a in args]


def resolve_path(path: str | os.PathLike[str], cwd: str | os.PathLike[str] | None = None) -> pathlib.Path:
    """Absolute form of a path that may not exist yet (for -o / -b)."""
    p = pathlib.Path(os.path.expanduser(os.fspath(path)))
    if not p.is_absolute():
        p = (pathlib.Path(cwd) if cwd is not None else pathlib.Path.cwd()) / p
    return p.resolve()
