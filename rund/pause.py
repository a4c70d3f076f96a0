"""
Smart pause detection.

Editors are interactive and never need a pause. Viewers pause only for
short output and hand longer output to a pager. Interpreters and anything
unknown pause so the output stays readable before the window closes.
"""
from __future__ import annotations

import dataclasses as dc
import enum
import logging
import pathlib

from .config import Config, PauseBehavior, current_platform

LOGGER = logging.getLogger(__name__)

SMALL_FILE_LINES = 30
SELF_PAGING_VIEWERS = ("less", "more", "most", "bat")


class AppKind(enum.Enum):
    EDITOR = "editor"
    VIEWER = "viewer"
    ALWAYS_PAUSE = "always_pause"
    UNKNOWN = "unknown"


@dc.dataclass(frozen=True)
class PauseDecision:
    pause: bool
    pager: bool = False


def first_word(app: str) -> str:
    words = app.lower().split()
    return words[0] if words else ""


def _matches(word: str, names: tuple[str, ...]) -> bool:
    return any(name.lower() in word for name in names)


def classify_app(app: str, config: Config) -> AppKind:
    word = first_word(app)
    if not word:
        return AppKind.UNKNOWN
    if _matches(word, config.editor_apps):
        return AppKind.EDITOR
    if _matches(word, config.always_pause_apps):
        return AppKind.ALWAYS_PAUSE
    if _matches(word, config.viewer_apps):
        return AppKind.VIEWER
    return AppKind.UNKNOWN


def count_lines(path: pathlib.Path | None) -> int | None:
    """Line count of a text file; None when missing or unreadable."""
    if path is None:
        return None
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return sum(1 for _ in f)
    except OSError as e:
        LOGGER.debug("Cannot count lines of %s: %s", path, e)
        return None


def decide_pause(kind: AppKind, line_count: int | None) -> PauseDecision:
    if kind is AppKind.EDITOR:
        return PauseDecision(pause=False)
    if kind is AppKind.VIEWER:
        if line_count is not None and line_count < SMALL_FILE_LINES:
            return PauseDecision(pause=True)
        return PauseDecision(pause=False, pager=True)
    return PauseDecision(pause=True)


def default_pager(platform: str | None = None) -> str:
    return "more" if (platform or current_platform()) == "windows" else "less"


def resolve_pager(app: str, config: Config, platform: str | None = None) -> str | None:
    """Pager to pipe into, or None when the viewer already pages by itself."""
    word = pathlib.PurePath(first_word(app)).stem if first_word(app) else ""
    if word in SELF_PAGING_VIEWERS:
        return None
    return config.pager or default_pager(platform)


def resolve_pause(app: str, config: Config, line_count: int | None) -> PauseDecision:
    """Apply the configured pause_behavior on top of the smart classification."""
    kind = classify_app(app, config)
    decision = decide_pause(kind, line_count)
    LOGGER.debug("App %r classified as %s, lines=%s -> %s", app, kind.value, line_count, decision)
    if config.pause_behavior is PauseBehavior.NEVER:
        return dc.replace(decision, pause=False)
    if config.pause_behavior is PauseBehavior.ALWAYS:
        return dc.replace(decision, pause=True)
    return decision
