from __future__ import annotations

import logging
import pathlib
import tempfile
import time

import pyperclip

from .errors import ClipboardError

LOGGER = logging.getLogger(__name__)


def read_clipboard() -> str:
    """Return the clipboard text, '' when it holds no text."""
    try:
        text = pyperclip.paste()
    except pyperclip.PyperclipException as e:
        raise ClipboardError(f"Clipboard error: {e}") from e
    return text or ""


def temp_clipboard_path(now: float | None = None) -> pathlib.Path:
    stamp = int(now if now is not None else time.time())
    return pathlib.Path(tempfile.gettempdir()) / f"rund_clipboard_{stamp}.txt"


def clipboard_to_file(target: pathlib.Path | None = None) -> pathlib.Path:
    """
    Dump the clipboard into `target` (parents created), or into a fresh
    temp file when no target is given. Returns the written path.
    """
    content = read_clipboard()
    path = target if target is not None else temp_clipboard_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    LOGGER.debug("Wrote %d chars of clipboard text to %s", len(content), path)
    return path
