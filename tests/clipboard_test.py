"""Tests for rund.clipboard module."""
from __future__ import annotations

import pyperclip
import pytest

from rund.clipboard import clipboard_to_file, read_clipboard, temp_clipboard_path
from rund.errors import ClipboardError


@pytest.mark.unit
class TestReadClipboard:
    def test_returns_text(self, mocker):
        mocker.patch("rund.clipboard.pyperclip.paste", return_value="hello")

        assert read_clipboard() == "hello"

    def test_none_becomes_empty(self, mocker):
        mocker.patch("rund.clipboard.pyperclip.paste", return_value=None)

        assert read_clipboard() == ""

    def test_unavailable_clipboard(self, mocker):
        mocker.patch(
            "rund.clipboard.pyperclip.paste",
            side_effect=pyperclip.PyperclipException("no copy/paste mechanism"),
        )

        with pytest.raises(ClipboardError, match="Clipboard error"):
            read_clipboard()


@pytest.mark.unit
class TestClipboardToFile:
    def test_writes_target_and_parents(self, mocker, tmp_path):
        mocker.patch("rund.clipboard.pyperclip.paste", return_value="print('hi')\n")
        target = tmp_path / "a" / "b" / "test.py"

        result = clipboard_to_file(target)

        assert result == target
        assert target.read_text(encoding="utf-8") == "print('hi')\n"

    def test_temp_file_when_no_target(self, mocker, tmp_path):
        mocker.patch("rund.clipboard.pyperclip.paste", return_value="data")
        mocker.patch("rund.clipboard.tempfile.gettempdir", return_value=str(tmp_path))

        result = clipboard_to_file()

        assert result.parent == tmp_path
        assert result.name.startswith("rund_clipboard_")
        assert result.suffix == ".txt"
        assert result.read_text(encoding="utf-8") == "data"

    def test_clipboard_failure_writes_nothing(self, mocker, tmp_path):
        mocker.patch("rund.clipboard.pyperclip.paste", side_effect=pyperclip.PyperclipException("x"))
        target = tmp_path / "out.txt"

        with pytest.raises(ClipboardError):
            clipboard_to_file(target)
        assert not target.exists()


@pytest.mark.unit
def test_temp_clipboard_path_uses_timestamp(mocker, tmp_path):
    mocker.patch("rund.clipboard.tempfile.gettempdir", return_value=str(tmp_path))

    assert temp_clipboard_path(now=1700000000.5) == tmp_path / "rund_clipboard_1700000000.txt"
