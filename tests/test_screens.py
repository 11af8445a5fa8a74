from __future__ import annotations

from yttui.app import HELP_TEXT
from yttui.ui.screens import format_help


def test_format_help_keeps_every_line() -> None:
    text = format_help(HELP_TEXT)
    assert text.plain.splitlines() == HELP_TEXT.splitlines()


def test_format_help_styles_headings_and_keys() -> None:
    text = format_help("List mode\nq  quit")
    styles = {text.plain[span.start : span.end]: str(span.style) for span in text.spans}
    assert styles["List mode"] == "bold"
    assert styles["q"] == "bold #d7af5f"
