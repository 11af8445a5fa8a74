from __future__ import annotations

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

_SCROLL_KEYS = {"up", "down", "pageup", "pagedown", "home", "end"}


class HelpScreen(ModalScreen[None]):
    """Key reference overlay. Any key other than scrolling closes it."""

    CSS = """
    HelpScreen {
        align: center middle;
        background: $background 70%;
    }

    #help_scroll {
        width: 64;
        max-width: 90%;
        height: auto;
        max-height: 85%;
        padding: 1 2;
        border: thick $accent;
        background: $panel;
    }
    """

    def __init__(self, help_text: str) -> None:
        super().__init__()
        self._help_text = help_text

    def compose(self) -> ComposeResult:
        scroll = VerticalScroll(id="help_scroll")
        scroll.border_title = "Help"
        scroll.border_subtitle = "any key to close"
        with scroll:
            yield Static(format_help(self._help_text))

    def on_mount(self) -> None:
        self.query_one("#help_scroll", VerticalScroll).focus()

    def on_key(self, event: events.Key) -> None:
        if event.key in _SCROLL_KEYS:
            return
        event.stop()
        self.dismiss(None)

    def on_click(self, event: events.Click) -> None:
        if event.widget is self:
            self.dismiss(None)


def format_help(help_text: str) -> Text:
    """Style section headings (lines without a key column) in bold."""
    text = Text()
    for index, line in enumerate(help_text.splitlines()):
        if index:
            text.append("\n")
        key, sep, description = line.partition("  ")
        if not sep:
            text.append(line, style="bold")
            continue
        text.append(key, style="bold #d7af5f")
        text.append(sep + description)
    return text
