from __future__ import annotations

from rich.text import Text
from textual import events
from textual.message import Message
from textual.widgets import Label, ListItem, ListView, Static

from ..models import VideoEntry
from ..session import Frame, Mode, Tab
from ..view import describe_filters

_TITLE_STYLE = "bold #c0caf5"
_WATCHED_STYLE = "bold #9ece6a"
_CHANNEL_STYLE = "#7dcfff"
_DURATION_STYLE = "#bb9af7"
_DATE_STYLE = "#e0af68"
_VIEWS_STYLE = "#a9b1d6"
_ACTIVE_STYLE = "bold #e0af68"
_HINT_STYLE = "dim"
_ERROR_STYLE = "bold #f7768e"

DEFAULT_STATUS = (
    "q quit | 1-3 tabs | / search | f filters | h hide watched | s sort | enter play | ? help"
)
SEARCH_TAB_STATUS = "type a query | enter search | alt+enter play | tab next tab"


class VideoListItem(ListItem):
    def __init__(self, entry: VideoEntry, row: int, watched: bool) -> None:
        self.entry = entry
        self.row = row
        self.watched = watched
        super().__init__(Label(format_video_label(entry, watched)), classes="video-item")


class VideoListView(ListView):
    """A list that reports wheel movement instead of scrolling on its own.

    Selection belongs to the session, so the wheel is turned into a message
    for the app to translate into a selection step.
    """

    class Scrolled(Message):
        def __init__(self, delta: int) -> None:
            super().__init__()
            self.delta = delta

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        event.stop()
        event.prevent_default()
        self.post_message(self.Scrolled(1))

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        event.stop()
        event.prevent_default()
        self.post_message(self.Scrolled(-1))


class TabLabel(Static):
    """One entry of the tab bar; clicking it asks the app to switch tabs."""

    class Chosen(Message):
        def __init__(self, tab: Tab) -> None:
            super().__init__()
            self.tab = tab

    def __init__(self, tab: Tab, number: int) -> None:
        super().__init__(f" {number} {tab.label} ", id=f"tab_{tab.name.lower()}", classes="tab")
        self.tab = tab

    def on_click(self, event: events.Click) -> None:
        event.stop()
        self.post_message(self.Chosen(self.tab))


def format_video_label(entry: VideoEntry, watched: bool) -> Text:
    label = Text()
    label.append(entry.title or "(untitled)", style=_TITLE_STYLE)
    if watched:
        label.append(" [WATCHED]", style=_WATCHED_STYLE)
    label.append("\n")
    label.append(f"Creator: {entry.channel}", style=_CHANNEL_STYLE)
    label.append("\n")
    label.append(f"Duration: {entry.format_duration()}", style=_DURATION_STYLE)
    label.append("  ")
    label.append(f"Uploaded: {entry.format_date()}", style=_DATE_STYLE)
    label.append("  ")
    label.append(f"Views: {entry.format_views()}", style=_VIEWS_STYLE)
    return label


def format_search_bar(frame: Frame) -> Text:
    if frame.tab is Tab.SEARCH:
        return _format_platform_search(frame)
    if frame.tab is Tab.HISTORY:
        return Text("Watched videos, most recent first", style=_HINT_STYLE)
    active = frame.mode == Mode.SEARCH
    text = Text()
    text.append("Search: ", style=_ACTIVE_STYLE if active else _CHANNEL_STYLE)
    text.append(frame.query)
    if active:
        text.append("_", style=_ACTIVE_STYLE)
        text.append("  (enter/esc to finish)", style=_HINT_STYLE)
    elif not frame.query:
        text.append("press / to search", style=_HINT_STYLE)
    return text


def _format_platform_search(frame: Frame) -> Text:
    text = Text()
    text.append("YouTube search: ", style=_ACTIVE_STYLE)
    text.append(frame.platform_query)
    text.append("_", style=_ACTIVE_STYLE)
    if frame.searching:
        text.append("  searching...", style=_HINT_STYLE)
    else:
        text.append("  (enter to search)", style=_HINT_STYLE)
    return text


def format_filters_panel(frame: Frame) -> Text:
    active = frame.mode == Mode.FILTER
    text = Text()
    text.append("Filters", style=_ACTIVE_STYLE if active else _CHANNEL_STYLE)
    text.append(" (ACTIVE)" if active else " (press f)", style=_HINT_STYLE)
    for line in describe_filters(frame.filters):
        text.append("\n")
        text.append(line)
    text.append("\n")
    text.append(f"Sort: {frame.sort.label}", style=_DURATION_STYLE)
    if active:
        text.append("\n")
        text.append("h toggle hide watched | s change sort | f/esc exit", style=_ACTIVE_STYLE)
    return text


def format_list_title(frame: Frame) -> str:
    if frame.tab is Tab.SEARCH:
        return f"Search results ({len(frame.rows)})"
    if frame.tab is Tab.HISTORY:
        return f"Watch history ({len(frame.rows)})"
    return f"Videos ({len(frame.rows)}/{frame.total})"


def format_status(frame: Frame) -> Text:
    """The fetch error, when there is one, stays in front of the latest status."""
    text = Text()
    if frame.error:
        text.append(frame.error, style=_ERROR_STYLE)
        if frame.status:
            text.append(" | ")
    if frame.status:
        text.append(frame.status)
    elif not frame.error:
        text.append(SEARCH_TAB_STATUS if frame.tab is Tab.SEARCH else DEFAULT_STATUS)
    return text


def format_preview(entry: VideoEntry | None, watched: bool = False) -> str:
    if entry is None:
        return "No videos to display."
    lines = [
        entry.title,
        "",
        f"Channel: {entry.channel}",
        f"Duration: {entry.format_duration()}",
        f"Uploaded: {entry.format_date()}",
        f"Views: {entry.format_views()}",
        f"Watched: {'yes' if watched else 'no'}",
        f"URL: {entry.url}",
    ]
    if entry.description:
        lines.extend(["", _truncate(entry.description, 600)])
    return "\n".join(lines)


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: max(0, limit - 3)].rstrip() + "..."
