from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Protocol

from .catalog import Catalog
from .models import VideoEntry
from .player import PlaybackResult
from .view import FilterSettings, SortMode, compute


class Mode(Enum):
    LIST = "LIST"
    SEARCH = "SEARCH"
    FILTER = "FILTER"


class Tab(Enum):
    FEED = "Current View"
    SEARCH = "Search"
    HISTORY = "History"

    @property
    def label(self) -> str:
        return self.value

    def next(self) -> Tab:
        order = list(Tab)
        return order[(order.index(self) + 1) % len(order)]

    def previous(self) -> Tab:
        order = list(Tab)
        return order[(order.index(self) - 1) % len(order)]


@dataclass(frozen=True)
class KeyPress:
    key: str
    character: str | None = None

    @property
    def printable(self) -> str | None:
        text = self.character if self.character is not None else self.key
        if len(text) == 1 and text.isprintable():
            return text
        return None


@dataclass(frozen=True)
class Scroll:
    delta: int


@dataclass(frozen=True)
class RowClick:
    row: int


@dataclass(frozen=True)
class TabClick:
    tab: Tab


InputEvent = KeyPress | Scroll | RowClick | TabClick


@dataclass(frozen=True)
class SearchRequest:
    query: str


@dataclass(frozen=True)
class LookupRequest:
    video_ids: tuple[str, ...]


Request = SearchRequest | LookupRequest


class Player(Protocol):
    def play(self, entry: VideoEntry) -> PlaybackResult: ...


@dataclass
class SessionState:
    mode: Mode = Mode.LIST
    tab: Tab = Tab.FEED
    query: str = ""
    platform_query: str = ""
    filters: FilterSettings = field(default_factory=FilterSettings)
    sort: SortMode = SortMode.UPLOAD_DATE_DESC
    selection: int = 0
    status: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class Frame:
    rows: tuple[tuple[VideoEntry, bool], ...]
    selection: int
    mode: Mode
    tab: Tab
    status: str | None
    error: str | None
    query: str
    platform_query: str
    filters: FilterSettings
    sort: SortMode
    total: int
    searching: bool = False


UP_KEYS = {"up", "k"}
DOWN_KEYS = {"down", "j"}
TAB_KEYS = {"1": Tab.FEED, "2": Tab.SEARCH, "3": Tab.HISTORY}
# Typing owns the letters on the search tab, so playing needs a modifier.
SEARCH_PLAY_KEYS = {"alt+enter", "ctrl+o"}


class Session:
    """Owns the session state and applies one input event at a time.

    ``view`` is always the full recomputation of the catalog against the
    current query, filters and sort. ``selection`` indexes into the rows of
    the active tab: the view on the feed tab, platform search results on the
    search tab and watched videos (newest first) on the history tab.

    Network work is never done here. Searches and history lookups are queued
    as requests for the caller to run; their outcome comes back through
    ``finish_search``/``fail_search`` and ``finish_lookup``/``fail_lookup``.
    """

    def __init__(
        self,
        catalog: Catalog,
        player: Player,
        filters: FilterSettings | None = None,
        sort: SortMode = SortMode.UPLOAD_DATE_DESC,
    ) -> None:
        self.catalog = catalog
        self.player = player
        self.state = SessionState(filters=filters or FilterSettings(), sort=sort)
        self.view: list[VideoEntry] = []
        self.search_results: list[VideoEntry] = []
        self.history_rows: list[VideoEntry] = []
        self._resolved: dict[str, VideoEntry] = {}
        self._unresolved: set[str] = set()
        self._requests: list[Request] = []
        self._search_pending = False
        self._lookup_pending: tuple[str, ...] | None = None
        self._handlers: dict[Mode, Callable[[InputEvent], None]] = {
            Mode.LIST: self._handle_list,
            Mode.SEARCH: self._handle_search,
            Mode.FILTER: self._handle_filter,
        }
        self.refresh()

    @property
    def mode(self) -> Mode:
        return self.state.mode

    @property
    def tab(self) -> Tab:
        return self.state.tab

    @property
    def accepts_commands(self) -> bool:
        """False while keystrokes are text for one of the search inputs."""
        return self.state.mode == Mode.LIST and self.state.tab is not Tab.SEARCH

    @property
    def visible(self) -> list[VideoEntry]:
        if self.state.tab is Tab.SEARCH:
            return self.search_results
        if self.state.tab is Tab.HISTORY:
            return self.history_rows
        return self.view

    def handle(self, event: InputEvent) -> None:
        self._handlers[self.state.mode](event)

    def set_status(self, message: str | None) -> None:
        self.state.status = message

    def set_error(self, message: str | None) -> None:
        """Set the message that stays on screen while other statuses come and go."""
        self.state.error = message

    def take_requests(self) -> list[Request]:
        requests, self._requests = self._requests, []
        return requests

    def selected_entry(self) -> VideoEntry | None:
        rows = self.visible
        if not rows:
            return None
        return rows[self.state.selection]

    def refresh(self) -> None:
        """Recompute the view and clamp the selection into the active rows."""
        self.view = compute(self.catalog, self.state.query, self.state.filters, self.state.sort)
        self.state.selection = _clamp(self.state.selection, len(self.visible))

    def frame(self) -> Frame:
        rows = self.visible
        total = len(self.catalog) if self.state.tab is Tab.FEED else len(rows)
        return Frame(
            rows=tuple((entry, self.catalog.watched(entry.video_id)) for entry in rows),
            selection=self.state.selection,
            mode=self.state.mode,
            tab=self.state.tab,
            status=self.state.status,
            error=self.state.error,
            query=self.state.query,
            platform_query=self.state.platform_query,
            filters=self.state.filters,
            sort=self.state.sort,
            total=total,
            searching=self._search_pending,
        )

    def finish_search(self, videos: Iterable[VideoEntry]) -> None:
        self._search_pending = False
        self.search_results = list(videos)
        if self.state.tab is Tab.SEARCH:
            self.state.selection = 0
        self.set_status(f"Found {len(self.search_results)} videos")

    def fail_search(self, message: str) -> None:
        self._search_pending = False
        self.set_status(f"Search failed: {message}")

    def finish_lookup(self, videos: Iterable[VideoEntry]) -> None:
        requested = self._lookup_pending or ()
        self._lookup_pending = None
        for entry in videos:
            self._resolved[entry.video_id] = entry
        # Removed or private videos never come back; stop asking for them.
        self._unresolved.update(video_id for video_id in requested if video_id not in self._resolved)
        if self.state.tab is Tab.HISTORY:
            self._load_history()

    def fail_lookup(self, message: str) -> None:
        self._lookup_pending = None
        self.set_status(f"Failed to load history: {message}")

    def _handle_list(self, event: InputEvent) -> None:
        if isinstance(event, TabClick):
            self._switch_tab(event.tab)
            return
        if isinstance(event, Scroll):
            self._move(event.delta)
            return
        if isinstance(event, RowClick):
            if 0 <= event.row < len(self.visible):
                self.state.selection = event.row
                self._play_selected()
            return
        if event.key == "tab":
            self._switch_tab(self.state.tab.next())
            return
        if event.key == "shift+tab":
            self._switch_tab(self.state.tab.previous())
            return
        if self.state.tab is Tab.SEARCH:
            self._handle_platform_search(event)
            return
        key = event.character or event.key
        if key in TAB_KEYS:
            self._switch_tab(TAB_KEYS[key])
        elif event.key in UP_KEYS:
            self._move(-1)
        elif event.key in DOWN_KEYS:
            self._move(1)
        elif event.key == "enter":
            self._play_selected()
        elif self.state.tab is Tab.FEED:
            self._handle_feed_command(key)

    def _handle_feed_command(self, key: str) -> None:
        if key == "/":
            self.state.mode = Mode.SEARCH
        elif key == "f":
            self.state.mode = Mode.FILTER
        elif key == "h":
            self._toggle_hide_watched()
        elif key == "s":
            self._cycle_sort()

    def _handle_platform_search(self, event: KeyPress) -> None:
        if event.key in SEARCH_PLAY_KEYS:
            self._play_selected()
        elif event.key == "enter":
            self._submit_search()
        elif event.key == "backspace":
            self.state.platform_query = self.state.platform_query[:-1]
        elif event.key == "up":
            self._move(-1)
        elif event.key == "down":
            self._move(1)
        else:
            character = event.printable
            if character is not None:
                self.state.platform_query += character

    def _handle_search(self, event: InputEvent) -> None:
        if not isinstance(event, KeyPress):
            return
        if event.key in {"enter", "escape"}:
            self.state.mode = Mode.LIST
            return
        if event.key == "backspace":
            if self.state.query:
                self.state.query = self.state.query[:-1]
                self.refresh()
            return
        character = event.printable
        if character is not None:
            self.state.query += character
            self.refresh()

    def _handle_filter(self, event: InputEvent) -> None:
        if not isinstance(event, KeyPress):
            return
        key = event.character or event.key
        if key == "f" or event.key == "escape":
            self.state.mode = Mode.LIST
        elif key == "h":
            self._toggle_hide_watched()
        elif key == "s":
            self._cycle_sort()

    def _switch_tab(self, tab: Tab) -> None:
        self.state.tab = tab
        self.state.selection = 0
        if tab is Tab.SEARCH:
            if not self.search_results and self.state.platform_query:
                self._submit_search()
        elif tab is Tab.HISTORY:
            self._load_history()

    def _submit_search(self) -> None:
        query = self.state.platform_query.strip()
        if not query or self._search_pending:
            return
        self._search_pending = True
        self._requests.append(SearchRequest(query))
        self.set_status("Searching YouTube...")

    def _load_history(self) -> None:
        order = [video_id for video_id, _ in self.catalog.watch_order()]
        if not order:
            self.history_rows = []
            self.set_status("No watch history")
            return
        missing = self._order_history(order)
        if missing and self._lookup_pending is None:
            self._lookup_pending = missing
            self._requests.append(LookupRequest(missing))
            self.set_status("Loading watch history...")
        elif not missing:
            self.set_status(f"Loaded {len(self.history_rows)} watched videos")

    def _order_history(self, order: list[str]) -> tuple[str, ...]:
        known = dict(self._resolved)
        known.update((entry.video_id, entry) for entry in self.catalog)
        known.update((entry.video_id, entry) for entry in self.search_results)
        self.history_rows = [known[video_id] for video_id in order if video_id in known]
        self.state.selection = _clamp(self.state.selection, len(self.history_rows))
        return tuple(
            video_id
            for video_id in order
            if video_id not in known and video_id not in self._unresolved
        )

    def _move(self, delta: int) -> None:
        rows = self.visible
        if not rows:
            return
        self.state.selection = max(0, min(self.state.selection + delta, len(rows) - 1))

    def _toggle_hide_watched(self) -> None:
        self.state.filters = self.state.filters.toggled_hide_watched()
        self.refresh()
        self.set_status(f"Hide watched: {'on' if self.state.filters.hide_watched else 'off'}")

    def _cycle_sort(self) -> None:
        selected = self.selected_entry()
        self.state.sort = self.state.sort.next()
        self.view = compute(self.catalog, self.state.query, self.state.filters, self.state.sort)
        self.state.selection = _index_of(self.view, selected)
        self.set_status(f"Sort: {self.state.sort.label}")

    def _play_selected(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            return
        result = self.player.play(entry)
        self.set_status(result.message)
        if not result.launched:
            return
        if self.state.tab is Tab.HISTORY:
            self._order_history([video_id for video_id, _ in self.catalog.watch_order()])
            self.state.selection = _index_of(self.history_rows, entry)
        self.refresh()


def _clamp(index: int, length: int) -> int:
    if length == 0:
        return 0
    return max(0, min(index, length - 1))


def _index_of(rows: list[VideoEntry], entry: VideoEntry | None) -> int:
    if entry is None:
        return 0
    for index, candidate in enumerate(rows):
        if candidate.video_id == entry.video_id:
            return index
    return 0
