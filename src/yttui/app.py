from __future__ import annotations

import argparse
import logging
import queue
import sys
import threading
from pathlib import Path

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.theme import Theme
from textual.widgets import ListView, Static
from textual_image.widget import Image as PreviewImage

from .catalog import Catalog
from .config import AppConfig, history_file_path, initial_filters, load_config, save_config
from .history import HistoryStore
from .logs import configure_logging
from .models import VideoEntry
from .paths import config_path, default_log_path
from .player import PlaybackCoordinator, PlayerLauncher
from .session import (
    InputEvent,
    KeyPress,
    LookupRequest,
    Mode,
    Request,
    RowClick,
    Scroll,
    SearchRequest,
    Session,
    Tab,
    TabClick,
)
from .thumbs import download_thumbnail
from .ui.screens import HelpScreen
from .ui.widgets import (
    DEFAULT_STATUS,
    TabLabel,
    VideoListItem,
    VideoListView,
    format_filters_panel,
    format_list_title,
    format_preview,
    format_search_bar,
    format_status,
)
from .youtube import FetchError, YouTubeClient, fetch_catalog

logger = logging.getLogger(__name__)

QUIT_KEYS = {"q", "Q", "ctrl+c"}
HELP_TEXT = """Keyboard shortcuts

Tabs
1/2/3  current view, YouTube search, watch history (or click a tab)
tab/shift+tab  next or previous tab

List mode
up/k, down/j  move selection (mouse wheel too)
enter  play selected video (or click a video)
/  search title, channel and description
f  filter mode
h  toggle hide watched
s  cycle sort: date (newest), views, upload date (oldest), creator
?  help
q  quit

Search mode
text  filters the list as you type
backspace  delete last character
enter/esc  back to the list (query is kept)

Filter mode
h  toggle hide watched
s  cycle sort
f/esc  back to the list

YouTube search tab
text  type a query (letters and digits are never commands here)
enter  run the search
up/down  move selection
alt+enter, ctrl+o  play selected result
ctrl+c  quit

Watch history tab
up/k, down/j  move selection
enter  play again
"""

YTTUI_THEME = Theme(
    name="yttui",
    primary="#5f87d7",
    secondary="#5fafaf",
    accent="#d75f5f",
    warning="#d7af5f",
    error="#ff5f5f",
    success="#87af5f",
    foreground="#d0d0d0",
    background="#121212",
    surface="#1c1c1c",
    panel="#262626",
    boost="#303030",
    dark=True,
    variables={
        "block-cursor-background": "#005faf",
        "block-cursor-foreground": "#ffffff",
    },
)


class YtTuiApp(App):
    BINDINGS = [
        Binding("tab", "next_tab", show=False, priority=True),
        Binding("shift+tab", "previous_tab", show=False, priority=True),
    ]

    CSS = """
    #layout {
        height: 1fr;
    }

    #tab_bar {
        height: 1;
    }

    .tab {
        width: auto;
        padding: 0 1;
        color: $text-muted;
    }

    .tab.active {
        background: $primary;
        color: $text;
        text-style: bold;
    }

    #search_bar {
        height: 3;
        border: solid $secondary;
        padding: 0 1;
    }

    #filters_panel {
        height: auto;
        max-height: 8;
        border: solid $secondary;
        padding: 0 1;
    }

    #search_bar.active, #filters_panel.active {
        border: double $warning;
    }

    #content {
        height: 1fr;
    }

    #left {
        width: 3fr;
        border: solid $primary;
    }

    #right {
        width: 2fr;
        border: solid $accent;
        padding: 0 1;
    }

    #video_list {
        height: 1fr;
        background: $panel;
    }

    VideoListItem {
        padding: 0 1 1 1;
    }

    #thumb_image, #thumb_fallback {
        height: 12;
    }

    #thumb_fallback {
        content-align: center middle;
        color: $text-muted;
    }

    #status_bar {
        dock: bottom;
        height: 1;
        background: $boost;
        padding: 0 1;
    }

    .hidden {
        display: none;
    }
    """

    def __init__(
        self,
        session: Session,
        show_thumbnails: bool = True,
        client: YouTubeClient | None = None,
        max_results: int = 50,
    ) -> None:
        super().__init__()
        self.register_theme(YTTUI_THEME)
        self.theme = YTTUI_THEME.name
        self.session = session
        self._show_thumbnails = show_thumbnails
        self._client = client
        self._client_lock = threading.Lock()
        self._max_results = max_results
        self._tab_labels: list[TabLabel] = []
        self._search_bar: Static | None = None
        self._filters_panel: Static | None = None
        self._list_box: Vertical | None = None
        self._video_list: VideoListView | None = None
        self._preview_text: Static | None = None
        self._thumb_image: PreviewImage | None = None
        self._thumb_fallback: Static | None = None
        self._status_bar: Static | None = None
        self._list_signature: tuple[tuple[str, bool], ...] | None = None
        self._preview_id: str | None = None
        self._thumb_paths: dict[str, Path] = {}
        self._thumb_failures: dict[str, str] = {}
        self._thumb_pending: set[str] = set()
        self._thumb_requests: queue.LifoQueue[tuple[str, str]] = queue.LifoQueue()
        self._thumb_thread: threading.Thread | None = None

    def compose(self) -> ComposeResult:
        with Vertical(id="layout"):
            with Horizontal(id="tab_bar"):
                for number, tab in enumerate(Tab, start=1):
                    yield TabLabel(tab, number)
            yield Static("", id="search_bar")
            yield Static("", id="filters_panel")
            with Horizontal(id="content"):
                with Vertical(id="left"):
                    yield VideoListView(id="video_list")
                with Vertical(id="right"):
                    yield PreviewImage(None, id="thumb_image")
                    yield Static("", id="thumb_fallback", classes="hidden")
                    yield Static("", id="preview_text")
        yield Static(DEFAULT_STATUS, id="status_bar")

    async def on_mount(self) -> None:
        self._tab_labels = list(self.query(TabLabel))
        self._search_bar = self.query_one("#search_bar", Static)
        self._filters_panel = self.query_one("#filters_panel", Static)
        self._list_box = self.query_one("#left", Vertical)
        self._video_list = self.query_one("#video_list", VideoListView)
        self._preview_text = self.query_one("#preview_text", Static)
        self._thumb_image = self.query_one("#thumb_image", PreviewImage)
        self._thumb_fallback = self.query_one("#thumb_fallback", Static)
        self._status_bar = self.query_one("#status_bar", Static)
        # Keys go to the app so the session decides what they mean.
        self._video_list.can_focus = False
        await self.refresh_view()

    async def on_key(self, event: events.Key) -> None:
        if len(self.screen_stack) > 1:
            return
        if event.key == "ctrl+c" or (self.session.accepts_commands and event.key in QUIT_KEYS):
            event.stop()
            self.exit()
            return
        if self.session.accepts_commands and (event.key == "question_mark" or event.character == "?"):
            event.stop()
            self.push_screen(HelpScreen(HELP_TEXT))
            return
        event.stop()
        await self._send(KeyPress(event.key, event.character))

    async def action_next_tab(self) -> None:
        if len(self.screen_stack) == 1:
            await self._send(KeyPress("tab"))

    async def action_previous_tab(self) -> None:
        if len(self.screen_stack) == 1:
            await self._send(KeyPress("shift+tab"))

    async def on_tab_label_chosen(self, event: TabLabel.Chosen) -> None:
        await self._send(TabClick(event.tab))

    async def on_video_list_view_scrolled(self, event: VideoListView.Scrolled) -> None:
        await self._send(Scroll(event.delta))

    async def _send(self, event: InputEvent) -> None:
        self.session.handle(event)
        self._dispatch_requests()
        await self.refresh_view()

    async def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, VideoListItem):
            await self._send(RowClick(event.item.row))

    async def refresh_view(self) -> None:
        """Redraw every widget from the session's current frame."""
        frame = self.session.frame()
        for label in self._tab_labels:
            label.set_class(label.tab is frame.tab, "active")
        if self._search_bar is not None:
            self._search_bar.update(format_search_bar(frame))
            self._search_bar.set_class(frame.mode == Mode.SEARCH or frame.tab is Tab.SEARCH, "active")
        if self._filters_panel is not None:
            self._filters_panel.update(format_filters_panel(frame))
            self._filters_panel.set_class(frame.mode == Mode.FILTER, "active")
            self._filters_panel.set_class(frame.tab is not Tab.FEED, "hidden")
        if self._list_box is not None:
            self._list_box.border_title = format_list_title(frame)
        if self._status_bar is not None:
            self._status_bar.update(format_status(frame))
        await self._render_list(frame.rows, frame.selection)
        if frame.rows:
            entry, watched = frame.rows[frame.selection]
            self._set_preview(entry, watched)
        else:
            self._set_preview(None, False)

    async def _render_list(self, rows: tuple[tuple[VideoEntry, bool], ...], selection: int) -> None:
        list_view = self._video_list
        if list_view is None:
            return
        signature = tuple((entry.video_id, watched) for entry, watched in rows)
        if signature != self._list_signature:
            self._list_signature = signature
            await list_view.clear()
            if rows:
                await list_view.extend(
                    VideoListItem(entry, row, watched)
                    for row, (entry, watched) in enumerate(rows)
                )
        if rows:
            list_view.index = selection
        else:
            list_view.index = None

    def _set_preview(self, entry: VideoEntry | None, watched: bool) -> None:
        if self._preview_text is not None:
            self._preview_text.update(format_preview(entry, watched))
        video_id = entry.video_id if entry is not None else None
        if video_id == self._preview_id:
            return
        self._preview_id = video_id
        self._show_thumbnail(entry)

    def _show_thumbnail(self, entry: VideoEntry | None) -> None:
        if entry is None:
            self._thumbnail_text("")
        elif not self._show_thumbnails or not entry.thumbnail_url:
            self._thumbnail_text("No thumbnail.")
        elif entry.video_id in self._thumb_paths:
            self._thumbnail_image(entry.video_id, self._thumb_paths[entry.video_id])
        elif entry.video_id in self._thumb_failures:
            self._thumbnail_text(f"Thumbnail error:\n{self._thumb_failures[entry.video_id]}")
        else:
            self._thumbnail_text("Thumbnail: loading...")
            self._request_thumbnail(entry.video_id, entry.thumbnail_url)

    def _request_thumbnail(self, video_id: str, url: str) -> None:
        if video_id in self._thumb_pending:
            return
        self._thumb_pending.add(video_id)
        self._thumb_requests.put((video_id, url))
        if self._thumb_thread is None:
            self._thumb_thread = threading.Thread(target=self._thumbnail_loop, daemon=True)
            self._thumb_thread.start()

    def _thumbnail_loop(self) -> None:
        # LIFO: the latest selection is fetched first.
        while True:
            video_id, url = self._thumb_requests.get()
            try:
                path = download_thumbnail(url, video_id)
            except Exception as exc:
                logger.warning("Thumbnail download failed for %s: %s", video_id, exc)
                self.call_from_thread(self._thumbnail_done, video_id, None, str(exc))
            else:
                self.call_from_thread(self._thumbnail_done, video_id, path, None)

    def _thumbnail_done(self, video_id: str, path: Path | None, error: str | None) -> None:
        self._thumb_pending.discard(video_id)
        if path is not None:
            self._thumb_paths[video_id] = path
        else:
            self._thumb_failures[video_id] = error or "unknown error"
        entry = self.session.selected_entry()
        if entry is not None and entry.video_id == video_id == self._preview_id:
            self._show_thumbnail(entry)

    def _thumbnail_text(self, message: str) -> None:
        if self._thumb_fallback is None or self._thumb_image is None:
            return
        self._thumb_fallback.update(message)
        self._thumb_fallback.remove_class("hidden")
        self._thumb_image.add_class("hidden")

    def _thumbnail_image(self, video_id: str, path: Path) -> None:
        if self._thumb_image is None or self._thumb_fallback is None:
            return
        try:
            self._thumb_image.image = path
        except Exception as exc:
            logger.warning("Cannot render thumbnail %s: %s", path, exc)
            self._thumb_paths.pop(video_id, None)
            self._thumb_failures[video_id] = str(exc)
            self._thumbnail_text("Thumbnail unavailable.")
            return
        self._thumb_image.remove_class("hidden")
        self._thumb_fallback.add_class("hidden")

    def _dispatch_requests(self) -> None:
        for request in self.session.take_requests():
            threading.Thread(target=self._run_request, args=(request,), daemon=True).start()

    def _run_request(self, request: Request) -> None:
        try:
            videos = self._fetch_for(request)
        except FetchError as exc:
            logger.warning("Request %s failed: %s", request, exc)
            self.call_from_thread(self._request_done, request, None, str(exc))
        else:
            self.call_from_thread(self._request_done, request, videos, None)

    def _fetch_for(self, request: Request) -> list[VideoEntry]:
        if self._client is None:
            raise FetchError("offline mode")
        with self._client_lock:
            if isinstance(request, SearchRequest):
                return self._client.search_videos(request.query, self._max_results)
            return self._client.fetch_video_details(request.video_ids)

    async def _request_done(
        self,
        request: Request,
        videos: list[VideoEntry] | None,
        error: str | None,
    ) -> None:
        if isinstance(request, LookupRequest):
            if videos is None:
                self.session.fail_lookup(error or "unknown error")
            else:
                self.session.finish_lookup(videos)
        elif videos is None:
            self.session.fail_search(error or "unknown error")
        else:
            self.session.finish_search(videos)
        self._dispatch_requests()
        await self.refresh_view()


def build_session(
    config: AppConfig,
    history: HistoryStore,
    entries: list[VideoEntry],
    launcher: PlayerLauncher | None = None,
) -> Session:
    catalog = Catalog(history).load(entries)
    coordinator = PlaybackCoordinator(history, launcher or PlayerLauncher(config.player))
    return Session(catalog, coordinator, filters=initial_filters(config))


def report_startup(
    session: Session,
    status: str,
    *,
    failed: bool,
    history_error: str | None = None,
) -> None:
    """Put the fetch outcome on screen; a failed fetch stays visible as the error."""
    if failed:
        session.set_error(status)
        session.set_status(history_error)
    elif history_error:
        session.set_status(f"{status} | {history_error}")
    else:
        session.set_status(status)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yttui",
        description="Browse a YouTube feed in the terminal and play videos in mpv.",
        epilog=f"Config file: {config_path()}",
    )
    parser.add_argument("--config", help="Path to config.jsonc")
    parser.add_argument("--history", help="Path to the watch history file")
    parser.add_argument("--max-results", type=int, help="Number of videos to fetch")
    parser.add_argument("--player", help="Player command, e.g. mpv or vlc")
    parser.add_argument("--offline", action="store_true", help="Skip fetching videos")
    parser.add_argument("--no-thumbnails", action="store_true", help="Do not download thumbnails")
    parser.add_argument("--log-file", help="Write logs to this file")
    return parser


def _cli_help_text() -> str:
    return _build_parser().format_help()


def main(argv: list[str] | None = None) -> None:
    args_list = sys.argv[1:] if argv is None else argv
    if "-help" in args_list:
        print(_cli_help_text())
        return
    parser = _build_parser()
    args = parser.parse_args(args_list)

    config, config_error = load_config(Path(args.config).expanduser() if args.config else None)
    if config_error:
        print(config_error, file=sys.stderr)
    if args.history:
        config.history_path = str(Path(args.history).expanduser().resolve())
    if args.max_results is not None:
        if args.max_results <= 0:
            parser.error("--max-results must be positive")
        config.max_results = args.max_results
    if args.player:
        config.player = args.player

    log_path = Path(args.log_file).expanduser() if args.log_file else default_log_path()
    log_error = configure_logging(config.log_level, log_path)
    if log_error:
        print(log_error, file=sys.stderr)

    if not config.api_key and not args.offline:
        target = Path(args.config).expanduser() if args.config else config_path()
        print("Error: YouTube API key is required.", file=sys.stderr)
        if not target.exists():
            write_error = save_config(config, target)
            if write_error:
                print(write_error, file=sys.stderr)
            else:
                print(f"Wrote a default config file to: {target}", file=sys.stderr)
        print(f"Add your API key to: {target}", file=sys.stderr)
        raise SystemExit(1)

    history, history_error = HistoryStore.load(history_file_path(config))

    client = None if args.offline else YouTubeClient(config.api_key or "", config.oauth_access_token)
    try:
        if client is None:
            entries: list[VideoEntry] = []
            status = "Offline: no videos fetched"
        else:
            print("Fetching recommended videos...", file=sys.stderr)
            entries, status = fetch_catalog(client, config.max_results)
        session = build_session(config, history, entries)
        report_startup(
            session,
            status,
            failed=client is not None and not entries,
            history_error=history_error,
        )
        app = YtTuiApp(
            session,
            show_thumbnails=not args.no_thumbnails,
            client=client,
            max_results=config.max_results,
        )
        app.run()
    finally:
        if client is not None:
            client.close()


if __name__ == "__main__":
    main()
