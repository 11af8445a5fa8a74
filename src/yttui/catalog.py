from __future__ import annotations

from typing import Iterable, Iterator, Protocol

from .models import VideoEntry


class WatchedLookup(Protocol):
    def is_watched(self, video_id: str) -> bool: ...

    def watched_sorted(self) -> list[tuple[str, str | None]]: ...


class Catalog:
    """The fetched videos in fetch order.

    Watched state is never stored here; ``watched`` asks the history store
    each time so the flag cannot go stale.
    """

    def __init__(self, history: WatchedLookup, entries: Iterable[VideoEntry] = ()) -> None:
        self._history = history
        self._entries: tuple[VideoEntry, ...] = tuple(entries)

    def load(self, entries: Iterable[VideoEntry]) -> Catalog:
        self._entries = tuple(entries)
        return self

    @property
    def entries(self) -> tuple[VideoEntry, ...]:
        return self._entries

    def watched(self, video_id: str) -> bool:
        return self._history.is_watched(video_id)

    def watch_order(self) -> list[tuple[str, str | None]]:
        """Every watched id, including ones not in this catalog, newest first."""
        return self._history.watched_sorted()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[VideoEntry]:
        return iter(self._entries)
