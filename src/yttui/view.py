from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable

from .models import VideoEntry

if TYPE_CHECKING:
    from .catalog import Catalog


class SortMode(Enum):
    UPLOAD_DATE_DESC = "Date (newest)"
    VIEWS_DESC = "Views (highest)"
    UPLOAD_DATE_ASC = "Upload Date (oldest)"
    CHANNEL_ASC = "Creator (A-Z)"

    @property
    def label(self) -> str:
        return self.value

    def next(self) -> SortMode:
        order = list(SortMode)
        return order[(order.index(self) + 1) % len(order)]


@dataclass(frozen=True)
class FilterSettings:
    channel: str | None = None
    min_duration: int | None = None
    max_duration: int | None = None
    after: datetime | None = None
    hide_watched: bool = False

    def toggled_hide_watched(self) -> FilterSettings:
        return replace(self, hide_watched=not self.hide_watched)


def compute(
    catalog: Catalog,
    query: str,
    filters: FilterSettings,
    sort: SortMode,
) -> list[VideoEntry]:
    """Derive the visible list: filters, then search, then sort.

    Pure and deterministic for a given catalog, history, query, filters and
    sort. Min and max duration are applied independently, so inverted bounds
    produce an empty list.
    """
    kept = [entry for entry in catalog if matches_filters(entry, filters, catalog.watched)]
    if query:
        kept = [entry for entry in kept if matches_query(entry, query)]
    return sort_entries(kept, sort)


def matches_filters(
    entry: VideoEntry,
    filters: FilterSettings,
    watched: Callable[[str], bool],
) -> bool:
    if filters.channel and filters.channel.casefold() not in entry.channel.casefold():
        return False
    if filters.min_duration is not None and entry.duration < filters.min_duration:
        return False
    if filters.max_duration is not None and entry.duration > filters.max_duration:
        return False
    if filters.after is not None and entry.published_at < filters.after:
        return False
    if filters.hide_watched and watched(entry.video_id):
        return False
    return True


def matches_query(entry: VideoEntry, query: str) -> bool:
    if not query:
        return True
    needle = query.casefold()
    return (
        needle in entry.title.casefold()
        or needle in entry.channel.casefold()
        or needle in entry.description.casefold()
    )


def sort_entries(entries: Iterable[VideoEntry], sort: SortMode) -> list[VideoEntry]:
    # sorted() is stable, also with reverse=True, so equal keys keep catalog order.
    if sort is SortMode.UPLOAD_DATE_DESC:
        return sorted(entries, key=lambda entry: entry.published_at, reverse=True)
    if sort is SortMode.VIEWS_DESC:
        return sorted(entries, key=lambda entry: entry.view_count, reverse=True)
    if sort is SortMode.UPLOAD_DATE_ASC:
        return sorted(entries, key=lambda entry: entry.published_at)
    return sorted(
        entries,
        key=lambda entry: (entry.channel.casefold(), entry.title.casefold()),
    )


def describe_filters(filters: FilterSettings) -> list[str]:
    lines: list[str] = []
    if filters.channel:
        lines.append(f"Channel: {filters.channel}")
    if filters.min_duration is not None or filters.max_duration is not None:
        low = f"{filters.min_duration}s" if filters.min_duration is not None else "0s"
        high = f"{filters.max_duration}s" if filters.max_duration is not None else "inf"
        lines.append(f"Duration: {low} - {high}")
    if filters.after is not None:
        lines.append(f"After: {filters.after.date().isoformat()}")
    lines.append(f"Hide Watched: {'Yes' if filters.hide_watched else 'No'}")
    return lines
