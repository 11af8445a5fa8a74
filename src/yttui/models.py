from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .timeparse import format_clock, format_count, format_day, parse_iso_duration, parse_timestamp

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


@dataclass(frozen=True)
class VideoEntry:
    video_id: str
    title: str
    channel: str
    duration: int
    published_at: datetime
    view_count: int
    description: str = ""
    channel_id: str = ""
    thumbnail_url: str | None = None

    @property
    def url(self) -> str:
        return WATCH_URL.format(video_id=self.video_id)

    def format_duration(self) -> str:
        return format_clock(self.duration)

    def format_views(self) -> str:
        return format_count(self.view_count)

    def format_date(self) -> str:
        return format_day(self.published_at)


def video_from_api_item(item: dict[str, Any]) -> VideoEntry:
    """Build a VideoEntry from a ``videos.list`` item.

    Raises ValueError when the item lacks an id or a parsable publish date.
    A missing or malformed duration or view count falls back to zero.
    """
    video_id = item.get("id")
    if not isinstance(video_id, str) or not video_id:
        raise ValueError("Video item has no id")
    snippet = _as_dict(item.get("snippet"))
    published_at = parse_timestamp(_as_str(snippet.get("publishedAt")))
    if published_at is None:
        raise ValueError(f"Failed to parse published date for {video_id}")
    return VideoEntry(
        video_id=video_id,
        title=_as_str(snippet.get("title")) or "",
        channel=_as_str(snippet.get("channelTitle")) or "",
        duration=_parse_duration(_as_dict(item.get("contentDetails")).get("duration")),
        published_at=published_at,
        view_count=_parse_count(_as_dict(item.get("statistics")).get("viewCount")),
        description=_as_str(snippet.get("description")) or "",
        channel_id=_as_str(snippet.get("channelId")) or "",
        thumbnail_url=_best_thumbnail(_as_dict(snippet.get("thumbnails"))),
    )


def _parse_duration(value: Any) -> int:
    if not isinstance(value, str):
        return 0
    try:
        return parse_iso_duration(value)
    except ValueError:
        return 0


def _parse_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 0


def _best_thumbnail(thumbnails: dict[str, Any]) -> str | None:
    for key in ("high", "medium", "default"):
        url = _as_str(_as_dict(thumbnails.get(key)).get("url"))
        if url:
            return url
    return None


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {}


def _as_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None
