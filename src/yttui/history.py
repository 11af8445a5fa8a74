from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .timeparse import parse_timestamp

logger = logging.getLogger(__name__)


class HistoryStore:
    """Watched video ids, persisted as JSON after every change.

    The set only grows while the application runs. Each ``mark_watched`` call
    finishes writing the whole file before it returns.
    """

    def __init__(
        self,
        path: Path,
        watched: set[str] | None = None,
        timestamps: dict[str, str] | None = None,
    ) -> None:
        self.path = path
        self._watched: set[str] = set(watched or ())
        self._timestamps: dict[str, str] = dict(timestamps or {})

    @classmethod
    def load(cls, path: Path) -> tuple[HistoryStore, str | None]:
        if not path.exists():
            return cls(path), None
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Failed to read history %s: %s", path, exc)
            return cls(path), f"Failed to read history: {path} ({exc})"
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("History file is not valid JSON: %s", path)
            return cls(path), f"History file is not valid JSON: {path}"
        if not isinstance(data, dict):
            return cls(path), f"History file must be a JSON object: {path}"
        watched, timestamps = _parse_history_data(data)
        logger.info("Loaded %d watched videos from %s", len(watched), path)
        return cls(path, watched, timestamps), None

    def is_watched(self, video_id: str) -> bool:
        return video_id in self._watched

    def watched_count(self) -> int:
        return len(self._watched)

    def watched_sorted(self) -> list[tuple[str, str | None]]:
        """Watched ids with their last watch time, newest first.

        Ids without a recorded time sort last, ordered by id.
        """
        stamped = sorted(
            ((video_id, self._timestamps.get(video_id)) for video_id in self._watched),
            key=lambda item: item[0],
        )
        return sorted(stamped, key=lambda item: _sort_time(item[1]), reverse=True)

    def mark_watched(self, video_id: str, now: datetime | None = None) -> str | None:
        self._watched.add(video_id)
        moment = now or datetime.now(timezone.utc)
        self._timestamps[video_id] = moment.isoformat()
        return self.save()

    def save(self) -> str | None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("Failed to create history directory %s: %s", self.path.parent, exc)
            return f"Failed to create history directory: {self.path.parent} ({exc})"
        payload = {
            "watched_videos": sorted(self._watched),
            "watch_timestamps": dict(sorted(self._timestamps.items())),
        }
        # Write then rename; the file on disk is always complete.
        partial = self.path.with_name(self.path.name + ".part")
        try:
            partial.write_text(
                json.dumps(payload, ensure_ascii=True, indent=2),
                encoding="utf-8",
            )
            partial.replace(self.path)
        except OSError as exc:
            logger.warning("Failed to write history %s: %s", self.path, exc)
            return f"Failed to write history: {self.path} ({exc})"
        return None


def _parse_history_data(data: dict[str, Any]) -> tuple[set[str], dict[str, str]]:
    watched_raw = data.get("watched_videos")
    watched = set()
    if isinstance(watched_raw, list):
        watched = {value for value in watched_raw if isinstance(value, str) and value}
    timestamps_raw = data.get("watch_timestamps")
    timestamps: dict[str, str] = {}
    if isinstance(timestamps_raw, dict):
        for key, value in timestamps_raw.items():
            if isinstance(key, str) and isinstance(value, str):
                timestamps[key] = value
    # Older files may only carry timestamps.
    watched.update(timestamps)
    return watched, timestamps


def _sort_time(value: str | None) -> datetime:
    return parse_timestamp(value) or datetime.min.replace(tzinfo=timezone.utc)
