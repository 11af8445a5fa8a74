from __future__ import annotations

import json
from datetime import datetime, timezone

from yttui.history import HistoryStore


def test_load_missing_file_is_empty(tmp_path) -> None:
    store, error = HistoryStore.load(tmp_path / "history.json")
    assert error is None
    assert store.watched_count() == 0


def test_load_corrupt_file_reports_and_starts_empty(tmp_path) -> None:
    path = tmp_path / "history.json"
    path.write_text("{broken", encoding="utf-8")
    store, error = HistoryStore.load(path)
    assert error is not None
    assert store.watched_count() == 0


def test_load_non_object_reports(tmp_path) -> None:
    path = tmp_path / "history.json"
    path.write_text('["abc"]', encoding="utf-8")
    store, error = HistoryStore.load(path)
    assert error is not None
    assert store.watched_count() == 0


def test_load_reads_ids_and_timestamps(tmp_path) -> None:
    path = tmp_path / "history.json"
    path.write_text(
        json.dumps(
            {
                "watched_videos": ["a", "b", 3, ""],
                "watch_timestamps": {"b": "2024-01-01T00:00:00+00:00", "c": "2024-02-01T00:00:00+00:00"},
            }
        ),
        encoding="utf-8",
    )
    store, error = HistoryStore.load(path)
    assert error is None
    assert sorted(video_id for video_id, _ in store.watched_sorted()) == ["a", "b", "c"]
    assert store.is_watched("c")
    assert not store.is_watched("3")


def test_mark_watched_persists(tmp_path) -> None:
    path = tmp_path / "nested" / "history.json"
    store, _ = HistoryStore.load(path)
    moment = datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
    assert store.mark_watched("abc", now=moment) is None

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["watched_videos"] == ["abc"]
    assert data["watch_timestamps"] == {"abc": moment.isoformat()}

    reloaded, error = HistoryStore.load(path)
    assert error is None
    assert reloaded.is_watched("abc")


def test_mark_watched_twice_keeps_one_entry(tmp_path) -> None:
    path = tmp_path / "history.json"
    store = HistoryStore(path)
    store.mark_watched("abc", now=datetime(2024, 1, 1, tzinfo=timezone.utc))
    later = datetime(2024, 2, 1, tzinfo=timezone.utc)
    store.mark_watched("abc", now=later)
    assert store.watched_count() == 1
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["watched_videos"] == ["abc"]
    assert data["watch_timestamps"]["abc"] == later.isoformat()


def test_mark_watched_reports_write_failure(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = HistoryStore(blocker / "history.json")
    error = store.mark_watched("abc")
    assert error is not None
    # Membership still changes for the running session.
    assert store.is_watched("abc")


def test_watched_sorted_newest_first(tmp_path) -> None:
    store = HistoryStore(
        tmp_path / "history.json",
        watched={"old", "new", "z-undated", "a-undated"},
        timestamps={
            "old": "2024-01-01T00:00:00+00:00",
            "new": "2024-06-01T00:00:00+00:00",
        },
    )
    assert [video_id for video_id, _ in store.watched_sorted()] == [
        "new",
        "old",
        "a-undated",
        "z-undated",
    ]


def test_load_undecodable_file_reports_and_starts_empty(tmp_path) -> None:
    path = tmp_path / "history.json"
    path.write_bytes(b'{"watched_videos": ["\xff\xfe"]}')
    store, error = HistoryStore.load(path)
    assert error is not None
    assert "Failed to read history" in error
    assert store.watched_count() == 0


def test_save_replaces_file_without_leftovers(tmp_path) -> None:
    path = tmp_path / "history.json"
    path.write_text('{"watched_videos": ["old"]}', encoding="utf-8")
    store, _ = HistoryStore.load(path)
    assert store.mark_watched("new") is None
    assert sorted(entry.name for entry in tmp_path.iterdir()) == ["history.json"]
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["watched_videos"] == ["new", "old"]
