from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from yttui.config import (
    AppConfig,
    DefaultFilters,
    history_file_path,
    initial_filters,
    load_config,
    save_config,
    strip_jsonc_comments,
)


def test_load_config_missing_file(tmp_path) -> None:
    path = tmp_path / "config.jsonc"
    config, error = load_config(path)
    assert error is None
    assert config == AppConfig()


def test_save_and_load_config_roundtrip(tmp_path) -> None:
    path = tmp_path / "nested" / "config.jsonc"
    config = AppConfig(
        api_key="key-123",
        oauth_access_token="token-456",
        default_filters=DefaultFilters(
            channel="Tales",
            min_duration=60,
            max_duration=1200,
            after_date="2024-01-01T00:00:00Z",
        ),
        hide_watched=True,
        history_path="/tmp/yttui-history.json",
        max_results=25,
        player="vlc --fullscreen",
        log_level="debug",
    )
    error = save_config(config, path)
    assert error is None
    loaded, error = load_config(path)
    assert error is None
    assert loaded == config


def test_load_config_invalid_json(tmp_path) -> None:
    path = tmp_path / "config.jsonc"
    path.write_text("{not-json", encoding="utf-8")
    config, error = load_config(path)
    assert config == AppConfig()
    assert error is not None


def test_load_config_undecodable_file(tmp_path) -> None:
    path = tmp_path / "config.jsonc"
    path.write_bytes(b'{"api_key": "\xff"}')
    config, error = load_config(path)
    assert config == AppConfig()
    assert error is not None
    assert error.startswith("Failed to read config")


def test_save_default_config_leaves_empty_api_key(tmp_path) -> None:
    path = tmp_path / "config.jsonc"
    assert save_config(AppConfig(), path) is None
    assert '"api_key": ""' in path.read_text(encoding="utf-8")
    loaded, error = load_config(path)
    assert error is None
    assert loaded.api_key is None


def test_load_config_rejects_non_object(tmp_path) -> None:
    path = tmp_path / "config.jsonc"
    path.write_text("[1, 2]", encoding="utf-8")
    config, error = load_config(path)
    assert config == AppConfig()
    assert error is not None


def test_load_config_with_comments(tmp_path) -> None:
    path = tmp_path / "config.jsonc"
    path.write_text(
        "{\n"
        "  // YouTube Data API key\n"
        '  "api_key": "abc//def", // keep the slashes inside the string\n'
        '  "hide_watched": true,\n'
        '  "default_filters": {"channel": "Tales", "min_duration": 60}\n'
        "}\n",
        encoding="utf-8",
    )
    config, error = load_config(path)
    assert error is None
    assert config.api_key == "abc//def"
    assert config.hide_watched is True
    assert config.default_filters.channel == "Tales"
    assert config.default_filters.min_duration == 60


def test_load_config_ignores_bad_field_types(tmp_path) -> None:
    path = tmp_path / "config.jsonc"
    path.write_text(
        '{"max_results": -3, "hide_watched": "yes", "default_filters": {"min_duration": -1}}',
        encoding="utf-8",
    )
    config, error = load_config(path)
    assert error is None
    assert config.max_results == 50
    assert config.hide_watched is False
    assert config.default_filters.min_duration is None


def test_strip_jsonc_comments_handles_escaped_quotes() -> None:
    text = '{"title": "say \\"hi\\" // not a comment"} // comment'
    assert strip_jsonc_comments(text) == '{"title": "say \\"hi\\" // not a comment"}'


def test_history_file_path_relative_to_root(tmp_path) -> None:
    config = AppConfig()
    assert history_file_path(config, root=tmp_path) == tmp_path / "history.json"


def test_history_file_path_absolute(tmp_path) -> None:
    target = tmp_path / "elsewhere" / "watched.json"
    config = AppConfig(history_path=str(target))
    assert history_file_path(config, root=Path("/unused")) == target


def test_initial_filters_from_config() -> None:
    config = AppConfig(
        default_filters=DefaultFilters(
            channel="Tales",
            min_duration=60,
            max_duration=600,
            after_date="2024-01-01T00:00:00Z",
        ),
        hide_watched=True,
    )
    filters = initial_filters(config)
    assert filters.channel == "Tales"
    assert filters.min_duration == 60
    assert filters.max_duration == 600
    assert filters.after == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert filters.hide_watched is True


def test_initial_filters_ignores_unparsable_date() -> None:
    config = AppConfig(default_filters=DefaultFilters(after_date="last week"))
    assert initial_filters(config).after is None
