from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .paths import config_path, config_root
from .timeparse import parse_timestamp
from .view import FilterSettings

CONFIG_VERSION = 1
DEFAULT_HISTORY_PATH = "history.json"
DEFAULT_MAX_RESULTS = 50


@dataclass
class DefaultFilters:
    channel: str | None = None
    min_duration: int | None = None
    max_duration: int | None = None
    after_date: str | None = None


@dataclass
class AppConfig:
    version: int = CONFIG_VERSION
    api_key: str | None = None
    oauth_access_token: str | None = None
    default_filters: DefaultFilters = field(default_factory=DefaultFilters)
    hide_watched: bool = False
    history_path: str = DEFAULT_HISTORY_PATH
    max_results: int = DEFAULT_MAX_RESULTS
    player: str | None = None
    log_level: str | None = None


def load_config(path: Path | None = None) -> tuple[AppConfig, str | None]:
    path = path or config_path()
    if not path.exists():
        return AppConfig(), None
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return AppConfig(), f"Failed to read config: {path} ({exc})"
    try:
        data = json.loads(strip_jsonc_comments(raw))
    except json.JSONDecodeError:
        return AppConfig(), f"Config file is not valid JSON: {path}"
    if not isinstance(data, dict):
        return AppConfig(), f"Config file must be a JSON object: {path}"
    return _parse_config_data(data), None


def save_config(config: AppConfig, path: Path | None = None) -> str | None:
    path = path or config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return f"Failed to create config directory: {path.parent} ({exc})"
    payload = _config_to_dict(config)
    try:
        path.write_text(
            json.dumps(payload, ensure_ascii=True, indent=2),
            encoding="utf-8",
        )
    except OSError as exc:
        return f"Failed to write config: {path} ({exc})"
    return None


def history_file_path(config: AppConfig, root: Path | None = None) -> Path:
    path = Path(config.history_path).expanduser()
    if path.is_absolute():
        return path
    return (root or config_root()) / path


def initial_filters(config: AppConfig) -> FilterSettings:
    defaults = config.default_filters
    return FilterSettings(
        channel=defaults.channel,
        min_duration=defaults.min_duration,
        max_duration=defaults.max_duration,
        after=parse_timestamp(defaults.after_date),
        hide_watched=config.hide_watched,
    )


def strip_jsonc_comments(text: str) -> str:
    """Drop ``//`` line comments that sit outside string literals."""
    lines = []
    for line in text.splitlines():
        cut = _comment_start(line)
        lines.append(line if cut is None else line[:cut].rstrip())
    return "\n".join(lines)


def _comment_start(line: str) -> int | None:
    in_string = False
    escaped = False
    for index, char in enumerate(line):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "/" and line[index + 1 : index + 2] == "/":
            return index
    return None


def _parse_config_data(data: dict[str, Any]) -> AppConfig:
    filters = data.get("default_filters")
    return AppConfig(
        version=_as_int(data.get("version")) or CONFIG_VERSION,
        api_key=_as_str(data.get("api_key")),
        oauth_access_token=_as_str(data.get("oauth_access_token")),
        default_filters=_parse_filters(filters if isinstance(filters, dict) else {}),
        hide_watched=bool(_as_bool(data.get("hide_watched"))),
        history_path=_as_str(data.get("history_path")) or DEFAULT_HISTORY_PATH,
        max_results=_as_positive_int(data.get("max_results")) or DEFAULT_MAX_RESULTS,
        player=_as_str(data.get("player")),
        log_level=_as_str(data.get("log_level")),
    )


def _parse_filters(data: dict[str, Any]) -> DefaultFilters:
    return DefaultFilters(
        channel=_as_str(data.get("channel")),
        min_duration=_as_nonneg_int(data.get("min_duration")),
        max_duration=_as_nonneg_int(data.get("max_duration")),
        after_date=_as_str(data.get("after_date")),
    )


def _config_to_dict(config: AppConfig) -> dict[str, Any]:
    data: dict[str, Any] = {"version": config.version}
    # Always present so a written default config shows where the key goes.
    data["api_key"] = config.api_key or ""
    _set_if(data, "oauth_access_token", config.oauth_access_token)
    filters: dict[str, Any] = {}
    _set_if(filters, "channel", config.default_filters.channel)
    _set_if(filters, "min_duration", config.default_filters.min_duration)
    _set_if(filters, "max_duration", config.default_filters.max_duration)
    _set_if(filters, "after_date", config.default_filters.after_date)
    if filters:
        data["default_filters"] = filters
    data["hide_watched"] = config.hide_watched
    data["history_path"] = config.history_path
    data["max_results"] = config.max_results
    _set_if(data, "player", config.player)
    _set_if(data, "log_level", config.log_level)
    return data


def _set_if(data: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        data[key] = value


def _as_str(value: Any) -> str | None:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_nonneg_int(value: Any) -> int | None:
    number = _as_int(value)
    if number is None or number < 0:
        return None
    return number


def _as_positive_int(value: Any) -> int | None:
    number = _as_int(value)
    if number is None or number <= 0:
        return None
    return number
