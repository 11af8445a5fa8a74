from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from .models import VideoEntry, video_from_api_item

logger = logging.getLogger(__name__)

API_BASE_URL = "https://www.googleapis.com/youtube/v3"
VIDEO_PARTS = "snippet,contentDetails,statistics"
_ID_CHUNK = 50


class FetchError(RuntimeError):
    pass


class YouTubeClient:
    """Minimal YouTube Data API v3 client.

    With an OAuth access token the home activity feed is tried first; any
    failure there falls back to the public most-popular chart.
    """

    def __init__(
        self,
        api_key: str,
        access_token: str | None = None,
        client: httpx.Client | None = None,
        base_url: str = API_BASE_URL,
    ) -> None:
        if not api_key:
            raise ValueError("YouTube API key is required")
        self.api_key = api_key
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(follow_redirects=True, timeout=30.0)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> YouTubeClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch_recommended_videos(self, max_results: int = 50) -> list[VideoEntry]:
        if self.access_token:
            try:
                videos = self._fetch_personalized(max_results)
            except FetchError as exc:
                logger.warning("Personalized feed failed, using trending: %s", exc)
            else:
                if videos:
                    return videos
        return self._fetch_trending(max_results)

    def fetch_video_details(self, video_ids: Iterable[str]) -> list[VideoEntry]:
        ids = list(video_ids)
        videos: list[VideoEntry] = []
        for start in range(0, len(ids), _ID_CHUNK):
            chunk = ids[start : start + _ID_CHUNK]
            data = self._get(
                "videos",
                {"part": VIDEO_PARTS, "id": ",".join(chunk), "key": self.api_key},
            )
            videos.extend(_parse_video_items(data))
        return videos

    def search_videos(self, query: str, max_results: int = 50) -> list[VideoEntry]:
        data = self._get(
            "search",
            {
                "part": "snippet",
                "type": "video",
                "q": query,
                "maxResults": str(max_results),
                "key": self.api_key,
            },
        )
        ids = []
        for item in _items(data):
            identifier = item.get("id")
            if not isinstance(identifier, dict):
                continue
            video_id = identifier.get("videoId")
            if isinstance(video_id, str) and video_id:
                ids.append(video_id)
        if not ids:
            return []
        return self.fetch_video_details(ids)

    def _fetch_trending(self, max_results: int) -> list[VideoEntry]:
        data = self._get(
            "videos",
            {
                "part": VIDEO_PARTS,
                "chart": "mostPopular",
                "maxResults": str(max_results),
                "key": self.api_key,
            },
        )
        return _parse_video_items(data)

    def _fetch_personalized(self, max_results: int) -> list[VideoEntry]:
        videos: list[VideoEntry] = []
        page_token: str | None = None
        while True:
            params = {"part": "snippet,contentDetails", "home": "true", "maxResults": "50"}
            if page_token:
                params["pageToken"] = page_token
            data = self._get("activities", params, bearer=True)
            ids = [video_id for video_id in map(_recommended_id, _items(data)) if video_id]
            if not ids:
                break
            videos.extend(self.fetch_video_details(ids))
            if len(videos) >= max_results:
                return videos[:max_results]
            page_token = data.get("nextPageToken")
            if not isinstance(page_token, str) or not page_token:
                break
        return videos

    def _get(self, endpoint: str, params: dict[str, str], bearer: bool = False) -> dict[str, Any]:
        headers = {}
        if bearer and self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        url = f"{self.base_url}/{endpoint}"
        try:
            response = self._client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise FetchError(f"Failed to reach YouTube API: {exc}") from exc
        if response.status_code >= 400:
            raise FetchError(f"YouTube API error ({response.status_code}): {_error_text(response)}")
        try:
            data = response.json()
        except ValueError as exc:
            raise FetchError(f"Failed to parse {endpoint} response") from exc
        if not isinstance(data, dict):
            raise FetchError(f"Unexpected {endpoint} response")
        return data


def fetch_catalog(client: YouTubeClient, max_results: int = 50) -> tuple[list[VideoEntry], str]:
    """Fetch the initial feed, turning every outcome into entries plus a status."""
    try:
        videos = client.fetch_recommended_videos(max_results)
    except FetchError as exc:
        logger.error("Error fetching videos: %s", exc)
        return [], f"Error fetching videos: {exc}"
    if not videos:
        return [], "Warning: No videos found. Check your API key permissions."
    logger.info("Fetched %d videos", len(videos))
    return videos, f"Loaded {len(videos)} videos"


def _parse_video_items(data: dict[str, Any]) -> list[VideoEntry]:
    videos = []
    for item in _items(data):
        try:
            videos.append(video_from_api_item(item))
        except ValueError as exc:
            logger.warning("Failed to parse video: %s", exc)
    return videos


def _items(data: dict[str, Any]) -> list[dict[str, Any]]:
    items = data.get("items")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _recommended_id(activity: dict[str, Any]) -> str | None:
    details = activity.get("contentDetails")
    if not isinstance(details, dict):
        snippet = activity.get("snippet")
        details = snippet.get("contentDetails") if isinstance(snippet, dict) else None
    if not isinstance(details, dict):
        return None
    recommendation = details.get("recommendation")
    if not isinstance(recommendation, dict):
        return None
    resource = recommendation.get("resourceId")
    if not isinstance(resource, dict):
        return None
    video_id = resource.get("videoId")
    return video_id if isinstance(video_id, str) and video_id else None


def _error_text(response: httpx.Response) -> str:
    text = response.text.strip()
    if not text:
        return response.reason_phrase or "no details"
    return text.splitlines()[0][:200]
