from __future__ import annotations

import httpx
import pytest

from yttui.youtube import FetchError, YouTubeClient, fetch_catalog


def _video_item(video_id: str, views: str = "10") -> dict:
    return {
        "id": video_id,
        "snippet": {
            "title": f"Video {video_id}",
            "channelTitle": "Channel",
            "publishedAt": "2024-01-15T10:00:00Z",
        },
        "contentDetails": {"duration": "PT1M"},
        "statistics": {"viewCount": views},
    }


def _activity(video_id: str) -> dict:
    return {"contentDetails": {"recommendation": {"resourceId": {"videoId": video_id}}}}


def _client(handler, access_token: str | None = None) -> YouTubeClient:
    transport = httpx.MockTransport(handler)
    return YouTubeClient(
        "key-123",
        access_token=access_token,
        client=httpx.Client(transport=transport),
    )


def test_client_requires_api_key() -> None:
    with pytest.raises(ValueError):
        YouTubeClient("")


def test_fetch_trending_without_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"items": [_video_item("a"), _video_item("b")]})

    with _client(handler) as client:
        videos = client.fetch_recommended_videos(max_results=2)

    assert [video.video_id for video in videos] == ["a", "b"]
    assert len(seen) == 1
    assert seen[0].url.path.endswith("/videos")
    assert seen[0].url.params["chart"] == "mostPopular"
    assert seen[0].url.params["maxResults"] == "2"
    assert seen[0].url.params["key"] == "key-123"


def test_fetch_personalized_with_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/activities"):
            assert request.headers["Authorization"] == "Bearer token-1"
            return httpx.Response(200, json={"items": [_activity("x"), {"snippet": {}}, _activity("y")]})
        assert request.url.params["id"] == "x,y"
        return httpx.Response(200, json={"items": [_video_item("x"), _video_item("y")]})

    with _client(handler, access_token="token-1") as client:
        videos = client.fetch_recommended_videos()

    assert [video.video_id for video in videos] == ["x", "y"]


def test_personalized_failure_falls_back_to_trending() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/activities"):
            return httpx.Response(401, text="Invalid Credentials")
        assert request.url.params["chart"] == "mostPopular"
        return httpx.Response(200, json={"items": [_video_item("t")]})

    with _client(handler, access_token="expired") as client:
        videos = client.fetch_recommended_videos()

    assert [video.video_id for video in videos] == ["t"]


def test_error_status_raises_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="quotaExceeded\nmore details")

    with _client(handler) as client:
        with pytest.raises(FetchError, match="403"):
            client.fetch_recommended_videos()


def test_transport_error_raises_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    with _client(handler) as client:
        with pytest.raises(FetchError, match="Failed to reach"):
            client.fetch_recommended_videos()


def test_bad_items_are_skipped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"items": [_video_item("ok"), {"id": "nodate", "snippet": {}}, "junk"]},
        )

    with _client(handler) as client:
        videos = client.fetch_recommended_videos()

    assert [video.video_id for video in videos] == ["ok"]


def test_fetch_video_details_chunks_ids() -> None:
    chunks: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        ids = request.url.params["id"].split(",")
        chunks.append(len(ids))
        return httpx.Response(200, json={"items": [_video_item(video_id) for video_id in ids]})

    with _client(handler) as client:
        videos = client.fetch_video_details([f"v{index}" for index in range(120)])

    assert chunks == [50, 50, 20]
    assert len(videos) == 120


def test_search_videos() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/search"):
            assert request.url.params["q"] == "textual"
            return httpx.Response(
                200,
                json={"items": [{"id": {"videoId": "s1"}}, {"id": "bad"}]},
            )
        return httpx.Response(200, json={"items": [_video_item("s1")]})

    with _client(handler) as client:
        videos = client.search_videos("textual", max_results=5)

    assert [video.video_id for video in videos] == ["s1"]


def test_fetch_catalog_statuses() -> None:
    def ok(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": [_video_item("a")]})

    def empty(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": []})

    def broken(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with _client(ok) as client:
        entries, status = fetch_catalog(client)
    assert len(entries) == 1
    assert status == "Loaded 1 videos"

    with _client(empty) as client:
        entries, status = fetch_catalog(client)
    assert entries == []
    assert status.startswith("Warning: No videos found")

    with _client(broken) as client:
        entries, status = fetch_catalog(client)
    assert entries == []
    assert status.startswith("Error fetching videos:")
