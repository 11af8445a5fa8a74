from pathlib import Path

import pytest

from yttui.thumbs import download_thumbnail


def test_download_thumbnail_cached(tmp_path: Path) -> None:
    calls = 0

    def fetch(_: str) -> bytes:
        nonlocal calls
        calls += 1
        return b"image"

    url = "https://i.ytimg.com/vi/abc123/hqdefault.jpg"
    path1 = download_thumbnail(url, "abc123", cache_dir=tmp_path, fetcher=fetch)
    assert path1.read_bytes() == b"image"
    path2 = download_thumbnail(url, "abc123", cache_dir=tmp_path, fetcher=fetch)
    assert path1 == path2
    assert calls == 1


def test_download_thumbnail_keeps_known_extension(tmp_path: Path) -> None:
    url = "https://i.ytimg.com/vi_webp/abc123/hqdefault.webp?v=1"
    path = download_thumbnail(url, "abc123", cache_dir=tmp_path, fetcher=lambda _: b"x")
    assert path.name == "abc123.webp"


def test_download_thumbnail_default_extension(tmp_path: Path) -> None:
    def fetch(_: str) -> bytes:
        return b"image"

    url = "https://example.com/thumb"
    path = download_thumbnail(url, "xyz789", cache_dir=tmp_path, fetcher=fetch)
    assert path.name == "xyz789.jpg"


def test_download_thumbnail_rejects_empty_response(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError):
        download_thumbnail("https://example.com/a.jpg", "a", cache_dir=tmp_path, fetcher=lambda _: b"")
    assert not (tmp_path / "a.jpg").exists()


def test_download_thumbnail_requires_url(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        download_thumbnail("", "a", cache_dir=tmp_path, fetcher=lambda _: b"x")


def test_download_thumbnail_leaves_no_partial_file(tmp_path: Path) -> None:
    download_thumbnail("https://example.com/a.png", "a", cache_dir=tmp_path, fetcher=lambda _: b"png")
    assert sorted(path.name for path in tmp_path.iterdir()) == ["a.png"]
