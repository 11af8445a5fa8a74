from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable
from urllib.parse import urlparse

import httpx

from .paths import thumbs_cache_dir

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], bytes]

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".webp")


def download_thumbnail(
    url: str,
    video_id: str,
    cache_dir: Path | None = None,
    fetcher: Fetcher | None = None,
) -> Path:
    """Return the cached thumbnail for ``video_id``, downloading it once.

    The image is written under a temporary name and renamed into place, so
    an interrupted download never leaves a truncated file in the cache.
    """
    if not url:
        raise ValueError("Missing thumbnail URL")
    target = (cache_dir or thumbs_cache_dir()) / (video_id + thumbnail_suffix(url))
    if target.exists():
        return target

    data = (fetcher or _http_fetch)(url)
    if not data:
        raise RuntimeError(f"Empty thumbnail response: {url}")
    partial = target.with_name(target.name + ".part")
    partial.write_bytes(data)
    partial.replace(target)
    logger.debug("Cached thumbnail %s (%d bytes)", target, len(data))
    return target


def thumbnail_suffix(url: str) -> str:
    suffix = Path(urlparse(url).path).suffix.lower()
    return suffix if suffix in IMAGE_SUFFIXES else ".jpg"


def _http_fetch(url: str) -> bytes:
    response = httpx.get(url, follow_redirects=True, timeout=10.0)
    response.raise_for_status()
    return response.content
