from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import httpx

from scoutfox.services.results import (
    DEFAULT_CHANNEL_TITLE,
    DEFAULT_VIDEO_TITLE,
    VideoResult,
    as_dict,
    as_list,
    coerce_int,
    coerce_nonempty_string,
)
from scoutfox.services.retrying_fetcher import RetryingFetcher

LOGGER = logging.getLogger("scoutfox.youtube")

DEFAULT_YOUTUBE_API_BASE_URL = "https://www.googleapis.com/youtube/v3"
SEARCH_SCOPE = "search"
STATISTICS_SCOPE = "statistics"


@dataclass(frozen=True)
class VideoStatistics:
    view_count: int
    like_count: int | None = None


class YouTubeSearchClient:
    """
    Direct YouTube Data API access using a caller-supplied API key.

    A search costs two calls: `search.list` for the hits and `videos.list`
    for their view and like counts.
    """

    def __init__(
        self,
        *,
        fetcher: RetryingFetcher,
        base_url: str = DEFAULT_YOUTUBE_API_BASE_URL,
        timeout_seconds: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = max(1.0, timeout_seconds)
        self._http_client = http_client

    async def search(self, query: str, *, api_key: str, max_results: int) -> list[VideoResult]:
        params = {
            "part": "snippet",
            "type": "video",
            "q": query,
            "maxResults": str(max(1, max_results)),
            "order": "relevance",
            "safeSearch": "moderate",
            "key": api_key,
        }
        async with self._session() as client:
            payload = await self._fetcher.fetch_json(
                lambda: client.get(
                    f"{self._base_url}/search",
                    params=params,
                    timeout=self._timeout_seconds,
                ),
                scope=SEARCH_SCOPE,
            )

            items = [as_dict(item) for item in as_list(payload.get("items"))]
            video_ids = [
                video_id
                for video_id in (_search_item_video_id(item) for item in items)
                if video_id is not None
            ]
            if not video_ids:
                return []

            statistics = await self._fetch_statistics(client, video_ids, api_key=api_key)

        results: list[VideoResult] = []
        for item in items:
            video_id = _search_item_video_id(item)
            if video_id is None:
                continue
            results.append(
                _merge_search_item(item, video_id, statistics.get(video_id, VideoStatistics(0)))
            )
        LOGGER.debug("youtube search query=%s results=%s", query, len(results))
        return results

    async def _fetch_statistics(
        self,
        client: httpx.AsyncClient,
        video_ids: list[str],
        *,
        api_key: str,
    ) -> dict[str, VideoStatistics]:
        params = {
            "part": "snippet,statistics",
            "id": ",".join(video_ids),
            "key": api_key,
        }
        payload = await self._fetcher.fetch_json(
            lambda: client.get(
                f"{self._base_url}/videos",
                params=params,
                timeout=self._timeout_seconds,
            ),
            scope=STATISTICS_SCOPE,
        )

        statistics: dict[str, VideoStatistics] = {}
        for raw_item in as_list(payload.get("items")):
            item = as_dict(raw_item)
            video_id = coerce_nonempty_string(item.get("id"))
            if video_id is None:
                continue
            raw_statistics = as_dict(item.get("statistics"))
            like_count = coerce_int(raw_statistics.get("likeCount"))
            statistics[video_id] = VideoStatistics(
                view_count=max(0, coerce_int(raw_statistics.get("viewCount")) or 0),
                like_count=max(0, like_count) if like_count is not None else None,
            )
        return statistics

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
            yield client


def _search_item_video_id(item: dict[str, Any]) -> str | None:
    return coerce_nonempty_string(as_dict(item.get("id")).get("videoId"))


def _merge_search_item(
    item: dict[str, Any],
    video_id: str,
    statistics: VideoStatistics,
) -> VideoResult:
    snippet = as_dict(item.get("snippet"))
    thumbnails = as_dict(snippet.get("thumbnails"))
    thumbnail_url = coerce_nonempty_string(
        as_dict(thumbnails.get("medium")).get("url")
    ) or coerce_nonempty_string(as_dict(thumbnails.get("default")).get("url"))
    return VideoResult(
        video_id=video_id,
        title=coerce_nonempty_string(snippet.get("title")) or DEFAULT_VIDEO_TITLE,
        channel_title=coerce_nonempty_string(snippet.get("channelTitle")) or DEFAULT_CHANNEL_TITLE,
        thumbnail_url=thumbnail_url or "",
        view_count=statistics.view_count,
        like_count=statistics.like_count,
        published_at=coerce_nonempty_string(snippet.get("publishedAt")) or "",
    )
