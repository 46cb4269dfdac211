from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, cast

DEFAULT_VIDEO_TITLE = "Untitled"
DEFAULT_CHANNEL_TITLE = "Unknown Channel"


@dataclass(frozen=True)
class VideoResult:
    video_id: str
    title: str
    channel_title: str
    thumbnail_url: str
    view_count: int
    published_at: str
    like_count: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "videoId": self.video_id,
            "title": self.title,
            "channelTitle": self.channel_title,
            "thumbnailUrl": self.thumbnail_url,
            "viewCount": self.view_count,
            "likeCount": self.like_count,
            "publishedAt": self.published_at,
        }


@dataclass(frozen=True)
class ProductCandidate:
    product_name: str
    confidence: float
    rationale: str | None = None


@dataclass(frozen=True)
class VideoContext:
    video_title: str | None = None
    description: str | None = None
    channel_name: str | None = None
    document_title: str | None = None
    raw_text_blob: str | None = None

    def to_payload(self) -> dict[str, str | None]:
        return {
            "videoTitle": self.video_title,
            "description": self.description,
            "channelName": self.channel_name,
            "documentTitle": self.document_title,
            "rawTextBlob": self.raw_text_blob,
        }


@dataclass(frozen=True)
class ProductListing:
    title: str | None
    subtitle: str | None = None
    asin: str | None = None


def video_result_from_payload(raw_item: object) -> VideoResult | None:
    """
    Build a VideoResult from a camelCase mapping.

    Accepts both the current result shape and the legacy proxy shape, which
    names the channel `channelName`. Items without a video id are dropped.
    """
    item = as_dict(raw_item)
    video_id = coerce_nonempty_string(item.get("videoId"))
    if video_id is None:
        return None

    channel_title = coerce_nonempty_string(item.get("channelTitle")) or coerce_nonempty_string(
        item.get("channelName")
    )
    like_count = coerce_int(item.get("likeCount"))
    return VideoResult(
        video_id=video_id,
        title=coerce_nonempty_string(item.get("title")) or DEFAULT_VIDEO_TITLE,
        channel_title=channel_title or DEFAULT_CHANNEL_TITLE,
        thumbnail_url=coerce_nonempty_string(item.get("thumbnailUrl")) or "",
        view_count=max(0, coerce_int(item.get("viewCount")) or 0),
        like_count=max(0, like_count) if like_count is not None else None,
        published_at=coerce_nonempty_string(item.get("publishedAt")) or "",
    )


def video_results_from_payload(raw_items: object) -> list[VideoResult]:
    results: list[VideoResult] = []
    for raw_item in as_list(raw_items):
        result = video_result_from_payload(raw_item)
        if result is not None:
            results.append(result)
    return results


def coerce_nonempty_string(raw_value: object) -> str | None:
    if isinstance(raw_value, str) and raw_value.strip():
        return raw_value.strip()
    return None


def coerce_int(raw_value: object) -> int | None:
    if isinstance(raw_value, bool):
        return int(raw_value)
    if isinstance(raw_value, int):
        return raw_value
    if isinstance(raw_value, float):
        return int(raw_value) if math.isfinite(raw_value) else None
    if isinstance(raw_value, str):
        try:
            return int(raw_value)
        except ValueError:
            return None
    return None


def as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        raw_dict = cast(dict[object, object], value)
        converted: dict[str, Any] = {}
        for key, item in raw_dict.items():
            if isinstance(key, str):
                converted[key] = item
        return converted
    return {}


def as_list(value: Any) -> list[Any]:
    if isinstance(value, list):
        raw_list = cast(list[Any], value)
        return list(raw_list)
    return []
