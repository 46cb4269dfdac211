from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime

from scoutfox.repositories.common import parse_utc_datetime
from scoutfox.repositories.database import Database
from scoutfox.services.results import VideoResult, as_list, video_results_from_payload


@dataclass(frozen=True)
class CachedSearch:
    cache_key: str
    results: list[VideoResult]
    fetched_at: datetime


class SearchCacheRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    def get(self, cache_key: str) -> CachedSearch | None:
        with self._db.connection() as conn:
            row = conn.execute(
                """
                SELECT cache_key, results_json, fetched_at
                FROM search_cache
                WHERE cache_key = ?
                """,
                (cache_key,),
            ).fetchone()

        if row is None:
            return None
        fetched_at = parse_utc_datetime(row["fetched_at"])
        results = _decode_results(row["results_json"])
        if fetched_at is None or results is None:
            return None
        return CachedSearch(
            cache_key=str(row["cache_key"]),
            results=results,
            fetched_at=fetched_at,
        )

    def upsert(self, *, cache_key: str, results: list[VideoResult], fetched_at: datetime) -> None:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO search_cache (cache_key, results_json, fetched_at)
                VALUES (?, ?, ?)
                ON CONFLICT(cache_key) DO UPDATE SET
                    results_json = excluded.results_json,
                    fetched_at = excluded.fetched_at
                """,
                (
                    cache_key,
                    json.dumps([result.to_payload() for result in results]),
                    fetched_at.isoformat(),
                ),
            )

    def delete(self, cache_key: str) -> None:
        with self._db.connection() as conn:
            conn.execute("DELETE FROM search_cache WHERE cache_key = ?", (cache_key,))

    def count(self) -> int:
        with self._db.connection() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM search_cache").fetchone()
        return int(row["total"]) if row is not None else 0


def _decode_results(raw_value: object) -> list[VideoResult] | None:
    if not isinstance(raw_value, str):
        return None
    try:
        parsed = json.loads(raw_value)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, list):
        return None
    return video_results_from_payload(as_list(parsed))
