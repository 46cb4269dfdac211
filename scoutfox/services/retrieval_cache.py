from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from scoutfox.repositories.common import utc_now
from scoutfox.repositories.search_cache_repository import SearchCacheRepository
from scoutfox.services.results import VideoResult

LOGGER = logging.getLogger("scoutfox.cache")

LISTING_KEY_PREFIX = "listing"


def derive_cache_key(raw_key: str) -> str:
    return " ".join(raw_key.lower().split())


def listing_cache_key(asin: str) -> str:
    return f"{LISTING_KEY_PREFIX}:{asin}"


class RetrievalCache:
    """
    Durable query -> results map with lazy TTL expiry.

    Keys are case and whitespace insensitive: `"ECHO DOT"` and `"echo dot "`
    address the same entry.

    Concurrent writers for the same key are last-writer-wins; entries are
    recomputations of the same upstream query.
    """

    def __init__(
        self,
        repository: SearchCacheRepository,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._clock = clock

    async def get(self, key: str, ttl: timedelta) -> list[VideoResult] | None:
        key = derive_cache_key(key)
        entry = await asyncio.to_thread(self._repository.get, key)
        if entry is None:
            return None

        age = self._clock() - entry.fetched_at
        if age >= ttl:
            LOGGER.debug("search cache expired key=%s age_seconds=%s", key, int(age.total_seconds()))
            await self.evict(key)
            return None
        return list(entry.results)

    async def put(self, key: str, results: list[VideoResult]) -> None:
        key = derive_cache_key(key)
        await asyncio.to_thread(
            self._repository.upsert,
            cache_key=key,
            results=list(results),
            fetched_at=self._clock(),
        )
        LOGGER.debug("search cache stored key=%s results=%s", key, len(results))

    async def evict(self, key: str) -> None:
        await asyncio.to_thread(self._repository.delete, derive_cache_key(key))
