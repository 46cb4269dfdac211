from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum

from scoutfox.services.errors import (
    ConfigurationError,
    QuotaExceededError,
    RateLimitError,
    ResponseValidationError,
    ScoutFoxError,
)
from scoutfox.services.query_builder import build_variants
from scoutfox.services.remote_proxy_client import RemoteProxyClient
from scoutfox.services.results import ProductListing, VideoResult
from scoutfox.services.retrieval_cache import RetrievalCache, listing_cache_key
from scoutfox.services.title_optimizer import TitleOptimizer
from scoutfox.services.youtube_search_client import YouTubeSearchClient
from scoutfox.telemetry import TelemetryClient

LOGGER = logging.getLogger("scoutfox.search")

DEFAULT_CACHE_TTL = timedelta(hours=24)
DEFAULT_MAX_RESULTS = 6
OPTIMIZED_QUERY_SUFFIXES: tuple[str, ...] = ("review", "unboxing", "hands on")


class SourcePreference(StrEnum):
    REMOTE_PROXY = "remote_proxy"
    USER_CREDENTIALS = "user_credentials"
    DIRECT_FALLBACK = "direct_fallback"


@dataclass(frozen=True)
class ResolutionConfig:
    """Credentials and switches for a single resolution call."""

    youtube_api_key: str | None = None
    use_own_key: bool = False
    groq_api_key: str | None = None
    bypass_cache: bool = False


def resolve_source_preference(
    config: ResolutionConfig,
    *,
    proxy_available: bool,
) -> SourcePreference:
    if config.use_own_key and config.youtube_api_key:
        return SourcePreference.USER_CREDENTIALS
    if proxy_available:
        return SourcePreference.REMOTE_PROXY
    return SourcePreference.DIRECT_FALLBACK


class SearchOrchestrator:
    """
    Product -> review videos.

    Sources are tried in order: the remote proxy (unless the caller opted
    into their own key), then direct YouTube search over the query variants.
    Variants run strictly one after another and the first non-empty result
    wins, so no quota is spent on the remaining ones.
    """

    def __init__(
        self,
        *,
        youtube_client: YouTubeSearchClient,
        cache: RetrievalCache,
        proxy_client: RemoteProxyClient | None = None,
        title_optimizer: TitleOptimizer | None = None,
        default_api_key: str | None = None,
        cache_ttl: timedelta = DEFAULT_CACHE_TTL,
        max_results: int = DEFAULT_MAX_RESULTS,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self._youtube_client = youtube_client
        self._cache = cache
        self._proxy_client = proxy_client
        self._title_optimizer = title_optimizer
        self._default_api_key = default_api_key
        self._cache_ttl = cache_ttl
        self._max_results = max(1, max_results)
        self._telemetry = telemetry or TelemetryClient.disabled()

    async def search(
        self,
        query: str,
        *,
        api_key: str,
        max_results: int | None = None,
        bypass_cache: bool = False,
    ) -> list[VideoResult]:
        """
        One cached, retried provider search.

        `bypass_cache` skips the read but a non-empty result is still written.
        """
        limit = max(1, max_results or self._max_results)

        if not bypass_cache:
            cached = await self._cache.get(query, self._cache_ttl)
            if cached is not None:
                self._telemetry.emit("search.cache.hit", query=query, results=len(cached))
                return cached[:limit]
            self._telemetry.emit("search.cache.miss", query=query)

        results = await self._youtube_client.search(query, api_key=api_key, max_results=limit)
        if results:
            await self._cache.put(query, results)
        return results

    async def resolve_product_videos(
        self,
        title: str | None,
        subtitle: str | None = None,
        *,
        prefer_ai: bool = False,
        config: ResolutionConfig | None = None,
    ) -> list[VideoResult]:
        if not title or not title.strip():
            return []

        config = config or ResolutionConfig()
        preference = resolve_source_preference(
            config,
            proxy_available=self._proxy_client is not None,
        )
        self._telemetry.emit("search.source.selected", preference=preference.value)

        if preference is SourcePreference.REMOTE_PROXY:
            proxy_results = await self._search_remote_proxy(title, subtitle, prefer_ai=prefer_ai)
            if proxy_results is not None:
                return proxy_results

        api_key = self._resolve_api_key(config)
        queries = await self._build_queries(title, subtitle, prefer_ai=prefer_ai, config=config)
        return await self._search_variants(
            queries,
            api_key=api_key,
            bypass_cache=config.bypass_cache,
        )

    async def resolve_listing(
        self,
        listing: ProductListing,
        *,
        prefer_ai: bool = False,
        config: ResolutionConfig | None = None,
    ) -> list[VideoResult]:
        config = config or ResolutionConfig()
        cache_key = listing_cache_key(listing.asin) if listing.asin else None

        if cache_key is not None and not config.bypass_cache:
            cached = await self._cache.get(cache_key, self._cache_ttl)
            if cached is not None:
                self._telemetry.emit("search.cache.hit", query=cache_key, results=len(cached))
                return cached

        results = await self.resolve_product_videos(
            listing.title,
            listing.subtitle,
            prefer_ai=prefer_ai,
            config=config,
        )
        if cache_key is not None:
            await self._cache.put(cache_key, results)
        return results

    async def _search_remote_proxy(
        self,
        title: str,
        subtitle: str | None,
        *,
        prefer_ai: bool,
    ) -> list[VideoResult] | None:
        assert self._proxy_client is not None
        try:
            results = await self._proxy_client.search_by_product(
                title=title,
                subtitle=subtitle,
                optimize_title=prefer_ai,
            )
        except QuotaExceededError:
            LOGGER.info("remote search quota exceeded; falling back to direct search")
            self._telemetry.emit("search.proxy.fallback", reason="quota_exceeded")
            return None
        except ScoutFoxError as exc:
            LOGGER.warning("remote search failed; falling back to direct search error=%s", exc)
            self._telemetry.emit("search.proxy.fallback", reason=type(exc).__name__)
            return None

        LOGGER.debug("remote search succeeded results=%s", len(results))
        return results

    def _resolve_api_key(self, config: ResolutionConfig) -> str:
        api_key = config.youtube_api_key or self._default_api_key
        if api_key:
            return api_key
        if config.use_own_key:
            raise ConfigurationError(
                "Your YouTube API key is not configured. Add it in settings to search "
                "with your own key."
            )
        raise ConfigurationError(
            "Search service unavailable and no YouTube API key is configured. Check your "
            "connection or configure an API key in settings."
        )

    async def _build_queries(
        self,
        title: str,
        subtitle: str | None,
        *,
        prefer_ai: bool,
        config: ResolutionConfig,
    ) -> list[str]:
        if prefer_ai and self._title_optimizer is not None:
            try:
                optimized = await self._title_optimizer.optimize(
                    title,
                    subtitle,
                    api_key=config.groq_api_key,
                )
            except ScoutFoxError as exc:
                LOGGER.info("title optimization unavailable; using rule-based queries error=%s", exc)
            else:
                return [f"{optimized} {suffix}" for suffix in OPTIMIZED_QUERY_SUFFIXES]
        return build_variants(title, subtitle)

    async def _search_variants(
        self,
        queries: list[str],
        *,
        api_key: str,
        bypass_cache: bool,
    ) -> list[VideoResult]:
        last_error: ScoutFoxError | None = None
        searched_any = False

        for query in queries:
            try:
                results = await self.search(query, api_key=api_key, bypass_cache=bypass_cache)
            except (ResponseValidationError, RateLimitError):
                # Later variants would hit the same exhausted key.
                raise
            except ScoutFoxError as exc:
                LOGGER.warning("query variant failed query=%s error=%s", query, exc)
                last_error = exc
                continue

            searched_any = True
            self._telemetry.emit("search.variant.result", query=query, results=len(results))
            if results:
                return results

        if not searched_any and last_error is not None:
            raise last_error
        return []
