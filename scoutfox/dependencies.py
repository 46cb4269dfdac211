from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from scoutfox.config import AppSettings, load_settings
from scoutfox.repositories.database import Database
from scoutfox.repositories.search_cache_repository import SearchCacheRepository
from scoutfox.services.product_extractor import MultiProductExtractor
from scoutfox.services.product_resolver import ProductResolver
from scoutfox.services.remote_proxy_client import RemoteProxyClient, proxy_is_configured
from scoutfox.services.retrieval_cache import RetrievalCache
from scoutfox.services.retrying_fetcher import RetryingFetcher
from scoutfox.services.search_orchestrator import SearchOrchestrator
from scoutfox.services.title_optimizer import TitleOptimizer
from scoutfox.services.youtube_search_client import YouTubeSearchClient
from scoutfox.telemetry import TelemetryClient, build_telemetry_client


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_retrieval_cache() -> RetrievalCache:
    settings = get_settings()
    database = Database(settings.db_path)
    database.initialize()
    return RetrievalCache(SearchCacheRepository(database))


@lru_cache(maxsize=1)
def get_proxy_client() -> RemoteProxyClient | None:
    settings = get_settings()
    if not proxy_is_configured(settings.proxy_base_url):
        return None
    assert settings.proxy_base_url is not None
    return RemoteProxyClient(
        base_url=settings.proxy_base_url,
        search_timeout_seconds=settings.proxy_search_timeout_seconds,
        extract_timeout_seconds=settings.proxy_extract_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_search_orchestrator() -> SearchOrchestrator:
    settings = get_settings()
    fetcher = RetryingFetcher(
        max_attempts=settings.retry_max_attempts,
        initial_backoff_seconds=settings.retry_initial_backoff_seconds,
    )
    return SearchOrchestrator(
        youtube_client=YouTubeSearchClient(
            fetcher=fetcher,
            base_url=settings.youtube_api_base_url,
            timeout_seconds=settings.youtube_timeout_seconds,
        ),
        cache=get_retrieval_cache(),
        proxy_client=get_proxy_client(),
        title_optimizer=TitleOptimizer(
            api_key=settings.groq_api_key,
            base_url=settings.groq_base_url,
            model=settings.groq_model,
            timeout_seconds=settings.groq_timeout_seconds,
        ),
        default_api_key=settings.youtube_api_key,
        cache_ttl=timedelta(seconds=settings.search_cache_ttl_seconds),
        max_results=settings.youtube_max_results,
        telemetry=get_telemetry(),
    )


@lru_cache(maxsize=1)
def get_product_resolver() -> ProductResolver:
    settings = get_settings()
    proxy_client = get_proxy_client()
    extractor = (
        MultiProductExtractor(
            proxy_client,
            confidence_threshold=settings.candidate_confidence_threshold,
        )
        if proxy_client is not None
        else None
    )
    return ProductResolver(
        extractor=extractor,
        marketplace_search_url=settings.marketplace_search_url,
        telemetry=get_telemetry(),
    )


@lru_cache(maxsize=1)
def get_telemetry() -> TelemetryClient:
    settings = get_settings()
    return build_telemetry_client(
        enabled=settings.telemetry_enabled,
        sink=settings.telemetry_sink,
    )


def reset_cached_dependencies() -> None:
    get_product_resolver.cache_clear()
    get_search_orchestrator.cache_clear()
    get_proxy_client.cache_clear()
    get_retrieval_cache.cache_clear()
    get_telemetry.cache_clear()
    get_settings.cache_clear()
