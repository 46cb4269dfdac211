from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from structlog.contextvars import bind_contextvars, reset_contextvars

from scoutfox.config import AppSettings
from scoutfox.dependencies import (
    get_product_resolver,
    get_search_orchestrator,
    get_settings,
)
from scoutfox.models.contracts import (
    ExtractProductRequest,
    ExtractProductResponse,
    ListingResolveRequest,
    QueriesRequest,
    QueriesResponse,
    SearchByProductRequest,
    SearchRequest,
    SearchResponse,
)
from scoutfox.services.errors import ConfigurationError
from scoutfox.services.product_resolver import ProductResolver
from scoutfox.services.query_builder import build_query, build_variants
from scoutfox.services.search_orchestrator import SearchOrchestrator
from scoutfox.services.text_normalizer import normalize

router = APIRouter()


@router.post(
    "/search",
    response_model=SearchResponse,
    tags=["search"],
    operation_id="search_videos",
)
async def search_videos(
    request: SearchRequest,
    orchestrator: Annotated[SearchOrchestrator, Depends(get_search_orchestrator)],
    settings: Annotated[AppSettings, Depends(get_settings)],
) -> SearchResponse:
    api_key = request.api_key or settings.youtube_api_key
    if not api_key:
        raise ConfigurationError(
            "No YouTube API key is configured. Pass apiKey or set SCOUTFOX_YOUTUBE_API_KEY."
        )
    results = await orchestrator.search(
        request.query,
        api_key=api_key,
        max_results=request.max_results,
        bypass_cache=request.bypass_cache,
    )
    return SearchResponse.from_results(results)


@router.post(
    "/search-by-product",
    response_model=SearchResponse,
    tags=["search"],
    operation_id="search_by_product",
)
async def search_by_product(
    request: SearchByProductRequest,
    orchestrator: Annotated[SearchOrchestrator, Depends(get_search_orchestrator)],
) -> SearchResponse:
    results = await orchestrator.resolve_product_videos(
        request.product_title,
        request.subtitle,
        prefer_ai=request.optimize_title,
        config=request.options.to_config(),
    )
    return SearchResponse.from_results(results)


@router.post(
    "/listings/resolve",
    response_model=SearchResponse,
    tags=["search"],
    operation_id="resolve_listing",
)
async def resolve_listing(
    request: ListingResolveRequest,
    orchestrator: Annotated[SearchOrchestrator, Depends(get_search_orchestrator)],
) -> SearchResponse:
    context_tokens = bind_contextvars(listing_asin=request.asin or "")
    try:
        results = await orchestrator.resolve_listing(
            request.to_listing(),
            prefer_ai=request.optimize_title,
            config=request.options.to_config(),
        )
    finally:
        reset_contextvars(**context_tokens)
    return SearchResponse.from_results(results)


@router.post(
    "/extract-product",
    response_model=ExtractProductResponse,
    tags=["extract"],
    operation_id="extract_product",
)
async def extract_product(
    request: ExtractProductRequest,
    resolver: Annotated[ProductResolver, Depends(get_product_resolver)],
) -> ExtractProductResponse:
    resolution = await resolver.resolve(request.to_context())
    return ExtractProductResponse.from_resolution(resolution)


@router.post(
    "/queries",
    response_model=QueriesResponse,
    tags=["search"],
    operation_id="build_queries",
)
def build_queries(request: QueriesRequest) -> QueriesResponse:
    return QueriesResponse(
        normalized_title=normalize(request.title),
        query=build_query(request.title, request.subtitle),
        variants=build_variants(request.title, request.subtitle),
    )
