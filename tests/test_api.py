from __future__ import annotations

from collections.abc import Iterator
from typing import Any, cast

import pytest
from fastapi.testclient import TestClient

from scoutfox.dependencies import get_search_orchestrator, reset_cached_dependencies
from scoutfox.main import create_app
from scoutfox.repositories.database import Database
from scoutfox.repositories.search_cache_repository import SearchCacheRepository
from scoutfox.services.errors import QuotaExceededError, RateLimitError, SourceTimeoutError
from scoutfox.services.results import VideoResult
from scoutfox.services.retrieval_cache import RetrievalCache
from scoutfox.services.search_orchestrator import SearchOrchestrator


class _FakeYouTubeClient:
    def __init__(self, outcome: list[VideoResult] | Exception) -> None:
        self._outcome = outcome
        self.calls: list[tuple[str, str, int]] = []

    async def search(self, query: str, *, api_key: str, max_results: int) -> list[VideoResult]:
        self.calls.append((query, api_key, max_results))
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


def _video(video_id: str) -> VideoResult:
    return VideoResult(
        video_id=video_id,
        title="Kindle Paperwhite review",
        channel_title="Gadget Lab",
        thumbnail_url="https://img.test/thumb.jpg",
        view_count=125000,
        published_at="2024-02-01T10:00:00Z",
        like_count=3400,
    )


@pytest.fixture
def client() -> Iterator[TestClient]:
    reset_cached_dependencies()
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _override_youtube(
    test_client: TestClient,
    database: Database,
    youtube: _FakeYouTubeClient,
) -> None:
    orchestrator = SearchOrchestrator(
        youtube_client=cast(Any, youtube),
        cache=RetrievalCache(SearchCacheRepository(database)),
        default_api_key="default-key",
    )
    app = cast(Any, test_client.app)
    app.dependency_overrides[get_search_orchestrator] = lambda: orchestrator


def test_health_echoes_request_id(client: TestClient) -> None:
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"] == "req-123"


def test_queries_endpoint_returns_variants(client: TestClient) -> None:
    response = client.post("/queries", json={"title": "Samsung Galaxy S24 Ultra"})

    assert response.status_code == 200
    body = response.json()
    assert body["normalizedTitle"] == "samsung galaxy s24 ultra"
    assert body["query"] == "samsung galaxy s24 ultra"
    assert body["variants"][-1] == "samsung galaxy s24 ultra vs samsung galaxy s24"


def test_search_by_product_without_any_source_is_503(client: TestClient) -> None:
    response = client.post("/search-by-product", json={"productTitle": "Kindle Paperwhite"})

    assert response.status_code == 503
    assert "configure an API key" in response.json()["detail"]


def test_search_by_product_empty_title_is_empty_success(client: TestClient) -> None:
    response = client.post("/search-by-product", json={"productTitle": "  "})

    assert response.status_code == 200
    assert response.json() == {"success": True, "results": []}


def test_search_without_key_is_503(client: TestClient) -> None:
    response = client.post("/search", json={"query": "kindle review"})

    assert response.status_code == 503


def test_search_returns_camel_case_results(client: TestClient, database: Database) -> None:
    youtube = _FakeYouTubeClient([_video("vid1")])
    _override_youtube(client, database, youtube)

    response = client.post(
        "/search",
        json={"query": "kindle   review", "apiKey": "caller-key", "maxResults": 3},
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "results": [
            {
                "videoId": "vid1",
                "title": "Kindle Paperwhite review",
                "channelTitle": "Gadget Lab",
                "thumbnailUrl": "https://img.test/thumb.jpg",
                "viewCount": 125000,
                "likeCount": 3400,
                "publishedAt": "2024-02-01T10:00:00Z",
            }
        ],
    }
    assert youtube.calls == [("kindle review", "caller-key", 3)]


def test_listing_resolve_uses_options(client: TestClient, database: Database) -> None:
    youtube = _FakeYouTubeClient([_video("vid1")])
    _override_youtube(client, database, youtube)

    response = client.post(
        "/listings/resolve",
        json={
            "title": "Kindle Paperwhite",
            "asin": "b0cfpjyx7p",
            "options": {"youtubeApiKey": "own-key", "useOwnKey": True},
        },
    )

    assert response.status_code == 200
    assert [video["videoId"] for video in response.json()["results"]] == ["vid1"]
    assert youtube.calls[0][1] == "own-key"


def test_invalid_asin_is_rejected(client: TestClient) -> None:
    response = client.post("/listings/resolve", json={"title": "Kindle", "asin": "B0-12"})

    assert response.status_code == 422


@pytest.mark.parametrize(
    ("error", "status_code", "retry_after"),
    [
        (RateLimitError("limited", retry_after_seconds=4, scope="search"), 429, "4"),
        (QuotaExceededError("quota"), 429, "3600"),
        (SourceTimeoutError("slow"), 504, None),
    ],
)
def test_errors_map_to_status_codes(
    client: TestClient,
    database: Database,
    error: Exception,
    status_code: int,
    retry_after: str | None,
) -> None:
    _override_youtube(client, database, _FakeYouTubeClient(error))

    response = client.post("/search", json={"query": "kindle review", "apiKey": "key"})

    assert response.status_code == status_code
    assert response.json() == {"detail": str(error)}
    assert response.headers.get("Retry-After") == retry_after


def test_extract_product_without_proxy_uses_fallback(client: TestClient) -> None:
    response = client.post(
        "/extract-product",
        json={"videoTitle": "Garmin Forerunner 265 review after 6 months"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "fallback"
    (product,) = body["products"]
    assert product["productName"] == "Garmin Forerunner 265"
    assert product["confidence"] == 0.5
    assert product["searchUrl"] == "https://www.amazon.com/s?k=Garmin+Forerunner+265"
