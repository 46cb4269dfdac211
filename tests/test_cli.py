from __future__ import annotations

from typing import Any, cast

import pytest
from click.testing import CliRunner
from rich.console import Console

from scoutfox import cli
from scoutfox.repositories.database import Database
from scoutfox.repositories.search_cache_repository import SearchCacheRepository
from scoutfox.services.errors import ProviderRequestError
from scoutfox.services.results import VideoResult
from scoutfox.services.retrieval_cache import RetrievalCache
from scoutfox.services.search_orchestrator import SearchOrchestrator


class _FakeYouTubeClient:
    def __init__(self, results: list[VideoResult]) -> None:
        self._results = results
        self.api_keys: list[str] = []

    async def search(self, query: str, *, api_key: str, max_results: int) -> list[VideoResult]:
        self.api_keys.append(api_key)
        return self._results


class _FailingYouTubeClient:
    async def search(self, query: str, *, api_key: str, max_results: int) -> list[VideoResult]:
        raise ProviderRequestError("YouTube API error: unexpected [/bold] tag", status_code=500)


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch: pytest.MonkeyPatch) -> None:  # pyright: ignore[reportUnusedFunction]
    monkeypatch.setattr(cli, "console", Console(width=200))


def test_queries_lists_variants() -> None:
    result = CliRunner().invoke(cli.main, ["queries", "Samsung Galaxy S24 Ultra"])

    assert result.exit_code == 0
    assert "Normalized: samsung galaxy s24 ultra" in result.output
    assert "5. samsung galaxy s24 ultra vs samsung galaxy s24" in result.output


def test_queries_with_empty_title() -> None:
    result = CliRunner().invoke(cli.main, ["queries", "   "])

    assert result.exit_code == 0
    assert "No search variants" in result.output


def test_search_without_credentials_fails_with_guidance() -> None:
    result = CliRunner().invoke(cli.main, ["search", "Kindle Paperwhite"])

    assert result.exit_code == 1
    assert "configure an API key" in result.output


def test_search_renders_results_table(
    monkeypatch: pytest.MonkeyPatch,
    database: Database,
) -> None:
    youtube = _FakeYouTubeClient(
        [
            VideoResult(
                video_id="vid1",
                title="Kindle Paperwhite review",
                channel_title="Gadget Lab",
                thumbnail_url="",
                view_count=125000,
                published_at="2024-02-01T10:00:00Z",
                like_count=None,
            )
        ]
    )
    orchestrator = SearchOrchestrator(
        youtube_client=cast(Any, youtube),
        cache=RetrievalCache(SearchCacheRepository(database)),
    )
    monkeypatch.setattr(cli, "get_search_orchestrator", lambda: orchestrator)

    result = CliRunner().invoke(
        cli.main,
        ["search", "Kindle Paperwhite", "--api-key", " my-key ", "--own-key"],
    )

    assert result.exit_code == 0
    assert "Gadget Lab" in result.output
    assert "125K" in result.output
    assert "2024-02-01" in result.output
    assert "https://www.youtube.com/watch?v=vid1" in result.output
    assert youtube.api_keys == ["my-key"]


def test_extract_uses_text_fallback_without_proxy() -> None:
    result = CliRunner().invoke(
        cli.main,
        ["extract", "--title", "Garmin Forerunner 265 review after 6 months"],
    )

    assert result.exit_code == 0
    assert "Garmin Forerunner 265" in result.output
    assert "fallback" in result.output
    assert "50%" in result.output


def test_extract_requires_a_title() -> None:
    result = CliRunner().invoke(cli.main, ["extract", "--description", "just text"])

    assert result.exit_code == 2
    assert "--title" in result.output


def test_search_keeps_bracketed_text_in_titles(
    monkeypatch: pytest.MonkeyPatch,
    database: Database,
) -> None:
    youtube = _FakeYouTubeClient(
        [
            VideoResult(
                video_id="vid2",
                title="[review] Kindle Paperwhite",
                channel_title="[Gadget] Lab",
                thumbnail_url="",
                view_count=42,
                published_at="2024-02-01T10:00:00Z",
            )
        ]
    )
    orchestrator = SearchOrchestrator(
        youtube_client=cast(Any, youtube),
        cache=RetrievalCache(SearchCacheRepository(database)),
        default_api_key="default-key",
    )
    monkeypatch.setattr(cli, "get_search_orchestrator", lambda: orchestrator)

    result = CliRunner().invoke(cli.main, ["search", "Kindle Paperwhite"])

    assert result.exit_code == 0
    assert "[review] Kindle Paperwhite" in result.output
    assert "[Gadget] Lab" in result.output


def test_search_error_with_markup_like_text_is_printed_verbatim(
    monkeypatch: pytest.MonkeyPatch,
    database: Database,
) -> None:
    orchestrator = SearchOrchestrator(
        youtube_client=cast(Any, _FailingYouTubeClient()),
        cache=RetrievalCache(SearchCacheRepository(database)),
        default_api_key="default-key",
    )
    monkeypatch.setattr(cli, "get_search_orchestrator", lambda: orchestrator)

    result = CliRunner().invoke(cli.main, ["search", "Kindle Paperwhite"])

    assert result.exit_code == 1
    assert "unexpected [/bold] tag" in result.output
