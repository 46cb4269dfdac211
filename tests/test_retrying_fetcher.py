from __future__ import annotations

from typing import Any

import httpx
import pytest

from scoutfox.services.errors import (
    ProviderRequestError,
    RateLimitError,
    ResponseValidationError,
    SourceTimeoutError,
)
from scoutfox.services.retrying_fetcher import RetryingFetcher

_REQUEST = httpx.Request("GET", "https://www.googleapis.com/youtube/v3/search")


class _ScriptedRequests:
    def __init__(self, responses: list[httpx.Response | Exception]) -> None:
        self._responses = list(responses)
        self.calls = 0

    async def __call__(self) -> httpx.Response:
        self.calls += 1
        outcome = self._responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _response(status_code: int, payload: Any = None, *, text: str | None = None) -> httpx.Response:
    if text is not None:
        return httpx.Response(status_code, text=text, request=_REQUEST)
    return httpx.Response(status_code, json=payload, request=_REQUEST)


def _rate_limited() -> httpx.Response:
    return _response(429, {"error": {"message": "Too many requests"}})


@pytest.mark.asyncio
async def test_three_rate_limits_exhaust_the_budget() -> None:
    requests = _ScriptedRequests(
        [_rate_limited(), _rate_limited(), _rate_limited(), _response(200, {"items": []})]
    )
    sleep = _RecordingSleep()
    fetcher = RetryingFetcher(sleep=sleep)

    with pytest.raises(RateLimitError, match="configure your own API key") as exc_info:
        await fetcher.fetch_json(requests, scope="search")

    assert requests.calls == 3
    assert sleep.delays == [1.0, 2.0]
    assert exc_info.value.scope == "search"
    assert "Too many requests" in str(exc_info.value)


@pytest.mark.asyncio
async def test_two_rate_limits_then_success() -> None:
    requests = _ScriptedRequests(
        [_response(403, {}), _rate_limited(), _response(200, {"items": [{"id": "x"}]})]
    )
    sleep = _RecordingSleep()
    fetcher = RetryingFetcher(sleep=sleep)

    payload = await fetcher.fetch_json(requests, scope="statistics")

    assert payload == {"items": [{"id": "x"}]}
    assert requests.calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_other_errors_are_not_retried() -> None:
    requests = _ScriptedRequests([_response(404, {"error": {"message": "Not found"}})])
    sleep = _RecordingSleep()

    with pytest.raises(ProviderRequestError, match="Not found") as exc_info:
        await RetryingFetcher(sleep=sleep).fetch_json(requests, scope="search")

    assert exc_info.value.status_code == 404
    assert requests.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_invalid_json_is_a_validation_error() -> None:
    requests = _ScriptedRequests([_response(200, text="<html>oops</html>")])

    with pytest.raises(ResponseValidationError):
        await RetryingFetcher(sleep=_RecordingSleep()).fetch_json(requests, scope="search")


@pytest.mark.asyncio
async def test_non_object_json_is_a_validation_error() -> None:
    requests = _ScriptedRequests([_response(200, ["not", "an", "object"])])

    with pytest.raises(ResponseValidationError):
        await RetryingFetcher(sleep=_RecordingSleep()).fetch_json(requests, scope="search")


@pytest.mark.asyncio
async def test_timeouts_and_transport_errors_are_typed() -> None:
    timeout = _ScriptedRequests([httpx.ReadTimeout("slow", request=_REQUEST)])
    with pytest.raises(SourceTimeoutError):
        await RetryingFetcher(sleep=_RecordingSleep()).fetch_json(timeout, scope="search")

    unreachable = _ScriptedRequests([httpx.ConnectError("refused", request=_REQUEST)])
    with pytest.raises(ProviderRequestError, match="network"):
        await RetryingFetcher(sleep=_RecordingSleep()).fetch_json(unreachable, scope="search")


@pytest.mark.asyncio
async def test_custom_budget_and_backoff() -> None:
    requests = _ScriptedRequests([_rate_limited(), _rate_limited()])
    sleep = _RecordingSleep()
    fetcher = RetryingFetcher(max_attempts=2, initial_backoff_seconds=0.5, sleep=sleep)

    with pytest.raises(RateLimitError) as exc_info:
        await fetcher.fetch_json(requests, scope="search")

    assert sleep.delays == [0.5]
    assert exc_info.value.retry_after_seconds == 1
