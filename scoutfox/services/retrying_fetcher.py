from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from scoutfox.services.errors import (
    ProviderRequestError,
    RateLimitError,
    ResponseValidationError,
    SourceTimeoutError,
)
from scoutfox.services.results import as_dict

LOGGER = logging.getLogger("scoutfox.youtube")

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({403, 429})
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_BACKOFF_SECONDS = 1.0

RequestFactory = Callable[[], Awaitable[httpx.Response]]
SleepFunction = Callable[[float], Awaitable[None]]


class RetryingFetcher:
    """
    Runs one outbound call with bounded exponential backoff.

    Only 403 and 429 responses are retried. Any other non-success status and
    any undecodable body fail on the first attempt.
    """

    def __init__(
        self,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        initial_backoff_seconds: float = DEFAULT_INITIAL_BACKOFF_SECONDS,
        sleep: SleepFunction = asyncio.sleep,
    ) -> None:
        self._max_attempts = max(1, max_attempts)
        self._initial_backoff_seconds = max(0.0, initial_backoff_seconds)
        self._sleep = sleep

    async def fetch_json(self, request: RequestFactory, *, scope: str) -> dict[str, Any]:
        backoff_seconds = self._initial_backoff_seconds
        last_message = "rate limit exceeded"

        for attempt in range(1, self._max_attempts + 1):
            try:
                response = await request()
            except httpx.TimeoutException as exc:
                raise SourceTimeoutError(f"YouTube {scope} request timed out.") from exc
            except httpx.HTTPError as exc:
                raise ProviderRequestError(
                    f"YouTube {scope} request failed: {exc}. Check your network connection."
                ) from exc

            if response.status_code in RETRYABLE_STATUS_CODES:
                last_message = _provider_error_message(response) or last_message
                if attempt >= self._max_attempts:
                    break
                LOGGER.warning(
                    "youtube %s rate limited status=%s attempt=%s retry_in_seconds=%s",
                    scope,
                    response.status_code,
                    attempt,
                    backoff_seconds,
                )
                await self._sleep(backoff_seconds)
                backoff_seconds *= 2
                continue

            if not response.is_success:
                message = _provider_error_message(response) or "Unknown error"
                raise ProviderRequestError(
                    f"YouTube API error: {message}",
                    status_code=response.status_code,
                )

            return _decode_json_body(response, scope=scope)

        raise RateLimitError(
            (
                f"YouTube API rate limit reached ({last_message}) after "
                f"{self._max_attempts} attempts. Try again later or configure your own API key."
            ),
            retry_after_seconds=int(backoff_seconds),
            scope=scope,
        )


def _decode_json_body(response: httpx.Response, *, scope: str) -> dict[str, Any]:
    try:
        parsed = response.json()
    except ValueError as exc:
        raise ResponseValidationError(
            f"YouTube {scope} response was not valid JSON."
        ) from exc
    if not isinstance(parsed, dict):
        raise ResponseValidationError(f"YouTube {scope} response was not a JSON object.")
    return as_dict(parsed)


def _provider_error_message(response: httpx.Response) -> str | None:
    try:
        payload = as_dict(response.json())
    except ValueError:
        return None
    message = as_dict(payload.get("error")).get("message")
    if isinstance(message, str) and message.strip():
        return message.strip()
    return None
