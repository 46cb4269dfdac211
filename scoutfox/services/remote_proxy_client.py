from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from scoutfox.services.errors import (
    ProviderRequestError,
    QuotaExceededError,
    ResponseValidationError,
    SourceTimeoutError,
)
from scoutfox.services.results import VideoContext, VideoResult, as_dict, video_results_from_payload

LOGGER = logging.getLogger("scoutfox.proxy")

SEARCH_BY_PRODUCT_PATH = "/search-by-product"
EXTRACT_PRODUCT_PATH = "/extract-product"
UNCONFIGURED_URL_MARKER = "your-project-name"
QUOTA_MARKERS: tuple[str, ...] = ("quota", "quotaexceeded", "403")
ERROR_EXCERPT_LENGTH = 100


def proxy_is_configured(base_url: str | None) -> bool:
    if base_url is None or not base_url.strip():
        return False
    return UNCONFIGURED_URL_MARKER not in base_url


def is_quota_exceeded_message(message: str) -> bool:
    # Heuristic: the proxy reports quota exhaustion only as free text.
    normalized = message.lower()
    return any(marker in normalized for marker in QUOTA_MARKERS)


class RemoteProxyClient:
    """
    Client for the hosted search/extraction proxy.

    The proxy holds its own provider and model credentials, so it is the
    preferred source whenever the user has not opted into their own key.
    """

    def __init__(
        self,
        *,
        base_url: str,
        search_timeout_seconds: float = 20.0,
        extract_timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._search_timeout_seconds = max(1.0, search_timeout_seconds)
        self._extract_timeout_seconds = max(1.0, extract_timeout_seconds)
        self._http_client = http_client

    @property
    def base_url(self) -> str:
        return self._base_url

    async def search_by_product(
        self,
        *,
        title: str,
        subtitle: str | None,
        optimize_title: bool,
    ) -> list[VideoResult]:
        payload = await self._post_json(
            SEARCH_BY_PRODUCT_PATH,
            body={
                "productTitle": title,
                "subtitle": subtitle or None,
                "optimizeTitle": optimize_title,
            },
            timeout_seconds=self._search_timeout_seconds,
        )
        return decode_search_response(payload)

    async def extract_product(self, context: VideoContext) -> dict[str, Any]:
        return await self._post_json(
            EXTRACT_PRODUCT_PATH,
            body=context.to_payload(),
            timeout_seconds=self._extract_timeout_seconds,
        )

    async def _post_json(
        self,
        path: str,
        *,
        body: dict[str, Any],
        timeout_seconds: float,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        LOGGER.debug("proxy request url=%s", url)
        try:
            async with self._session(timeout_seconds) as client:
                response = await client.post(url, json=body, timeout=timeout_seconds)
        except httpx.TimeoutException as exc:
            raise SourceTimeoutError(
                f"Remote service did not answer within {int(timeout_seconds)} seconds."
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderRequestError(f"Remote service is unreachable: {exc}") from exc

        if not response.is_success:
            error_text = response.text
            if is_quota_exceeded_message(error_text):
                raise QuotaExceededError("Remote service quota exceeded.")
            raise ProviderRequestError(
                (
                    f"Remote service error: {response.status_code} - "
                    f"{error_text[:ERROR_EXCERPT_LENGTH]}"
                ),
                status_code=response.status_code,
            )

        try:
            parsed = response.json()
        except ValueError as exc:
            raise ResponseValidationError("Remote service returned malformed JSON.") from exc
        if not isinstance(parsed, dict):
            raise ResponseValidationError("Remote service returned an unexpected response shape.")
        return as_dict(parsed)

    @asynccontextmanager
    async def _session(self, timeout_seconds: float) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            yield client


def decode_search_response(payload: dict[str, Any]) -> list[VideoResult]:
    """
    Normalize the proxy's two search response shapes.

    Current deployments answer `{"success": true, "results": [...]}`; older
    ones answer `{"videos": [...]}` with `channelName` instead of
    `channelTitle`. Anything else is a failure report.
    """
    results = payload.get("results")
    if payload.get("success") is True and isinstance(results, list):
        return video_results_from_payload(results)

    videos = payload.get("videos")
    if isinstance(videos, list):
        return video_results_from_payload(videos)

    raw_error = payload.get("error")
    message = (
        raw_error
        if isinstance(raw_error, str) and raw_error.strip()
        else "Remote service returned an unsuccessful response"
    )
    if is_quota_exceeded_message(message):
        raise QuotaExceededError(f"Remote service quota exceeded: {message}")
    raise ProviderRequestError(message)
