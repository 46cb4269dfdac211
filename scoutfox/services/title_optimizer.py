from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from scoutfox.services.errors import TitleOptimizationError
from scoutfox.services.results import as_dict, as_list

LOGGER = logging.getLogger("scoutfox.optimize")

DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_GROQ_MODEL = "llama-3.3-70b-versatile"
OPTIMIZER_TEMPERATURE = 0.3
OPTIMIZER_MAX_TOKENS = 50

PROMPT_TEMPLATE = """You turn marketplace product titles into YouTube search terms.
Return only the brand, product line and model number a reviewer would say out loud.

Rules:
- Keep the brand name and model number (for example "Apple AirPods Pro 2", "Samsung QN90C").
- Keep generation numbers (2nd Gen, 5th Gen) and specs that are part of the model name.
- Drop colors, pack sizes, marketing words (New, Latest, 2024) and parenthetical notes.
- Use at most 10 words.
- Reply with the product name only.

Product title: "{title}"

Product name:"""


class TitleOptimizer:
    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = DEFAULT_GROQ_BASE_URL,
        model: str = DEFAULT_GROQ_MODEL,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout_seconds = max(1.0, timeout_seconds)
        self._http_client = http_client

    async def optimize(
        self,
        title: str,
        subtitle: str | None = None,
        *,
        api_key: str | None = None,
    ) -> str:
        resolved_key = api_key or self._api_key
        if not resolved_key:
            raise TitleOptimizationError("No Groq API key configured for title optimization.")

        full_title = f"{title} {subtitle}" if subtitle and subtitle.strip() else title
        body = {
            "model": self._model,
            "messages": [{"role": "user", "content": PROMPT_TEMPLATE.format(title=full_title)}],
            "temperature": OPTIMIZER_TEMPERATURE,
            "max_tokens": OPTIMIZER_MAX_TOKENS,
        }
        try:
            async with self._session() as client:
                response = await client.post(
                    f"{self._base_url}/chat/completions",
                    json=body,
                    headers={"Authorization": f"Bearer {resolved_key}"},
                    timeout=self._timeout_seconds,
                )
        except httpx.HTTPError as exc:
            raise TitleOptimizationError(f"Title optimization request failed: {exc}") from exc

        if not response.is_success:
            raise TitleOptimizationError(
                f"Title optimization failed with status {response.status_code}."
            )

        try:
            payload = as_dict(response.json())
        except ValueError as exc:
            raise TitleOptimizationError("Title optimization returned malformed JSON.") from exc

        choices = as_list(payload.get("choices"))
        content = as_dict(as_dict(choices[0]).get("message")).get("content") if choices else None
        if not isinstance(content, str):
            raise TitleOptimizationError("Title optimization returned no content.")

        optimized = content.strip().strip("\"'").strip()
        if not optimized:
            raise TitleOptimizationError("Title optimization returned an empty title.")
        LOGGER.debug("title optimized original=%s optimized=%s", title, optimized)
        return optimized

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
            yield client
