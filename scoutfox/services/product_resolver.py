from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlencode

from scoutfox.services.errors import ScoutFoxError
from scoutfox.services.fallback_extractor import extract_product_name
from scoutfox.services.product_extractor import MultiProductExtractor
from scoutfox.services.results import ProductCandidate, VideoContext
from scoutfox.telemetry import TelemetryClient

LOGGER = logging.getLogger("scoutfox.extract")

DEFAULT_MARKETPLACE_SEARCH_URL = "https://www.amazon.com/s"
FALLBACK_CONFIDENCE = 0.5
FALLBACK_RATIONALE = "Derived from the video text without AI extraction."

CandidateSource = Literal["ai", "fallback"]


@dataclass(frozen=True)
class ResolvedProduct:
    candidate: ProductCandidate
    search_url: str


@dataclass(frozen=True)
class ProductResolution:
    products: list[ResolvedProduct]
    source: CandidateSource


class ProductResolver:
    """
    Video -> product direction.

    AI extraction runs first when an extractor is wired; the deterministic
    text fallback answers whenever it is missing, fails, or finds nothing.
    """

    def __init__(
        self,
        *,
        extractor: MultiProductExtractor | None,
        marketplace_search_url: str = DEFAULT_MARKETPLACE_SEARCH_URL,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self._extractor = extractor
        self._marketplace_search_url = marketplace_search_url
        self._telemetry = telemetry or TelemetryClient.disabled()

    async def resolve(self, context: VideoContext) -> ProductResolution:
        candidates: list[ProductCandidate] = []
        source: CandidateSource = "fallback"

        if self._extractor is not None:
            try:
                candidates = await self._extractor.extract_candidates(context)
            except ScoutFoxError as exc:
                LOGGER.warning("ai product extraction failed; using text fallback error=%s", exc)
            else:
                if candidates:
                    source = "ai"

        if not candidates:
            candidates = [self.fallback_candidate(context)]

        self._telemetry.emit(
            "extract.candidates.result",
            source=source,
            candidate_count=len(candidates),
        )
        return ProductResolution(
            products=[
                ResolvedProduct(
                    candidate=candidate,
                    search_url=self.search_url(candidate.product_name),
                )
                for candidate in candidates
            ],
            source=source,
        )

    def fallback_candidate(self, context: VideoContext) -> ProductCandidate:
        product_name = extract_product_name(
            context.video_title or context.document_title or "",
            context.description or None,
        )
        return ProductCandidate(
            product_name=product_name,
            confidence=FALLBACK_CONFIDENCE,
            rationale=FALLBACK_RATIONALE,
        )

    def search_url(self, product_name: str) -> str:
        return f"{self._marketplace_search_url}?{urlencode({'k': product_name})}"
