from __future__ import annotations

import logging
import math
from typing import Any

from scoutfox.services.errors import ProductExtractionError
from scoutfox.services.remote_proxy_client import RemoteProxyClient
from scoutfox.services.results import ProductCandidate, VideoContext, as_dict

LOGGER = logging.getLogger("scoutfox.extract")

DEFAULT_CONFIDENCE_THRESHOLD = 0.5


class MultiProductExtractor:
    """
    Asks the inference backend which products a video discusses.

    Zero candidates is a valid answer. A response that is neither a
    `products` list nor a legacy `{productName, confidence}` object raises
    `ProductExtractionError`.
    """

    def __init__(
        self,
        proxy_client: RemoteProxyClient,
        *,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._proxy_client = proxy_client
        self._confidence_threshold = confidence_threshold

    async def extract_candidates(self, context: VideoContext) -> list[ProductCandidate]:
        payload = await self._proxy_client.extract_product(context)
        candidates = decode_candidates(payload)
        accepted = [
            candidate
            for candidate in candidates
            if candidate.confidence >= self._confidence_threshold and candidate.product_name
        ]
        accepted.sort(key=lambda candidate: candidate.confidence, reverse=True)
        LOGGER.debug(
            "product candidates decoded=%s accepted=%s threshold=%s",
            len(candidates),
            len(accepted),
            self._confidence_threshold,
        )
        return accepted


def decode_candidates(payload: dict[str, Any]) -> list[ProductCandidate]:
    raw_products = payload.get("products")
    if isinstance(raw_products, list):
        return [_decode_candidate(raw_product) for raw_product in raw_products]

    if "productName" in payload and "confidence" in payload:
        return [_decode_candidate(payload)]

    raw_error = payload.get("error")
    if isinstance(raw_error, str) and raw_error.strip():
        raise ProductExtractionError(f"Product extraction failed: {raw_error.strip()}")
    raise ProductExtractionError("Product extraction returned an unrecognized response shape.")


def _decode_candidate(raw_candidate: object) -> ProductCandidate:
    candidate = as_dict(raw_candidate)
    confidence = candidate.get("confidence")
    if (
        isinstance(confidence, bool)
        or not isinstance(confidence, int | float)
        or not math.isfinite(confidence)
        or not 0.0 <= confidence <= 1.0
    ):
        raise ProductExtractionError(
            f"Product extraction returned an invalid confidence score: {confidence!r}"
        )

    raw_name = candidate.get("productName")
    if raw_name is not None and not isinstance(raw_name, str):
        raise ProductExtractionError("Product extraction returned a non-text product name.")

    raw_rationale = candidate.get("rationale")
    rationale = raw_rationale.strip() if isinstance(raw_rationale, str) else None
    return ProductCandidate(
        product_name=(raw_name or "").strip(),
        confidence=float(confidence),
        rationale=rationale or None,
    )
