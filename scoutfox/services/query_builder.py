from __future__ import annotations

import re

from scoutfox.services.text_normalizer import KNOWN_BRAND_TOKENS, collapse_whitespace, normalize

MAX_QUERY_LENGTH = 120
WORD_BOUNDARY_WINDOW = 40
MAX_QUERY_VARIANTS = 5
MIN_VALUABLE_SUBTITLE_LENGTH = 10

SUBTITLE_MODEL_NUMBER_PATTERN = re.compile(
    r"\b(?:[a-z]+\d+|\d+[a-z]+|[a-z]+\d+[a-z]+)\b",
    re.IGNORECASE,
)
SUBTITLE_SIZE_PATTERN = re.compile(r"\b\d+\s*(?:gb|tb|mb|inch|inches|mm|cm)\b", re.IGNORECASE)
SUBTITLE_TECH_TERM_PATTERN = re.compile(
    r"\b(?:noise\s*cancelling|wireless|bluetooth|4k|8k|oled|led|hdr)\b",
    re.IGNORECASE,
)
MODEL_TOKEN_PATTERN = re.compile(r"^(?:[a-z]+\d+[a-z\d/]*|\d+[a-z]+[a-z\d]*)$")
UNIT_TOKEN_PATTERN = re.compile(r"^\d+(?:st|nd|rd|th|gb|tb|mb|mm|cm|k|p|hz|w)$")
QUALIFIER_PATTERN = re.compile(r"\b(?:pro|plus|max|ultra)\b")


def build_query(title: str | None, subtitle: str | None = None) -> str:
    """
    Build the base search query for a product listing.

    The subtitle is appended only when it carries something a reviewer would
    mention: a model number, a size, a known tech term or enough words.
    """
    if not title or not title.strip():
        return ""

    query = normalize(title)
    if subtitle and subtitle.strip() and subtitle_adds_value(subtitle):
        normalized_subtitle = normalize(subtitle)
        if normalized_subtitle:
            query = f"{query} {normalized_subtitle}"

    return truncate_query(collapse_whitespace(query))


def build_variants(title: str | None, subtitle: str | None = None) -> list[str]:
    if not title or not title.strip():
        return []

    # Titles made only of filler words still get searched as written.
    base = build_query(title, subtitle) or truncate_query(collapse_whitespace(title.lower()))

    variants = [f"{base} review", f"{base} unboxing"]

    brand, model = extract_brand_model(base)
    if brand is not None and model is not None:
        variants.append(f"{brand} {model} review")

    variants.append(f"{base} hands on")

    if QUALIFIER_PATTERN.search(base):
        without_qualifier = collapse_whitespace(QUALIFIER_PATTERN.sub(" ", base))
        if without_qualifier and without_qualifier != base:
            variants.append(f"{base} vs {without_qualifier}")

    deduplicated: list[str] = []
    for variant in variants:
        if variant not in deduplicated:
            deduplicated.append(variant)
    return deduplicated[:MAX_QUERY_VARIANTS]


def subtitle_adds_value(subtitle: str) -> bool:
    if SUBTITLE_MODEL_NUMBER_PATTERN.search(subtitle):
        return True
    if SUBTITLE_SIZE_PATTERN.search(subtitle):
        return True
    if SUBTITLE_TECH_TERM_PATTERN.search(subtitle):
        return True
    return len(normalize(subtitle)) > MIN_VALUABLE_SUBTITLE_LENGTH


def extract_brand_model(query: str) -> tuple[str | None, str | None]:
    brand: str | None = None
    model: str | None = None
    for token in query.split():
        if brand is None and token in KNOWN_BRAND_TOKENS:
            brand = token
            continue
        if model is None and MODEL_TOKEN_PATTERN.match(token) and not UNIT_TOKEN_PATTERN.match(token):
            model = token
    return brand, model


def truncate_query(query: str) -> str:
    if len(query) <= MAX_QUERY_LENGTH:
        return query

    truncated = query[:MAX_QUERY_LENGTH].rstrip()
    last_space = truncated.rfind(" ")
    # Cut at a word boundary only when it keeps most of the query.
    if last_space > MAX_QUERY_LENGTH - WORD_BOUNDARY_WINDOW:
        truncated = truncated[:last_space]
    return truncated.rstrip()
