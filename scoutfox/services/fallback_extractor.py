from __future__ import annotations

import re

from scoutfox.services.text_normalizer import KNOWN_BRANDS, collapse_whitespace

PLACEHOLDER_PRODUCT_NAME = "product"
MAX_PRODUCT_NAME_LENGTH = 120
MIN_PRODUCT_NAME_LENGTH = 3
BRAND_FOLLOWING_TOKENS = 5
TRUNCATION_MARKER = "..."

EMOJI_PATTERN = re.compile(
    "["
    "\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "]"
)
SPECIAL_CHARACTER_PATTERN = re.compile(r"[^\w\s\-.,()]")
BOILERPLATE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\b(?:review|unboxing|unbox|opening|first look|hands on|hands-on)\b",
        r"\b(?:versus|comparison|compared to|vs)\b\.?",
        r"\bafter \d+\s*(?:months?|weeks?|days?|years?)\b",
        r"\b\d+\s*(?:months?|weeks?|days?|years?)\s*(?:later|after|update)\b",
        r"\b(?:worth it|should you buy|don'?t buy|buy this|honest review)\b",
        r"\b202\d\s*(?:review|update)\b",
        r"\b(?:you need to know|everything you need|before you buy)\b",
        r"\b(?:real talk|brutally honest|honest|spoiler)\b",
        r"\b(?:part \d+|episode \d+)\b",
        r"\bft\.(?=\s|$)|\b(?:featuring|with)\b",
    )
)
ALL_CAPS_TOKEN_PATTERN = re.compile(r"\b[A-Z]{3,}\b")
ACRONYM_ALLOW_LIST: frozenset[str] = frozenset(
    {
        "USB",
        "USB-C",
        "USB-A",
        "HDMI",
        "SD",
        "SSD",
        "HDD",
        "RAM",
        "CPU",
        "GPU",
        "OLED",
        "QLED",
        "LCD",
        "LED",
        "IPS",
        "HDR",
        "4K",
        "8K",
        "1080p",
        "720p",
        "WiFi",
        "Wi-Fi",
        "BT",
        "NFC",
        "GPS",
        "ANC",
        "JBL",
    }
)
BRAND_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(brand) for brand in KNOWN_BRANDS) + r")\b",
    re.IGNORECASE,
)
TRAILING_PUNCTUATION_PATTERN = re.compile(r"[.,;:!?]+$")


def extract_product_name(title: str | None, description: str | None = None) -> str:
    """
    Derive a marketplace search phrase from video text without any AI help.

    Never fails and never returns an empty string.
    """
    raw_title = title or ""
    text = raw_title
    if description:
        text = f"{text} {description}"

    text = EMOJI_PATTERN.sub("", text)
    text = SPECIAL_CHARACTER_PATTERN.sub("", text)
    for pattern in BOILERPLATE_PATTERNS:
        text = pattern.sub(" ", text)
    text = collapse_whitespace(text)
    text = ALL_CAPS_TOKEN_PATTERN.sub(_recase_emphasis, text)

    product_name = _brand_anchored_name(text) or text
    product_name = collapse_whitespace(product_name)
    product_name = TRAILING_PUNCTUATION_PATTERN.sub("", product_name)

    if len(product_name) > MAX_PRODUCT_NAME_LENGTH:
        product_name = (
            product_name[: MAX_PRODUCT_NAME_LENGTH - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER
        )

    if len(product_name) < MIN_PRODUCT_NAME_LENGTH:
        product_name = collapse_whitespace(SPECIAL_CHARACTER_PATTERN.sub("", raw_title))[
            :MAX_PRODUCT_NAME_LENGTH
        ]

    return product_name or PLACEHOLDER_PRODUCT_NAME


def _recase_emphasis(match: re.Match[str]) -> str:
    token = match.group(0)
    if token in ACRONYM_ALLOW_LIST:
        return token
    return token[0] + token[1:].lower()


def _brand_anchored_name(text: str) -> str | None:
    brand_match = BRAND_PATTERN.search(text)
    if brand_match is None:
        return None
    following = text[brand_match.end() :].split()[:BRAND_FOLLOWING_TOKENS]
    return " ".join([brand_match.group(0), *following])
