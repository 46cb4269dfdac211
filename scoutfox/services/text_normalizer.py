from __future__ import annotations

import re

HTML_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
)

MARKETING_WORDS: frozenset[str] = frozenset(
    {
        # Promotional filler.
        "new",
        "latest",
        "with",
        "includes",
        "including",
        "bundle",
        "premium",
        "professional",
        "updated",
        "upgraded",
        "enhanced",
        "improved",
        "release",
        "edition",
        "version",
        "official",
        "genuine",
        "original",
        "class",
        "renewed",
        # Connectives that never help a video search.
        "and",
        "the",
        "for",
        "of",
        "in",
        "on",
        "by",
        # Generic category nouns and assistant names.
        "speaker",
        "speakers",
        "headphones",
        "tv",
        "alexa",
        # Colors.
        "black",
        "white",
        "charcoal",
        "graphite",
        "silver",
        "gray",
        "grey",
        "blue",
        "red",
        "green",
        "gold",
        "pink",
        "purple",
        "midnight",
        "starlight",
    }
)

KNOWN_BRANDS: tuple[str, ...] = (
    "Apple",
    "Samsung",
    "Sony",
    "Google",
    "Microsoft",
    "LG",
    "Dell",
    "HP",
    "Lenovo",
    "Asus",
    "Acer",
    "Razer",
    "Logitech",
    "Bose",
    "JBL",
    "Sennheiser",
    "Anker",
    "Belkin",
    "Corsair",
    "HyperX",
    "Philips",
    "Nintendo",
    "Garmin",
    "GoPro",
    "Dyson",
)
KNOWN_BRAND_TOKENS: frozenset[str] = frozenset(brand.lower() for brand in KNOWN_BRANDS)

SEPARATOR_PATTERN = re.compile(r"[-|—–:•]")
REMOVABLE_PARENTHETICAL_PATTERN = re.compile(
    r"\((?:updated|upgraded|enhanced|new|latest|renewed)\)",
    re.IGNORECASE,
)
PRESERVE_PARENTHETICAL_PATTERN = re.compile(
    r"\(\s*\d+\s*(?:(?:st|nd|rd|th)(?:\s*gen(?:eration)?)?|gb|tb|mb|inch(?:es)?|mm|cm|gen(?:eration)?)\s*\)",
    re.IGNORECASE,
)
VENDOR_PREFIX_PATTERN = re.compile(r"^\s*by\s+[^|—–:•]+?(?=\s*[|—–:•])", re.IGNORECASE)
VENDOR_SUFFIX_PATTERN = re.compile(r"\s+by\s+\S+(?:\s+\S+){0,2}\s*$", re.IGNORECASE)
YEAR_TOKEN_PATTERN = re.compile(r"^202\d$")
# Control characters never survive input scrubbing, so user text cannot forge a slot.
CONTROL_CHARACTER_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
PLACEHOLDER_PATTERN = re.compile(r"^\x00(\d+)\x00$")
TOKEN_WRAPPING_PUNCTUATION = "()[]{}\"',;!?"


def normalize(text: str | None) -> str:
    """
    Turn noisy listing text into lowercase, search-ready words.

    Marketing words, one-letter tokens and bare 2020s years are dropped.
    Capacity and generation parentheticals such as `(256GB)` or
    `(2nd Generation)` survive verbatim apart from case folding.
    """
    if not text:
        return ""

    normalized = CONTROL_CHARACTER_PATTERN.sub(" ", decode_entities(text))
    normalized = strip_vendor_phrases(normalized)
    normalized = SEPARATOR_PATTERN.sub(" ", normalized)
    normalized = REMOVABLE_PARENTHETICAL_PATTERN.sub(" ", normalized)

    preserved: list[str] = []

    def _protect(match: re.Match[str]) -> str:
        preserved.append(match.group(0))
        return f" \x00{len(preserved) - 1}\x00 "

    normalized = PRESERVE_PARENTHETICAL_PATTERN.sub(_protect, normalized)

    words: list[str] = []
    for raw_token in normalized.split():
        token = raw_token.lower()
        placeholder = PLACEHOLDER_PATTERN.match(token)
        if placeholder is not None:
            words.append(" ".join(preserved[int(placeholder.group(1))].lower().split()))
            continue
        token = token.strip(TOKEN_WRAPPING_PUNCTUATION)
        if _is_filtered_token(token):
            continue
        words.append(token)

    return " ".join(words)


def decode_entities(text: str) -> str:
    decoded = text
    for entity, replacement in HTML_ENTITIES:
        decoded = decoded.replace(entity, replacement)
    return decoded


def strip_vendor_phrases(text: str) -> str:
    stripped = VENDOR_PREFIX_PATTERN.sub("", text)
    return VENDOR_SUFFIX_PATTERN.sub("", stripped)


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def _is_filtered_token(token: str) -> bool:
    if len(token) < 2:
        return True
    if token in MARKETING_WORDS:
        return True
    return YEAR_TOKEN_PATTERN.match(token) is not None
