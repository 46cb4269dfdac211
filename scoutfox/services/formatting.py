from __future__ import annotations

import math

MISSING_COUNT = "—"
_COUNT_UNITS: tuple[tuple[int, str], ...] = (
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
)


def format_count(raw_count: object) -> str:
    """Render a view/like count compactly: `999`, `1.2K`, `3M`, `1.5B`."""
    count = _parse_count(raw_count)
    if count is None:
        return MISSING_COUNT

    for divisor, suffix in _COUNT_UNITS:
        if count >= divisor:
            scaled = count / divisor
            if scaled.is_integer():
                return f"{int(scaled)}{suffix}"
            return f"{scaled:.1f}{suffix}"
    return str(count)


def sanitize_text(text: str | None) -> str | None:
    if not text:
        return None
    return " ".join(text.split()) or None


def _parse_count(raw_count: object) -> int | None:
    if isinstance(raw_count, bool):
        return None
    if isinstance(raw_count, int):
        return raw_count
    if isinstance(raw_count, float):
        return int(raw_count) if math.isfinite(raw_count) else None
    if isinstance(raw_count, str):
        stripped = raw_count.strip()
        sign = stripped[:1] if stripped[:1] in {"-", "+"} else ""
        digits = stripped[len(sign):]
        # Leading digits only, so "12 views" reads as 12.
        prefix = ""
        for character in digits:
            if not character.isdigit():
                break
            prefix += character
        if not prefix:
            return None
        return int(f"{sign}{prefix}")
    return None
