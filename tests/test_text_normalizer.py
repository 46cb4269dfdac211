from __future__ import annotations

import pytest

from scoutfox.services.text_normalizer import decode_entities, normalize, strip_vendor_phrases


def test_echo_dot_listing_keeps_product_words_only() -> None:
    normalized = normalize(
        "Echo Dot (5th Gen, 2022 release) – Smart speaker with Alexa — Charcoal"
    )

    assert "echo dot" in normalized
    assert "5th gen" in normalized
    for dropped in ("2022", "release", "smart speaker", "alexa", "charcoal"):
        assert dropped not in normalized


def test_capacity_and_generation_parentheticals_survive() -> None:
    assert normalize("iPad Air (256GB) Wi-Fi") == "ipad air (256gb) wi fi"
    assert normalize("AirPods Pro (2nd Generation)") == "airpods pro (2nd generation)"


def test_removable_parentheticals_are_dropped() -> None:
    assert normalize("Kindle Paperwhite (Updated)") == "kindle paperwhite"
    assert normalize("Fire TV Stick (Renewed)") == "fire stick"


def test_separators_become_spaces() -> None:
    assert normalize("Sony WH-1000XM5 | Noise Cancelling") == "sony wh 1000xm5 noise cancelling"


def test_entities_are_decoded_before_filtering() -> None:
    assert decode_entities("Salt &amp; Pepper &quot;Mill&quot;") == 'Salt & Pepper "Mill"'
    assert normalize("Salt &amp; Pepper Mill") == "salt pepper mill"


def test_single_letters_and_years_are_dropped() -> None:
    assert normalize("Garmin Forerunner 265 a 2024 2019") == "garmin forerunner 265 2019"


def test_vendor_phrases_are_stripped() -> None:
    assert strip_vendor_phrases("by Anker | PowerCore 10000") == " | PowerCore 10000"
    assert normalize("PowerCore 10000 Portable Charger by Anker") == "powercore 10000 portable charger"


def test_leading_by_without_separator_is_kept_as_text() -> None:
    # No separator follows, so there is no vendor segment to remove.
    assert normalize("By Design Lamp") == "design lamp"


def test_model_qualifiers_are_not_marketing_words() -> None:
    assert normalize("Galaxy S24 Ultra") == "galaxy s24 ultra"
    assert normalize("iPhone 15 Pro Max") == "iphone 15 pro max"


@pytest.mark.parametrize("raw", [None, "", "   ", "New Black Edition"])
def test_empty_or_filler_only_titles_normalize_to_empty(raw: str | None) -> None:
    assert normalize(raw) == ""


def test_normalize_is_idempotent_on_its_output() -> None:
    once = normalize("Apple MacBook Air 13-inch (2024) – Midnight, M3 chip")
    assert normalize(once) == once
    assert once == once.lower()
    assert "  " not in once


def test_placeholder_like_text_is_treated_as_plain_words() -> None:
    assert normalize("Widget __preserve_0__ kit") == "widget __preserve_0__ kit"
    assert normalize("Cable __PRESERVE_0__ (64GB) kit") == "cable __preserve_0__ (64gb) kit"


def test_control_characters_cannot_forge_a_preserved_slot() -> None:
    assert normalize("Cable \x000\x00 (64GB) kit") == "cable (64gb) kit"
