from __future__ import annotations

from scoutfox.services.query_builder import (
    MAX_QUERY_LENGTH,
    MAX_QUERY_VARIANTS,
    build_query,
    build_variants,
    extract_brand_model,
    subtitle_adds_value,
    truncate_query,
)


def test_build_query_ignores_subtitle_without_value() -> None:
    assert build_query("Kindle Paperwhite", "Black") == "kindle paperwhite"


def test_build_query_appends_informative_subtitle() -> None:
    assert build_query("Kindle Paperwhite", "16GB, 6.8 inch display") == (
        "kindle paperwhite 16gb 6.8 inch display"
    )


def test_subtitle_value_signals() -> None:
    assert subtitle_adds_value("Model A2894")
    assert subtitle_adds_value("2TB storage")
    assert subtitle_adds_value("Bluetooth")
    assert subtitle_adds_value("long lasting comfortable fit")
    assert not subtitle_adds_value("Black")


def test_build_query_empty_title_is_empty() -> None:
    assert build_query("") == ""
    assert build_query(None, "Bluetooth") == ""


def test_variants_for_brand_and_model() -> None:
    assert build_variants("Sony WH-1000XM5 Wireless Headphones") == [
        "sony wh 1000xm5 wireless review",
        "sony wh 1000xm5 wireless unboxing",
        "sony 1000xm5 review",
        "sony wh 1000xm5 wireless hands on",
    ]


def test_variants_add_comparison_for_qualifier() -> None:
    variants = build_variants("Samsung Galaxy S24 Ultra")

    assert variants == [
        "samsung galaxy s24 ultra review",
        "samsung galaxy s24 ultra unboxing",
        "samsung s24 review",
        "samsung galaxy s24 ultra hands on",
        "samsung galaxy s24 ultra vs samsung galaxy s24",
    ]


def test_variants_without_brand_skip_brand_model_entry() -> None:
    assert build_variants("Kindle Paperwhite") == [
        "kindle paperwhite review",
        "kindle paperwhite unboxing",
        "kindle paperwhite hands on",
    ]


def test_ordinal_is_not_a_model_number() -> None:
    assert extract_brand_model("apple airpods (2nd generation)") == ("apple", None)
    assert extract_brand_model("google pixel 8a") == ("google", "8a")


def test_variants_are_capped_and_unique() -> None:
    for title in (
        "Apple iPhone 15 Pro Max 256GB",
        "Samsung Galaxy S24 Ultra",
        "Echo Dot (5th Gen, 2022 release)",
    ):
        variants = build_variants(title)
        assert 0 < len(variants) <= MAX_QUERY_VARIANTS
        assert len(set(variants)) == len(variants)


def test_empty_title_has_no_variants() -> None:
    assert build_variants("") == []
    assert build_variants("   ") == []
    assert build_variants(None) == []


def test_filler_only_title_is_searched_as_written() -> None:
    assert build_variants("New Edition")[0] == "new edition review"


def test_truncate_query_prefers_word_boundary() -> None:
    query = " ".join(["word"] * 40)

    truncated = truncate_query(query)

    assert len(truncated) <= MAX_QUERY_LENGTH
    assert truncated.endswith("word")
    assert not truncated.endswith(" ")


def test_truncate_query_hard_cuts_long_tokens() -> None:
    query = "a" * 200

    assert truncate_query(query) == "a" * MAX_QUERY_LENGTH
