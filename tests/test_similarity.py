from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from purchase_dedupe.steps.similarity import (
    date_similarity,
    levenshtein,
    name_similarity,
    price_similarity,
    retailer_similarity,
    score_pair,
)

DAY = datetime(2024, 5, 10, 9, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("text", ["", "a", "dyson v15 detect", "ünïcode"])
def test_levenshtein_of_identical_strings_is_zero(text: str) -> None:
    assert levenshtein(text, text) == 0
    assert name_similarity(text, text) == 1.0


def test_levenshtein_against_empty_string_is_other_length() -> None:
    assert levenshtein("", "switch") == 6
    assert levenshtein("switch", "") == 6


def test_levenshtein_counts_unit_edits() -> None:
    assert levenshtein("kitten", "sitting") == 3


def test_name_similarity_matches_after_normalization() -> None:
    assert name_similarity("iPhone 15 Pro!!", "IPHONE 15 PRO") == 1.0


def test_name_similarity_substring_scores_point_nine() -> None:
    assert name_similarity("AirPods Pro", "Apple AirPods Pro (2nd generation)") == 0.9


def test_name_similarity_uses_edit_distance_ratio() -> None:
    # "bose flex" vs "bose flux": one substitution over nine characters
    assert name_similarity("Bose Flex", "Bose Flux") == pytest.approx(1 - 1 / 9)


def test_name_similarity_never_negative() -> None:
    assert 0.0 <= name_similarity("abc", "xyz") <= 1.0


@pytest.mark.parametrize(
    ("left", "right", "expected"),
    [
        (100, 100, 1.0),
        (100, 104, 1.0),
        (100, 108, 0.9),
        (100, 120, 0.8),
        (100, 200, 0.0),
        (0, 0, 1.0),
    ],
)
def test_price_similarity_brackets(left: int, right: int, expected: float) -> None:
    assert price_similarity(left, right) == pytest.approx(expected)


def test_price_similarity_linear_falloff_past_twenty_percent() -> None:
    # diff 30 / avg 115 -> 0.2609 -> 0.8 - 0.0609 * 2
    assert price_similarity(Decimal("100"), Decimal("130")) == pytest.approx(0.8 - (30 / 115 - 0.2) * 2)


@pytest.mark.parametrize("bad", [None, "n/a", -5, float("nan")])
def test_price_similarity_malformed_price_scores_zero(bad: object) -> None:
    assert price_similarity(bad, 100) == 0.0
    assert price_similarity(100, bad) == 0.0


def test_price_similarity_accepts_formatted_strings() -> None:
    assert price_similarity("$1,299.00", Decimal("1299")) == 1.0


@pytest.mark.parametrize(
    ("gap", "expected"),
    [
        (timedelta(0), 1.0),
        (timedelta(hours=20), 0.95),
        (timedelta(days=1), 0.95),
        (timedelta(days=3), 0.9),
        (timedelta(days=6), 0.8),
        (timedelta(days=8), 0.6),
        (timedelta(days=30), 0.6),
        (timedelta(days=45), 0.3),
    ],
)
def test_date_similarity_brackets(gap: timedelta, expected: float) -> None:
    assert date_similarity(DAY, DAY + gap) == expected
    assert date_similarity(DAY + gap, DAY) == expected


def test_date_similarity_accepts_iso_strings_and_dates() -> None:
    assert date_similarity("2024-05-10T00:00:00Z", date(2024, 5, 10)) == 1.0


@pytest.mark.parametrize("bad", [None, "yesterday", 12345])
def test_date_similarity_malformed_date_scores_zero(bad: object) -> None:
    assert date_similarity(bad, DAY) == 0.0


def test_retailer_similarity_same_group() -> None:
    assert retailer_similarity("Amazon.com", "AMZN") == 0.95
    assert retailer_similarity("Apple", "iTunes") == 0.95


def test_retailer_similarity_identical_and_distinct() -> None:
    assert retailer_similarity(" Target ", "target") == 1.0
    assert retailer_similarity("Target", "Walmart") == 0.0
    assert retailer_similarity("Costco", "Costco Wholesale") == 0.0


def test_score_pair_scores_malformed_dimension_as_zero(make_record) -> None:
    left = make_record("a")
    right = make_record("b", price=None)

    vector = score_pair(left, right)

    assert vector.price == 0.0
    assert vector.name == 1.0
    assert vector.date == 1.0
    assert vector.retailer == 1.0
