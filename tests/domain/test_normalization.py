from __future__ import annotations

import pytest

from signalsmith.domain.normalization import (
    canonical_profile_url,
    company_name_variations,
    levenshtein,
    normalize_company_name,
    normalize_person_name,
    person_name_variations,
    similarity,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Acme Holdings, Inc.", "acme holdings"),
        ("ACME HOLDINGS INC", "acme holdings"),
        ("  Globex   Corporation ", "globex"),
        ("Initech LLC", "initech"),
        ("Smith & Sons Ltd.", "smith & sons"),
        (None, ""),
        ("   ", ""),
    ],
)
def test_normalize_company_name(raw: str | None, expected: str) -> None:
    assert normalize_company_name(raw) == expected


def test_normalize_person_name_drops_honorifics_and_suffixes() -> None:
    assert normalize_person_name("Dr. Jane  Smith, Jr.") == "jane smith"
    assert normalize_person_name("Mr John O'Neil") == "john o'neil"
    assert normalize_person_name(None) == ""


def test_levenshtein_and_similarity() -> None:
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert similarity("", "") == 1.0
    assert similarity("acme", "acme") == 1.0
    assert similarity("abcd", "abcf") == pytest.approx(0.75)


def test_company_name_variations_are_ordered_and_unique() -> None:
    variations = company_name_variations("Smith & Sons Inc", ["Smith and Sons"])

    assert variations[0] == "Smith & Sons Inc"
    assert "Smith and Sons" in variations
    assert "Smith & Sons" in variations
    assert len({value.casefold() for value in variations}) == len(variations)


def test_company_name_variations_respects_limit() -> None:
    assert company_name_variations("Acme Holdings Inc", limit=1) == ["Acme Holdings Inc"]


def test_person_name_variations() -> None:
    variations = person_name_variations("Dr. Jane Q. Smith")

    assert variations == ["Dr. Jane Q. Smith", "Jane Q. Smith", "Jane Smith"]


def test_canonical_profile_url() -> None:
    assert (
        canonical_profile_url("linkedin.com/in/Jane-Smith/?trk=abc")
        == "https://www.linkedin.com/in/jane-smith"
    )
    assert canonical_profile_url("  ") is None


@pytest.mark.parametrize(
    ("left", "right"),
    [("acme holdings", "acme holding"), ("globex", "initech"), ("ab", "ba"), ("", "x")],
)
def test_similarity_is_distance_over_longest_name(left: str, right: str) -> None:
    longest = max(len(left), len(right))
    expected = (longest - levenshtein(left, right)) / longest

    assert similarity(left, right) == pytest.approx(expected)
    assert similarity(right, left) == pytest.approx(expected)
