"""Tests for the keyword lexicon and extraction."""

from __future__ import annotations

import pytest

from guidancedss.keywords.lexicon import CATEGORIES, KEYWORDS, category_keywords
from guidancedss.keywords.scoring import calculate_confidence, extract_keywords


def test_match_is_case_insensitive_and_whole_word() -> None:
    assert "absent" in extract_keywords("The student is ABSENT again")
    assert "absent" not in extract_keywords("bsentia")
    assert "absent" not in extract_keywords("Marked as absentee")


def test_empty_notes_yield_no_keywords() -> None:
    assert extract_keywords(None) == []
    assert extract_keywords("") == []
    assert extract_keywords("   ") == []


def test_multi_word_phrases_match() -> None:
    keywords = extract_keywords("She has a hard time in class and tends to talk back.")

    assert "hard time" in keywords
    assert "talk back" in keywords


def test_repeated_phrase_is_reported_once() -> None:
    assert extract_keywords("late, late and late again") == ["late"]


def test_order_follows_lexicon_not_text() -> None:
    keywords = extract_keywords("Absent on Monday; seems to struggle with fractions.")

    assert keywords == ["struggle", "absent"]


def test_apostrophes_and_hyphens_are_literal() -> None:
    keywords = extract_keywords("He won't sit down. Another no-show on Friday.")

    assert "won't" in keywords
    assert "no-show" in keywords
    assert "down" in keywords


def test_confidence_is_monotonic_and_capped() -> None:
    scores = [calculate_confidence(None, ["kw"] * count) for count in range(8)]

    assert scores == [0, 15, 30, 45, 60, 75, 85, 85]


def test_confidence_without_matches_is_zero() -> None:
    assert calculate_confidence("anything", None) == 0
    assert calculate_confidence("anything", []) == 0


def test_lexicon_categories_and_lookup() -> None:
    assert CATEGORIES == ("academic", "behavioral", "attendance", "social", "health")
    attendance = category_keywords("attendance")

    assert attendance[:2] == ("absent", "missing")
    assert "not on time" in attendance
    with pytest.raises(KeyError):
        category_keywords("sports")


def test_lexicon_is_read_only() -> None:
    with pytest.raises(TypeError):
        KEYWORDS["academic"] = {}  # type: ignore[index]
    with pytest.raises(TypeError):
        KEYWORDS["social"]["sad"] = ("blue",)  # type: ignore[index]
