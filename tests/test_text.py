"""Tests for plot text similarity and title matching."""

import pytest

from reelmatch.similarity.text import text_similarity, tokenize
from reelmatch.similarity.titles import normalize_title, title_similarity


MATRIX_PLOT = (
    "A computer hacker learns from mysterious rebels about the true nature "
    "of his reality and his role in the war against its controllers."
)
RELOADED_PLOT = (
    "Neo and the rebel leaders estimate that they have 72 hours until "
    "machines reach Zion, while the hacker learns more about the war."
)
COOKING_PLOT = "Julia perfects boeuf bourguignon during Parisian lessons."


# ============================================================================
# Tokenizer
# ============================================================================


def test_tokenize_lowercases_and_stems():
    """Words are lowercased, split on non-alphanumerics and stemmed."""
    assert tokenize("Hackers LEARNING, rebels!") == ["hacker", "learn", "rebel"]


def test_tokenize_empty():
    assert tokenize("") == []
    assert tokenize(None) == []


# ============================================================================
# text_similarity
# ============================================================================


def test_text_similarity_reflexive():
    assert text_similarity(MATRIX_PLOT, MATRIX_PLOT) == pytest.approx(1.0)


def test_text_similarity_symmetric():
    forward = text_similarity(MATRIX_PLOT, RELOADED_PLOT)
    backward = text_similarity(RELOADED_PLOT, MATRIX_PLOT)
    assert forward == pytest.approx(backward)
    assert 0.0 < forward < 1.0


def test_text_similarity_unrelated_is_zero():
    """Texts sharing no stems have zero similarity."""
    assert text_similarity(MATRIX_PLOT, COOKING_PLOT) == 0.0


def test_text_similarity_stems_variants_together():
    """'learning' and 'learns' share a stem and count as overlap."""
    assert text_similarity("hackers learning", "hacker learns") == pytest.approx(1.0)


@pytest.mark.parametrize("empty", ["", "   ", None])
def test_text_similarity_blank_input(empty):
    assert text_similarity(empty, MATRIX_PLOT) == 0.0
    assert text_similarity(MATRIX_PLOT, empty) == 0.0
    assert text_similarity(empty, empty) == 0.0


def test_text_similarity_no_tokens():
    """Punctuation-only text yields an empty vocabulary and scores 0."""
    assert text_similarity("!!! ???", "... ---") == 0.0
    assert text_similarity("!!!", MATRIX_PLOT) == 0.0


def test_text_similarity_in_range():
    score = text_similarity("the war of the worlds", "the war at home")
    assert 0.0 <= score <= 1.0


# ============================================================================
# Titles
# ============================================================================


def test_normalize_title():
    assert normalize_title("  Star Wars: Episode IV -  A New Hope ") == "star wars episode iv a new hope"
    assert normalize_title(None) == ""


def test_title_similarity_case_insensitive_exact():
    assert title_similarity("The Matrix", "the matrix") == 1.0


def test_title_similarity_ignores_punctuation():
    assert title_similarity("Spider-Man", "SpiderMan") == 1.0


def test_title_similarity_containment():
    """Containment scores 0.7 plus 0.3 times the length ratio."""
    score = title_similarity("Matrix", "The Matrix Reloaded")
    assert 0.7 < score < 1.0
    assert score == pytest.approx(0.7 + 0.3 * len("matrix") / len("the matrix reloaded"))


def test_title_similarity_edit_distance():
    """Near-miss spellings fall back to normalized Levenshtein distance."""
    score = title_similarity("Inception", "Inceptoin")
    assert score == pytest.approx(1 - 2 / 9)


def test_title_similarity_unrelated_is_low():
    assert title_similarity("Heat", "Casablanca") < 0.3


def test_title_similarity_symmetric():
    assert title_similarity("Alien", "Aliens") == title_similarity("Aliens", "Alien")


@pytest.mark.parametrize("first,second", [("", "Heat"), ("Heat", ""), ("", ""), (None, None), ("!!", "??")])
def test_title_similarity_empty_titles(first, second):
    """Empty titles never match, not even each other."""
    assert title_similarity(first, second) == 0.0
