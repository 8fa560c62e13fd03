"""
Tests for query key normalization.
"""

import pytest

from concept_cache.services import normalize, normalize_text


@pytest.mark.parametrize(
    "variant",
    [
        "What is photosynthesis?",
        "what is photosynthesis",
        "  WHAT   IS  photosynthesis ?? ",
        "Explain photosynthesis.",
        "Can you explain photosynthesis!",
        "Tell me about   photosynthesis",
        "photosynthesis",
    ],
)
def test_variants_share_a_key(variant):
    """Case, whitespace, leading phrases and trailing punctuation do not matter."""
    assert normalize(variant) == normalize("photosynthesis")


def test_distinct_concepts_have_distinct_keys():
    assert normalize("What is photosynthesis?") != normalize("What is respiration?")


def test_key_is_sha256_hex():
    key = normalize("Explain Newton's second law of motion")
    assert len(key) == 64
    assert all(ch in "0123456789abcdef" for ch in key)


@pytest.mark.parametrize(
    "raw",
    [
        "Can you explain what is the speed of light?",
        "x. ?",
        "What's   a Vector field!",
        "define explain",
        "The water cycle...",
    ],
)
def test_normalize_text_is_idempotent(raw):
    once = normalize_text(raw)
    assert normalize_text(once) == once
    assert normalize(once) == normalize(raw)


def test_stacked_leading_phrases_are_all_stripped():
    assert normalize_text("Can you explain what is entropy?") == "entropy"


def test_phrase_alone_is_not_stripped_to_empty():
    assert normalize_text("Explain") == "explain"
    assert normalize_text("what is") == "what is"


def test_phrase_must_be_a_whole_word():
    assert normalize_text("Explanation of gravity") == "explanation of gravity"
    assert normalize_text("Whatsoever happens") == "whatsoever happens"


def test_interior_punctuation_is_kept():
    assert normalize_text("What is e=mc^2?") == "e=mc^2"


@pytest.mark.parametrize("raw", ["what is \ud800 gravity", "\udfff", "gravity \udc80?"])
def test_lone_surrogates_still_produce_a_key(raw):
    key = normalize(raw)
    assert len(key) == 64
    assert key == normalize(raw.upper())
    assert key != normalize("what is gravity")
