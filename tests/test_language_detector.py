"""Tests for the pattern-based term language detector."""

from __future__ import annotations

import pytest

from musicdict.language.detector import LanguageDetector

detector = LanguageDetector()


@pytest.mark.parametrize(
    ("term", "language", "confidence"),
    [
        ("allegro", "it", 0.95),
        ("langsam", "de", 0.95),
        ("avec", "fr", 0.95),
        ("kyrie", "la", 0.9),
        ("jazz", "en", 0.85),
        ("flamenco", "es", 0.9),
    ],
)
def test_exact_vocabulary_hits(term: str, language: str, confidence: float) -> None:
    result = detector.detect(term)
    assert result.language == language
    assert result.confidence == pytest.approx(confidence)
    assert result.method == "pattern"


@pytest.mark.parametrize("term", ["piano", "forte", "allegro", "crescendo", "lento", "con brio"])
def test_italian_musical_vocabulary_is_confident(term: str) -> None:
    result = detector.detect(term)
    assert result.language == "it"
    assert result.confidence >= 0.9


def test_detection_is_case_insensitive() -> None:
    assert detector.detect("  ALLEGRO ").language == "it"


def test_shared_words_follow_priority_order() -> None:
    """'piano' is Italian, English and French; Italian comes first."""
    assert detector.detect("piano").language == "it"
    assert detector.detect("et").language == "fr"


def test_multi_word_phrase_scores_per_word() -> None:
    result = detector.detect("sehr langsam")
    assert result.language == "de"
    # Two German vocabulary hits, weight 2 each: 0.7 + 0.05 * 4.
    assert result.confidence == pytest.approx(0.9)


def test_surface_patterns() -> None:
    italian = detector.detect("furiosissimo")
    german = detector.detect("feierlich")
    assert (italian.language, italian.confidence) == ("it", 0.8)
    assert (german.language, german.confidence) == ("de", 0.8)


def test_stem_match() -> None:
    result = detector.detect("staccatos")
    assert result.language == "it"
    assert result.confidence == pytest.approx(0.75)
    assert result.method == "pattern"


def test_unknown_term_falls_back() -> None:
    result = detector.detect("xyzzy")
    assert result.language is None
    assert result.confidence == pytest.approx(0.3)
    assert result.method == "fallback"


def test_empty_and_numeric_input() -> None:
    empty = detector.detect("   ")
    numeric = detector.detect("1234")
    assert (empty.language, empty.confidence, empty.method) == (None, 0.0, "fallback")
    assert (numeric.language, numeric.confidence, numeric.method) == (None, 0.2, "fallback")


def test_detect_many_preserves_order() -> None:
    results = detector.detect_many(["langsam", "allegro", "xyzzy"])
    assert [r.language for r in results] == ["de", "it", None]


def test_is_musical_term() -> None:
    assert detector.is_musical_term("Crescendo")
    assert not detector.is_musical_term("spreadsheet")
