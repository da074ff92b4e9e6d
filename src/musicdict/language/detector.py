"""
Language detector: classify the source language of a musical term.

Detection runs a fixed cascade and stops at the first stage that answers:

1. Curated vocabularies, exact match, in priority order
   (it 0.95, de 0.95, fr 0.95, la 0.90, en 0.85, es 0.90).
2. Multi-word phrases: every word votes for the vocabularies and patterns it
   matches; a winning score of at least 2 gives ``0.7 + 0.05 * score``
   (capped at 0.95).
3. Surface patterns (Italian, German, French suffixes/prefixes): 0.8.
4. Stem match against Italian, German, French vocabularies: 0.75.
5. Otherwise no language at 0.3.

Any answer below 0.7 is reported with ``method="fallback"``. The detector is
stateless, so one instance may be shared across threads.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from musicdict.core.contracts.language import LanguageDetectionResult

from .terms import LANGUAGE_PRIORITY, PATTERN_LANGUAGES, STEM_LANGUAGES

_NUMERIC_RE = re.compile(r"^\d+$")

EXACT_CONFIDENCE_FLOOR = 0.7
PATTERN_CONFIDENCE = 0.8
STEM_CONFIDENCE = 0.75
FALLBACK_CONFIDENCE = 0.3
NUMERIC_CONFIDENCE = 0.2
# Shortest shared stem accepted by the stem stage.
MIN_STEM_LENGTH = 4


class LanguageDetector:
    """Pattern-based classifier over curated musical vocabularies."""

    def detect(self, term: str) -> LanguageDetectionResult:
        """Detect the language of a single term (case-insensitive)."""
        normalized = term.strip().lower()

        if not normalized:
            return LanguageDetectionResult(language=None, confidence=0.0, method="fallback")
        if _NUMERIC_RE.match(normalized):
            return LanguageDetectionResult(
                language=None, confidence=NUMERIC_CONFIDENCE, method="fallback"
            )

        language, confidence = self._classify(normalized)
        method = "pattern" if confidence >= EXACT_CONFIDENCE_FLOOR else "fallback"
        return LanguageDetectionResult(language=language, confidence=confidence, method=method)

    def detect_many(self, terms: Iterable[str]) -> list[LanguageDetectionResult]:
        """Detect every term independently, preserving input order."""
        return [self.detect(term) for term in terms]

    def is_musical_term(self, term: str) -> bool:
        """Return True if ``term`` is in any curated vocabulary."""
        normalized = term.strip().lower()
        return any(normalized in vocab for _, vocab, _, _ in LANGUAGE_PRIORITY)

    # ------------------------------------------------------------------ #
    # Cascade stages
    # ------------------------------------------------------------------ #
    def _classify(self, term: str) -> tuple[str | None, float]:
        for language, vocab, confidence, _ in LANGUAGE_PRIORITY:
            if term in vocab:
                return language, confidence

        phrase = self._detect_phrase(term)
        if phrase is not None:
            return phrase

        for language, patterns in PATTERN_LANGUAGES:
            if any(p.search(term) for p in patterns):
                return language, PATTERN_CONFIDENCE

        stem = self._detect_stem(term)
        if stem is not None:
            return stem, STEM_CONFIDENCE

        return None, FALLBACK_CONFIDENCE

    @staticmethod
    def _detect_phrase(term: str) -> tuple[str, float] | None:
        words = term.split()
        if len(words) < 2:
            return None

        scores: dict[str, int] = {language: 0 for language, *_ in LANGUAGE_PRIORITY}
        pattern_table = dict(PATTERN_LANGUAGES)
        for word in words:
            for language, vocab, _, weight in LANGUAGE_PRIORITY:
                if word in vocab:
                    scores[language] += weight
            for language, patterns in pattern_table.items():
                scores[language] += sum(1 for p in patterns if p.search(word))

        # Strictly greater keeps the earlier language on ties.
        best_language: str | None = None
        best_score = 0
        for language, score in scores.items():
            if score > best_score:
                best_language, best_score = language, score

        if best_language is None or best_score < 2:
            return None
        return best_language, round(min(0.95, 0.7 + 0.05 * best_score), 2)

    @staticmethod
    def _detect_stem(term: str) -> str | None:
        for language, vocab in STEM_LANGUAGES:
            for known in vocab:
                if min(len(known), len(term)) < MIN_STEM_LENGTH:
                    continue
                if term.startswith(known) or known.startswith(term):
                    return language
        return None


__all__ = ["LanguageDetector"]
