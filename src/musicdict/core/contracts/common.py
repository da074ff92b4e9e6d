"""Shared small types used across the dictionary contracts."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import Field

# ---- Shared small types ------------------------------------------------------

Score = Annotated[int, Field(ge=0, le=100)]
Confidence = Annotated[float, Field(ge=0.0, le=1.0)]

#: Languages the detector can recognise.
DetectedLanguage = Literal["it", "de", "fr", "la", "en", "es"]

#: Declared type tags of a dictionary term.
TermType = Literal[
    "instrument",
    "genre",
    "technique",
    "tempo",
    "dynamics",
    "theory",
    "composer",
    "opera",
    "composition",
    "general",
]

ConfidenceLevel = Literal["low", "medium", "high"]

_WS_RE = re.compile(r"\s+")


def utc_now() -> datetime:
    """Return the current UTC timestamp."""
    return datetime.now(UTC)


def normalize_term(term: str) -> str:
    """Return the lookup key of a term: trimmed, lower-cased, single-spaced."""
    return _WS_RE.sub(" ", term.strip()).lower()


def confidence_level_for(score: int) -> ConfidenceLevel:
    """Map an overall score onto the coarse confidence buckets."""
    if score >= 80:
        return "high"
    if score >= 60:
        return "medium"
    return "low"


__all__ = [
    "Confidence",
    "ConfidenceLevel",
    "DetectedLanguage",
    "Score",
    "TermType",
    "confidence_level_for",
    "normalize_term",
    "utc_now",
]
