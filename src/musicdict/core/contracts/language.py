"""LanguageDetectionResult — output of the term language classifier."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .common import Confidence, DetectedLanguage


class LanguageDetectionResult(BaseModel):
    """Detected source language of a term.

    Fields
    ------
    language : DetectedLanguage | None
        Two-letter code, or ``None`` when nothing matched.
    confidence : float in [0,1]
        Strength of the match (0.95 for curated exact hits down to 0.3 for
        the fallback).
    method : "pattern" | "fallback"
        ``fallback`` whenever the classifier could not reach 0.7.
    """

    model_config = ConfigDict(frozen=True)

    language: DetectedLanguage | None = None
    confidence: Confidence = 0.0
    method: Literal["pattern", "fallback"] = Field(default="pattern")


__all__ = ["LanguageDetectionResult"]
