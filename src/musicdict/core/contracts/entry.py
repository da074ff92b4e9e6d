"""DictionaryEntry — the aggregate produced by generation and enhancement.

This module defines the Pydantic models that make up one dictionary record:

- Definition (+ Pronunciation): the core textual payload.
- ReferenceSet: encyclopedia page and educational video links.
- QualityScore: validator verdict plus heuristic breakdown.
- EntryMetadata: usage counters, related terms, source language.
- DictionaryEntry: the envelope tying these together with id/version/timestamps.

Contract notes
--------------
- ``id`` is a UUID4 string assigned once by the generator and never changed.
- ``version`` starts at 1 and grows by exactly one per enhancement pass.
- ``quality_score.overall`` is the only field consulted by the generation
  loop's accept/retry decision.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from .common import (
    Confidence,
    ConfidenceLevel,
    DetectedLanguage,
    Score,
    TermType,
    utc_now,
)

# ---- Definition ----------------------------------------------------------------


class Pronunciation(BaseModel):
    """How a term is spoken."""

    ipa: str | None = None
    syllables: list[str] = Field(default_factory=list)
    stress_pattern: str | None = None

    def is_empty(self) -> bool:
        return not (self.ipa or self.syllables or self.stress_pattern)


class Definition(BaseModel):
    """Textual payload of an entry."""

    concise: str
    detailed: str
    etymology: str | None = None
    pronunciation: Pronunciation | None = None
    usage_example: str | None = None


# ---- References ----------------------------------------------------------------


class WikipediaReference(BaseModel):
    """Canonical encyclopedia page for the term."""

    url: str
    title: str | None = None
    extract: str = ""
    last_verified: datetime = Field(default_factory=utc_now)


class EducationalVideo(BaseModel):
    """A video (or video search page) useful to learners."""

    title: str
    url: str
    channel: str = "YouTube Search"
    relevance_score: Confidence = 0.5


class YoutubeReferences(BaseModel):
    educational_videos: list[EducationalVideo] = Field(default_factory=list)


class MediaReferences(BaseModel):
    youtube: YoutubeReferences | None = None


class ReferenceSet(BaseModel):
    """External references attached to an entry.

    Built once per generation attempt and never partially merged across
    attempts.
    """

    wikipedia: WikipediaReference | None = None
    media: MediaReferences | None = None

    def count(self) -> int:
        """Number of reference groups present (used by the heuristic scorer)."""
        total = 0
        if self.wikipedia is not None:
            total += 1
        if self.media is not None and self.media.youtube is not None:
            total += 1
        return total


# ---- Quality ---------------------------------------------------------------------


class QualityScore(BaseModel):
    """Validator verdict plus heuristic sub-scores.

    Fields
    ------
    overall : int in [0,100]
        Score that gates acceptance during generation.
    definition_clarity, reference_completeness, accuracy_verification : int
        Heuristic breakdown, informative only.
    last_ai_check : datetime
        When an automated check last produced this score.
    human_verified : bool
        Set by editors; protects existing content from automated overwrite.
    confidence_level : "low" | "medium" | "high"
        Coarse bucket derived from ``overall``.
    """

    overall: Score = 0
    definition_clarity: Score = 0
    reference_completeness: Score = 0
    accuracy_verification: Score = 0
    last_ai_check: datetime = Field(default_factory=utc_now)
    human_verified: bool = False
    confidence_level: ConfidenceLevel | None = None


# ---- Metadata --------------------------------------------------------------------

Relationship = Literal["synonym", "antonym", "see_also", "broader", "narrower", "related"]


class RelatedTerm(BaseModel):
    """A cross-reference to another dictionary term."""

    term: str
    relationship: Relationship = "related"
    relevance: Confidence = 0.5


class EntryMetadata(BaseModel):
    """Usage counters and classification data of an entry."""

    search_frequency: Annotated[int, Field(ge=0)] = 0
    related_terms: list[RelatedTerm] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    last_accessed: datetime = Field(default_factory=utc_now)
    source_language: DetectedLanguage | None = None
    source_language_confidence: Confidence = 0.0
    difficulty_level: str | None = None
    instruments: list[str] = Field(default_factory=list)


# ---- Aggregate -------------------------------------------------------------------


class DictionaryEntry(BaseModel):
    """A single term's full dictionary record."""

    id: str = Field(min_length=36, max_length=36)
    term: str
    normalized_term: str
    type: TermType = "general"
    lang: str = "en"
    definition: Definition
    references: ReferenceSet = Field(default_factory=ReferenceSet)
    metadata: EntryMetadata = Field(default_factory=EntryMetadata)
    quality_score: QualityScore = Field(default_factory=QualityScore)
    version: Annotated[int, Field(ge=1)] = 1
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def key(self) -> tuple[str, str]:
        """Uniqueness key used by repositories: ``(normalized_term, lang)``."""
        return (self.normalized_term, self.lang)


# ---- Requests --------------------------------------------------------------------


class GenerationContext(BaseModel):
    """Optional hints passed into the definition prompt."""

    instruments: list[str] = Field(default_factory=list)
    difficulty_level: str | None = None


class GenerationRequest(BaseModel):
    """One term to generate, as used by batch generation and seeding."""

    term: str = Field(min_length=1)
    type: TermType = "general"
    lang: str | None = None
    context: GenerationContext | None = None


__all__ = [
    "DictionaryEntry",
    "Definition",
    "EducationalVideo",
    "EntryMetadata",
    "GenerationContext",
    "GenerationRequest",
    "MediaReferences",
    "Pronunciation",
    "QualityScore",
    "ReferenceSet",
    "RelatedTerm",
    "Relationship",
    "WikipediaReference",
    "YoutubeReferences",
]
