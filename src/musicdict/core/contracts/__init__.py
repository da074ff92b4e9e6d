"""Pydantic contracts shared by the agents, storage and CLI."""

from __future__ import annotations

from .common import normalize_term
from .entry import (
    Definition,
    DictionaryEntry,
    EducationalVideo,
    EntryMetadata,
    GenerationContext,
    GenerationRequest,
    MediaReferences,
    Pronunciation,
    QualityScore,
    ReferenceSet,
    RelatedTerm,
    WikipediaReference,
    YoutubeReferences,
)
from .language import LanguageDetectionResult
from .review import BatchItemResult, ValidationResult

__all__ = [
    "BatchItemResult",
    "Definition",
    "DictionaryEntry",
    "EducationalVideo",
    "EntryMetadata",
    "GenerationContext",
    "GenerationRequest",
    "LanguageDetectionResult",
    "MediaReferences",
    "Pronunciation",
    "QualityScore",
    "ReferenceSet",
    "RelatedTerm",
    "ValidationResult",
    "WikipediaReference",
    "YoutubeReferences",
    "normalize_term",
]
