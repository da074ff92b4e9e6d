"""Contract tests for the dictionary entry models and the heuristic scorer."""

from __future__ import annotations

import pytest
from fakes import make_entry
from pydantic import ValidationError

from musicdict.core.contracts import (
    BatchItemResult,
    Definition,
    DictionaryEntry,
    GenerationRequest,
    LanguageDetectionResult,
    Pronunciation,
    ReferenceSet,
    ValidationResult,
    WikipediaReference,
    normalize_term,
)
from musicdict.core.contracts.common import confidence_level_for
from musicdict.core.scoring import completeness_score, heuristic_quality, reference_score


def test_normalize_term_trims_and_lowercases() -> None:
    assert normalize_term("  Da   Capo ") == "da capo"


def test_entry_requires_uuid_length_id() -> None:
    with pytest.raises(ValidationError):
        make_entry(id="short")


def test_entry_version_starts_at_one_and_rejects_zero() -> None:
    assert make_entry().version == 1
    with pytest.raises(ValidationError):
        make_entry(version=0)


def test_entry_key_and_json_roundtrip() -> None:
    entry = make_entry("Sforzando", lang="en")
    assert entry.key == ("sforzando", "en")

    restored = DictionaryEntry.model_validate_json(entry.model_dump_json())
    assert restored == entry


def test_quality_score_bounds() -> None:
    with pytest.raises(ValidationError):
        ValidationResult(score=101)
    assert ValidationResult.failed().issues == ["Validation failed"]


def test_confidence_level_buckets() -> None:
    assert confidence_level_for(80) == "high"
    assert confidence_level_for(79) == "medium"
    assert confidence_level_for(60) == "medium"
    assert confidence_level_for(59) == "low"


def test_language_result_is_frozen() -> None:
    result = LanguageDetectionResult(language="it", confidence=0.95)
    with pytest.raises(ValidationError):
        result.confidence = 0.1  # type: ignore[misc]


def test_generation_request_rejects_unknown_type() -> None:
    with pytest.raises(ValidationError):
        GenerationRequest(term="piano", type="gadget")  # type: ignore[arg-type]


def test_batch_item_ok_flag() -> None:
    assert BatchItemResult(index=0, term="x", entry=make_entry()).ok
    assert not BatchItemResult(index=1, term="y", error="boom").ok


def test_completeness_weights() -> None:
    bare = Definition(concise="c", detailed="d")
    full = Definition(
        concise="c",
        detailed="d",
        etymology="e",
        pronunciation=Pronunciation(ipa="ˈfɔrte"),
        usage_example="u",
    )
    assert completeness_score(bare) == 70
    assert completeness_score(full) == 100
    assert completeness_score(bare.model_copy(update={"pronunciation": Pronunciation()})) == 70


def test_heuristic_quality_averages_sub_scores() -> None:
    definition = Definition(concise="c", detailed="d", etymology="e")
    refs = ReferenceSet(wikipedia=WikipediaReference(url="https://en.wikipedia.org/wiki/Forte"))

    q = heuristic_quality(definition, refs)

    # (70 accuracy + 80 completeness + 70 clarity + 20 references) / 4
    assert q.overall == 60
    assert q.reference_completeness == reference_score(refs) == 20
    assert q.confidence_level == "medium"


def test_heuristic_quality_prefers_supplied_overall() -> None:
    q = heuristic_quality(Definition(concise="c", detailed="d"), ReferenceSet(), overall=91)
    assert q.overall == 91
    assert q.confidence_level == "high"
