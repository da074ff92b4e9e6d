"""Tests for the single-pass entry enhancer."""

from __future__ import annotations

import json
from typing import Any

import pytest
from fakes import FakeLookup, RoutedLLM, make_entry

from musicdict.agents.enhancer_agent import EntryEnhancer, merge_related_terms
from musicdict.core.contracts.entry import ReferenceSet, RelatedTerm
from musicdict.core.errors import AIServiceError

IMPROVED = json.dumps(
    {
        "definition": {
            "concise": "Loud; a dynamic marking abbreviated f.",
            "detailed": "Forte asks the performer to play loudly relative to the context.",
            "etymology": "Italian forte, 'strong'.",
        }
    }
)

RELATED = json.dumps(
    {
        "related_terms": [
            {"term": "piano", "relationship": "antonym", "relevance": 0.9},
            {"term": "Fortissimo", "relationship": "narrower", "relevance": 1.4},
            {"term": "forte", "relationship": "synonym"},
            {"term": "sforzando", "relationship": "cousin"},
        ]
    }
)


def _llm(**routes: Any) -> RoutedLLM:
    base: dict[str, Any] = {"enhancement": [IMPROVED], "related_terms": [RELATED]}
    base.update(routes)
    return RoutedLLM(base)


def test_enhance_bumps_version_and_keeps_identity() -> None:
    llm = _llm()
    existing = make_entry("forte")

    enhanced = EntryEnhancer(llm, FakeLookup()).enhance(existing)

    assert enhanced.id == existing.id
    assert enhanced.created_at == existing.created_at
    assert enhanced.version == existing.version + 1
    assert enhanced.updated_at >= existing.updated_at
    assert enhanced.definition.concise.startswith("Loud; a dynamic marking")
    assert enhanced.definition.etymology == "Italian forte, 'strong'."
    # The encyclopedia reference exists and no focus was given: no re-resolve.
    assert llm.models() == ["enhancement"]
    assert enhanced.references == existing.references


def test_quality_is_recomputed_heuristically() -> None:
    enhanced = EntryEnhancer(_llm(), FakeLookup()).enhance(make_entry("forte"))

    # concise + detailed + etymology = 80; two reference groups = 40.
    assert enhanced.quality_score.overall == round((70 + 80 + 70 + 40) / 4)
    assert enhanced.quality_score.reference_completeness == 40


def test_missing_reference_triggers_resolution(lookup: FakeLookup) -> None:
    llm = _llm()
    existing = make_entry("forte", references=ReferenceSet())

    enhanced = EntryEnhancer(llm, lookup).enhance(existing)

    assert "reference" in llm.models()
    assert enhanced.references.wikipedia is not None
    assert lookup.calls


def test_references_focus_forces_resolution(lookup: FakeLookup) -> None:
    llm = _llm()

    EntryEnhancer(llm, lookup).enhance(make_entry("forte"), ["references"])

    assert llm.models() == ["enhancement", "reference"]


def test_human_verified_content_is_preserved() -> None:
    existing = make_entry("forte")
    existing = existing.model_copy(
        update={
            "quality_score": existing.quality_score.model_copy(update={"human_verified": True})
        }
    )

    enhanced = EntryEnhancer(_llm(), FakeLookup()).enhance(existing)

    assert enhanced.definition.concise == "Loud."
    assert enhanced.definition.detailed == existing.definition.detailed
    # Gaps are still filled.
    assert enhanced.definition.etymology == "Italian forte, 'strong'."
    assert enhanced.quality_score.human_verified is True


def test_focused_overwrite_clears_human_verified() -> None:
    existing = make_entry("forte")
    existing = existing.model_copy(
        update={
            "quality_score": existing.quality_score.model_copy(update={"human_verified": True})
        }
    )

    enhanced = EntryEnhancer(_llm(), FakeLookup()).enhance(existing, ["definition"])

    assert enhanced.definition.concise.startswith("Loud; a dynamic marking")
    assert enhanced.quality_score.human_verified is False


def test_unparsable_reply_keeps_definition() -> None:
    existing = make_entry("forte")

    enhanced = EntryEnhancer(_llm(enhancement=["no idea"]), FakeLookup()).enhance(existing)

    assert enhanced.definition == existing.definition
    assert enhanced.version == 2


def test_related_terms_focus_merges_and_filters() -> None:
    llm = _llm()
    existing = make_entry("forte")
    existing = existing.model_copy(
        update={
            "metadata": existing.metadata.model_copy(
                update={"related_terms": [RelatedTerm(term="Piano", relationship="antonym")]}
            )
        }
    )

    enhanced = EntryEnhancer(llm, FakeLookup()).enhance(existing, ["related_terms"])

    related = {t.term: t for t in enhanced.metadata.related_terms}
    assert list(related) == ["Piano", "Fortissimo", "sforzando"]
    assert related["Fortissimo"].relevance == pytest.approx(1.0)
    assert related["sforzando"].relationship == "related"
    assert llm.models() == ["enhancement", "related_terms"]


def test_unknown_focus_area_is_rejected() -> None:
    llm = _llm()
    with pytest.raises(ValueError):
        EntryEnhancer(llm, FakeLookup()).enhance(make_entry("forte"), ["spelling"])
    assert llm.calls == []


def test_service_failure_propagates() -> None:
    llm = _llm(enhancement=[AIServiceError("quota exceeded")])
    with pytest.raises(AIServiceError):
        EntryEnhancer(llm, FakeLookup()).enhance(make_entry("forte"))


def test_merge_related_terms_is_case_insensitive() -> None:
    merged = merge_related_terms(
        [RelatedTerm(term="Legato")], [RelatedTerm(term="legato"), RelatedTerm(term="Tenuto")]
    )
    assert [t.term for t in merged] == ["Legato", "Tenuto"]
