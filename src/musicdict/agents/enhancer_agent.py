"""
Entry enhancer: one improvement pass over an existing entry.

Unlike generation, enhancement never loops to a quality threshold. A pass:

1. Asks the completion service for an improved definition, seeded with the
   entry's current fields.
2. Merges the reply into the existing definition. Improved fields replace
   weak ones and omitted fields keep their current value. On
   ``human_verified`` entries existing content is kept and only gaps are
   filled, unless the field's focus area was requested explicitly.
3. Re-runs the reference resolver only when the encyclopedia reference is
   missing or ``"references"`` is a focus area.
4. Optionally refreshes related terms (``"related_terms"`` focus area).
5. Recomputes the heuristic quality score, bumps ``version`` by one and
   refreshes ``updated_at``; ``id`` and ``created_at`` never change.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from musicdict.core.contracts.common import utc_now
from musicdict.core.contracts.entry import (
    Definition,
    DictionaryEntry,
    ReferenceSet,
    RelatedTerm,
)
from musicdict.core.errors import ParseError
from musicdict.core.ports import CompletionService, LookupService
from musicdict.core.scoring import heuristic_quality
from musicdict.core.settings import get_logger
from musicdict.llm.client import LLMClient
from musicdict.llm.parsing import parse_json_object, parse_json_response, parse_optional_str

from .generator_agent import definition_fields_from_json
from .reference_agent import ReferenceResolver

logger = get_logger(__name__)

_ENHANCEMENT_MODEL_ALIAS = "enhancement"
_RELATED_MODEL_ALIAS = "related_terms"

FOCUS_AREAS: frozenset[str] = frozenset(
    {"definition", "examples", "etymology", "pronunciation", "references", "related_terms"}
)

# Definition field -> focus area that targets it.
FIELD_FOCUS: dict[str, str] = {
    "concise": "definition",
    "detailed": "definition",
    "usage_example": "examples",
    "etymology": "etymology",
    "pronunciation": "pronunciation",
}

_RELATIONSHIPS = {"synonym", "antonym", "see_also", "broader", "narrower", "related"}


def _get_llm_client() -> LLMClient:
    """Return the default completion client (monkeypatched in tests)."""
    return LLMClient.from_env()


def normalize_focus_areas(focus_areas: Iterable[str] | None) -> frozenset[str]:
    """Lower-case and validate focus area names.

    Raises
    ------
    ValueError
        If an unknown focus area is given.
    """
    if focus_areas is None:
        return frozenset()
    areas = frozenset(a.strip().lower() for a in focus_areas if a.strip())
    unknown = areas - FOCUS_AREAS
    if unknown:
        raise ValueError(f"unknown focus area(s): {', '.join(sorted(unknown))}")
    return areas


def build_enhancement_prompt(entry: DictionaryEntry, focus: frozenset[str]) -> str:
    """Prompt asking for an improved definition of ``entry``."""
    current = {
        "term": entry.term,
        "type": entry.type,
        "definition": entry.definition.model_dump(mode="json", exclude_none=True),
    }
    current_json = json.dumps(current, indent=2, ensure_ascii=False)
    if focus:
        focus_line = f"Focus on improving: {', '.join(sorted(focus))}"
    else:
        focus_line = "Enhance all aspects of the definition"
    return f"""You are enhancing a music dictionary entry to make it more comprehensive and valuable for learners.

Current entry:
{current_json}

{focus_line}

Improve the entry by:
1. Making the concise and detailed definitions clearer and more accurate
2. Including historical context where relevant
3. Expanding the usage example with notable works or performers
4. Adding etymology and pronunciation when they are missing

Keep every accurate statement of the current entry. Return only valid JSON:
{{
  "definition": {{
    "concise": "...",
    "detailed": "...",
    "etymology": "...",
    "pronunciation": {{"ipa": "...", "syllables": ["..."], "stress_pattern": "..."}},
    "usage_example": "..."
  }}
}}"""


def build_related_terms_prompt(term: str, definition: str) -> str:
    """Prompt asking for cross-references of ``term``."""
    return f"""Given the music term "{term}" with definition: "{definition}"

List 5-10 related musical terms that students should also know. For each term, specify the relationship type:
- synonym: terms with the same meaning
- antonym: opposite terms
- see_also: closely related concepts
- broader: more general category
- narrower: more specific examples

Format as JSON:
{{
  "related_terms": [
    {{"term": "related term", "relationship": "relationship_type", "relevance": <0.0-1.0>}}
  ]
}}"""


def _parse_relevance(raw: Any, default: float = 0.5) -> float:
    """Parse a relevance value and clamp it into [0.0, 1.0]."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        value = default

    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def parse_related_terms(raw: str) -> list[RelatedTerm]:
    """Parse a related-terms reply; accepts a wrapped object or a bare list."""
    payload = parse_json_response(raw)
    if isinstance(payload, Mapping):
        payload = payload.get("related_terms", [])
    if not isinstance(payload, list):
        raise ParseError("Expected a list of related terms")

    terms: list[RelatedTerm] = []
    for node in payload:
        if not isinstance(node, Mapping):
            continue
        name = parse_optional_str(node.get("term"))
        if name is None:
            continue
        relationship = str(node.get("relationship", "related")).strip().lower()
        if relationship not in _RELATIONSHIPS:
            relationship = "related"
        terms.append(
            RelatedTerm(
                term=name,
                relationship=relationship,  # type: ignore[arg-type]
                relevance=_parse_relevance(node.get("relevance")),
            )
        )
    return terms


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if hasattr(value, "is_empty"):
        return not value.is_empty()
    return bool(value)


def merge_definition(
    existing: Definition,
    improved: Mapping[str, Any],
    *,
    human_verified: bool,
    focus: frozenset[str],
) -> tuple[Definition, bool]:
    """Merge improved fields into ``existing``.

    Returns
    -------
    tuple[Definition, bool]
        The merged definition and whether verified content was overwritten.
    """
    merged: dict[str, Any] = existing.model_dump()
    overwritten = False
    for name, area in FIELD_FOCUS.items():
        new = improved.get(name)
        if not _has_value(new):
            continue
        old = getattr(existing, name)
        if human_verified and _has_value(old):
            if area not in focus:
                continue
            if new != old:
                overwritten = True
        merged[name] = new
    return Definition.model_validate(merged), overwritten


def merge_related_terms(
    existing: Iterable[RelatedTerm], incoming: Iterable[RelatedTerm]
) -> list[RelatedTerm]:
    """Append ``incoming`` terms not already present (case-insensitive)."""
    merged = list(existing)
    seen = {t.term.lower() for t in merged}
    for term in incoming:
        if term.term.lower() not in seen:
            merged.append(term)
            seen.add(term.term.lower())
    return merged


class EntryEnhancer:
    """Single-pass improver for stored entries.

    Parameters
    ----------
    llm:
        Completion service for the improvement and related-terms calls.
    lookup:
        Encyclopedia lookup used by the default resolver.
    resolver:
        Optional pre-built resolver (built on ``llm``/``lookup`` otherwise).
    """

    def __init__(
        self,
        llm: CompletionService | None = None,
        lookup: LookupService | None = None,
        *,
        resolver: ReferenceResolver | None = None,
        model: str = _ENHANCEMENT_MODEL_ALIAS,
    ) -> None:
        self.llm = llm if llm is not None else _get_llm_client()
        self.resolver = resolver or ReferenceResolver(self.llm, lookup)
        self.model = model

    def enhance(
        self,
        existing: DictionaryEntry,
        focus_areas: Iterable[str] | None = None,
    ) -> DictionaryEntry:
        """Return an improved copy of ``existing`` with ``version + 1``.

        Raises
        ------
        ValueError
            If ``focus_areas`` names an unknown area.
        AIServiceError
            If a completion call fails.
        """
        focus = normalize_focus_areas(focus_areas)
        verified = existing.quality_score.human_verified

        improved = self._improve_definition(existing, focus)
        definition, overwritten = merge_definition(
            existing.definition, improved, human_verified=verified, focus=focus
        )

        references = existing.references
        if existing.references.wikipedia is None or "references" in focus:
            fresh = self.resolver.resolve(
                existing.term,
                existing.type,
                existing.lang,
                source_language=existing.metadata.source_language,
            )
            references = ReferenceSet(
                wikipedia=fresh.wikipedia or existing.references.wikipedia,
                media=fresh.media or existing.references.media,
            )

        now = utc_now()
        metadata_update: dict[str, Any] = {"last_accessed": now}
        if "related_terms" in focus:
            related = self._related_terms(existing.term, definition)
            metadata_update["related_terms"] = merge_related_terms(
                existing.metadata.related_terms, related
            )
        metadata = existing.metadata.model_copy(update=metadata_update)

        quality = heuristic_quality(
            definition, references, human_verified=verified and not overwritten
        ).model_copy(update={"last_ai_check": now})

        logger.info(
            "Enhanced %r to version %d (score %d)",
            existing.term,
            existing.version + 1,
            quality.overall,
        )
        return existing.model_copy(
            update={
                "definition": definition,
                "references": references,
                "metadata": metadata,
                "quality_score": quality,
                "version": existing.version + 1,
                "updated_at": now,
            }
        )

    # ------------------------------------------------------------------ #
    # Completion calls
    # ------------------------------------------------------------------ #
    def _improve_definition(
        self, entry: DictionaryEntry, focus: frozenset[str]
    ) -> dict[str, Any]:
        completion = self.llm.complete(
            build_enhancement_prompt(entry, focus),
            model=self.model,
            max_tokens=1500,
            temperature=0.7,
        )
        try:
            return definition_fields_from_json(parse_json_object(completion.response))
        except ParseError as exc:
            logger.warning("Enhancement reply for %r not parseable: %s", entry.term, exc)
            return {}

    def _related_terms(self, term: str, definition: Definition) -> list[RelatedTerm]:
        completion = self.llm.complete(
            build_related_terms_prompt(term, definition.detailed),
            model=_RELATED_MODEL_ALIAS,
            max_tokens=400,
            temperature=0.3,
        )
        try:
            related = parse_related_terms(completion.response)
        except ParseError as exc:
            logger.warning("Related terms for %r not parseable: %s", term, exc)
            return []
        return [t for t in related if t.term.lower() != term.lower()]


__all__ = [
    "EntryEnhancer",
    "FOCUS_AREAS",
    "build_enhancement_prompt",
    "build_related_terms_prompt",
    "merge_definition",
    "merge_related_terms",
    "normalize_focus_areas",
    "parse_related_terms",
]
