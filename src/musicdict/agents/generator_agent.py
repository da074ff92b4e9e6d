"""
Entry generator: draft, resolve, validate, and retry until an entry passes.

The generate-validate loop is modelled as an explicit state machine so the
attempt counter, the feedback threading and the termination condition are
visible in one place::

    DRAFTING -> RESOLVING -> VALIDATING -> ACCEPTED
        ^                        |
        +------- RETRYING <------+---> FAILED (budget exhausted)

Per attempt the completion service is called for the definition draft, the
reference phrases and the review (three calls), plus one selection call when
the lookup returns several candidate pages. On attempts after the first, the
previous review's issues and suggestions are fed into the draft prompt.

Batch generation runs requests in windows of ``window_size`` on a thread pool;
every item owns its own run state, and a failing item becomes a
:class:`BatchItemResult` with an error message instead of aborting siblings.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, get_args

from musicdict.core.batching import run_windowed
from musicdict.core.contracts.common import TermType, normalize_term, utc_now
from musicdict.core.contracts.entry import (
    Definition,
    DictionaryEntry,
    EntryMetadata,
    GenerationContext,
    GenerationRequest,
    Pronunciation,
    QualityScore,
    ReferenceSet,
)
from musicdict.core.contracts.language import LanguageDetectionResult
from musicdict.core.contracts.review import BatchItemResult, ValidationResult
from musicdict.core.errors import GenerationQualityError, ParseError
from musicdict.core.ports import CompletionService, LookupService
from musicdict.core.result import never
from musicdict.core.scoring import heuristic_quality
from musicdict.core.settings import get_logger, load_settings
from musicdict.language.detector import LanguageDetector
from musicdict.llm.client import LLMClient
from musicdict.llm.parsing import parse_json_object, parse_optional_str, parse_str_list

from .reference_agent import ReferenceResolver
from .validator_agent import QualityValidator

logger = get_logger(__name__)

_DEFINITION_MODEL_ALIAS = "definition"

UNPARSABLE_DRAFT_ISSUE = "Definition draft was not valid JSON"
UNPARSABLE_DRAFT_SUGGESTION = "Return only the JSON object described in the instructions"

TERM_TYPES: frozenset[str] = frozenset(get_args(TermType))


def _get_llm_client() -> LLMClient:
    """Return the default completion client (monkeypatched in tests)."""
    return LLMClient.from_env()


# --------------------------------------------------------------------------- #
# Draft prompt and parsing
# --------------------------------------------------------------------------- #


def build_definition_prompt(
    term: str,
    term_type: str,
    *,
    context: GenerationContext | None = None,
    source_language: str | None = None,
    issues: Sequence[str] = (),
    suggestions: Sequence[str] = (),
) -> str:
    """Build the definition-draft prompt, optionally carrying review feedback."""
    hints: list[str] = []
    if source_language:
        hints.append(f"Source language of the term (ISO code): {source_language}")
    if context is not None and context.instruments:
        hints.append(f"Relevant instruments: {', '.join(context.instruments)}")
    if context is not None and context.difficulty_level:
        hints.append(f"Difficulty level: {context.difficulty_level}")
    hints_block = "\n".join(hints)

    feedback = ""
    if issues or suggestions:
        issue_lines = "\n".join(f"- {i}" for i in issues) or "- (none listed)"
        suggestion_lines = "\n".join(f"- {s}" for s in suggestions) or "- (none listed)"
        feedback = (
            "\nA previous draft was rejected by the reviewer.\n"
            f"Issues:\n{issue_lines}\n"
            f"Suggestions:\n{suggestion_lines}\n"
            "Address every issue in this new draft.\n"
        )

    return f"""You are a professional music dictionary editor with deep knowledge of music theory, instruments, and musical terminology.

Create a comprehensive dictionary entry for the music term: "{term}"
Term type: {term_type}
{hints_block}
{feedback}
Provide a response in the following JSON format:
{{
  "concise": "A clear, accurate 1-2 sentence definition suitable for quick reference (max 200 characters)",
  "detailed": "A comprehensive explanation of the term's meaning, usage, and significance in music (3-5 sentences)",
  "etymology": "The word's origin and historical development (if known and relevant)",
  "pronunciation": {{
    "ipa": "International Phonetic Alphabet notation",
    "syllables": ["syl", "la", "bles"],
    "stress_pattern": "primary stress on first syllable"
  }},
  "usage_example": "A practical example sentence showing how the term is used in a musical context"
}}

Guidelines:
- Be accurate and educational
- Use clear, accessible language
- Only include etymology if it helps understanding
- Format as valid JSON only, no additional text"""


def _pronunciation_from_json(node: Any) -> Pronunciation | None:
    if isinstance(node, str):
        ipa = node.strip()
        return Pronunciation(ipa=ipa) if ipa else None
    if not isinstance(node, Mapping):
        return None
    pron = Pronunciation(
        ipa=parse_optional_str(node.get("ipa")),
        syllables=parse_str_list(node.get("syllables", [])),
        stress_pattern=parse_optional_str(node.get("stress_pattern")),
    )
    return None if pron.is_empty() else pron


def definition_fields_from_json(node: Any) -> dict[str, Any]:
    """Extract the recognised, non-empty definition fields from a JSON node.

    A node wrapping the definition under a ``"definition"`` key is unwrapped.
    """
    if isinstance(node, Mapping) and isinstance(node.get("definition"), Mapping):
        node = node["definition"]
    if not isinstance(node, Mapping):
        return {}

    fields: dict[str, Any] = {}
    for name in ("concise", "detailed", "etymology", "usage_example"):
        value = parse_optional_str(node.get(name))
        if value is not None:
            fields[name] = value
    pron = _pronunciation_from_json(node.get("pronunciation"))
    if pron is not None:
        fields["pronunciation"] = pron
    return fields


def parse_definition(raw: str) -> Definition:
    """Parse a draft reply into a :class:`Definition`.

    Raises
    ------
    ParseError
        If the reply has no JSON object or lacks ``concise``/``detailed``.
    """
    fields = definition_fields_from_json(parse_json_object(raw))
    if "concise" not in fields or "detailed" not in fields:
        raise ParseError("Definition draft lacks 'concise' or 'detailed'")
    return Definition(**fields)


# --------------------------------------------------------------------------- #
# State machine
# --------------------------------------------------------------------------- #


class GenerationState(str, Enum):
    """States of one generate-validate run."""

    DRAFTING = "drafting"
    RESOLVING = "resolving"
    VALIDATING = "validating"
    ACCEPTED = "accepted"
    RETRYING = "retrying"
    FAILED = "failed"


@dataclass
class GenerationRun:
    """Mutable bookkeeping for a single ``generate`` call.

    Each call owns its run; nothing here is shared between batch items.
    """

    term: str
    term_type: str
    max_attempts: int
    state: GenerationState = GenerationState.DRAFTING
    attempt: int = 0
    last_score: int = 0
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    history: list[GenerationState] = field(default_factory=lambda: [GenerationState.DRAFTING])

    def move(self, state: GenerationState) -> None:
        self.state = state
        self.history.append(state)

    def reject(self, score: int, issues: Sequence[str], suggestions: Sequence[str]) -> None:
        """Record a failed attempt and move to RETRYING or FAILED."""
        self.last_score = score
        self.issues = list(issues)
        self.suggestions = list(suggestions)
        if self.attempt >= self.max_attempts:
            self.move(GenerationState.FAILED)
        else:
            self.move(GenerationState.RETRYING)

    def error(self) -> GenerationQualityError:
        return GenerationQualityError(
            self.term,
            attempts=self.attempt,
            issues=self.issues,
            suggestions=self.suggestions,
            last_score=self.last_score,
        )


# --------------------------------------------------------------------------- #
# Generator
# --------------------------------------------------------------------------- #


class EntryGenerator:
    """Produces new dictionary entries through a bounded retry loop.

    Parameters
    ----------
    llm:
        Completion service shared by the draft, resolver and validator steps.
    lookup:
        Encyclopedia lookup used by the default resolver.
    detector, resolver, validator:
        Optional pre-built collaborators; by default they are built on
        ``llm`` and ``lookup``.
    quality_threshold, max_attempts, window_size:
        Override the corresponding settings.
    """

    def __init__(
        self,
        llm: CompletionService | None = None,
        lookup: LookupService | None = None,
        *,
        detector: LanguageDetector | None = None,
        resolver: ReferenceResolver | None = None,
        validator: QualityValidator | None = None,
        quality_threshold: int | None = None,
        max_attempts: int | None = None,
        window_size: int | None = None,
        model: str = _DEFINITION_MODEL_ALIAS,
    ) -> None:
        cfg = load_settings()
        self.llm = llm if llm is not None else _get_llm_client()
        self.detector = detector or LanguageDetector()
        self.resolver = resolver or ReferenceResolver(self.llm, lookup)
        self.validator = validator or QualityValidator(self.llm)
        self.quality_threshold = (
            quality_threshold if quality_threshold is not None else cfg.quality_threshold
        )
        self.max_attempts = max_attempts or cfg.max_generation_attempts
        self.window_size = window_size or cfg.batch_window_size
        self.default_language = cfg.default_entry_language
        self.model = model

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def generate(
        self,
        term: str,
        term_type: str = "general",
        language: str | None = None,
        *,
        context: GenerationContext | None = None,
    ) -> DictionaryEntry:
        """Generate a new entry for ``term``.

        Raises
        ------
        ValueError
            If ``term`` is blank.
        AIServiceError
            If the draft or reference-phrase call fails.
        GenerationQualityError
            If no attempt reaches the quality threshold.
        """
        term = term.strip()
        if not term:
            raise ValueError("term must not be empty")
        if term_type not in TERM_TYPES:
            raise ValueError(f"unknown term type: {term_type!r}")
        lang = language or self.default_language
        detection = self.detector.detect(term)
        run = GenerationRun(term=term, term_type=term_type, max_attempts=self.max_attempts)

        definition: Definition | None = None
        references = ReferenceSet()
        draft: DictionaryEntry | None = None
        validation = ValidationResult()

        while True:
            if run.state in (GenerationState.DRAFTING, GenerationState.RETRYING):
                run.attempt += 1
                if run.state is GenerationState.RETRYING:
                    run.move(GenerationState.DRAFTING)
                logger.info("Generating %r: attempt %d/%d", term, run.attempt, run.max_attempts)
                definition = self._draft(term, term_type, run, detection, context)
                if definition is None:
                    run.reject(0, [UNPARSABLE_DRAFT_ISSUE], [UNPARSABLE_DRAFT_SUGGESTION])
                else:
                    run.move(GenerationState.RESOLVING)

            elif run.state is GenerationState.RESOLVING:
                if definition is None:
                    never("resolving references without a parsed draft")
                references = self.resolver.resolve(
                    term, term_type, lang, source_language=detection.language
                )
                draft = self._assemble(
                    term, term_type, lang, definition, references, detection, context
                )
                run.move(GenerationState.VALIDATING)

            elif run.state is GenerationState.VALIDATING:
                if draft is None:
                    never("validating before a draft was assembled")
                validation = self.validator.validate(draft)
                if validation.score >= self.quality_threshold:
                    run.last_score = validation.score
                    run.move(GenerationState.ACCEPTED)
                else:
                    logger.info(
                        "Draft for %r scored %d (< %d)",
                        term,
                        validation.score,
                        self.quality_threshold,
                    )
                    run.reject(validation.score, validation.issues, validation.suggestions)

            elif run.state is GenerationState.ACCEPTED:
                if draft is None:
                    never("accepting without a draft")
                return self._finalize(draft, validation)

            else:
                logger.warning("Giving up on %r after %d attempts", term, run.attempt)
                raise run.error()

    def generate_many(
        self,
        requests: Sequence[GenerationRequest],
        *,
        window_size: int | None = None,
    ) -> list[BatchItemResult]:
        """Generate several entries in windows, isolating per-item failures."""
        results = run_windowed(
            requests,
            lambda req: self.generate(req.term, req.type, req.lang, context=req.context),
            window_size=window_size or self.window_size,
        )
        rows: list[BatchItemResult] = []
        for index, (req, result) in enumerate(zip(requests, results, strict=True)):
            if result.is_ok():
                rows.append(BatchItemResult(index=index, term=req.term, entry=result.unwrap()))
            else:
                rows.append(BatchItemResult(index=index, term=req.term, error=result.unwrap_err()))
        return rows

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #
    def _draft(
        self,
        term: str,
        term_type: str,
        run: GenerationRun,
        detection: LanguageDetectionResult,
        context: GenerationContext | None,
    ) -> Definition | None:
        prompt = build_definition_prompt(
            term,
            term_type,
            context=context,
            source_language=detection.language,
            issues=run.issues,
            suggestions=run.suggestions,
        )
        completion = self.llm.complete(prompt, model=self.model, max_tokens=800, temperature=0.3)
        try:
            return parse_definition(completion.response)
        except ParseError as exc:
            logger.warning("Unusable draft for %r: %s", term, exc)
            return None

    @staticmethod
    def _assemble(
        term: str,
        term_type: str,
        lang: str,
        definition: Definition,
        references: ReferenceSet,
        detection: LanguageDetectionResult,
        context: GenerationContext | None,
    ) -> DictionaryEntry:
        metadata = EntryMetadata(
            source_language=detection.language,
            source_language_confidence=detection.confidence,
            difficulty_level=context.difficulty_level if context else None,
            instruments=list(context.instruments) if context else [],
        )
        return DictionaryEntry(
            id=str(uuid.uuid4()),
            term=term,
            normalized_term=normalize_term(term),
            type=term_type,  # type: ignore[arg-type]
            lang=lang,
            definition=definition,
            references=references,
            metadata=metadata,
            quality_score=QualityScore(),
        )

    @staticmethod
    def _finalize(draft: DictionaryEntry, validation: ValidationResult) -> DictionaryEntry:
        now = utc_now()
        quality = heuristic_quality(draft.definition, draft.references, overall=validation.score)
        return draft.model_copy(
            update={
                "id": str(uuid.uuid4()),
                "version": 1,
                "quality_score": quality.model_copy(update={"last_ai_check": now}),
                "created_at": now,
                "updated_at": now,
            }
        )


__all__ = [
    "EntryGenerator",
    "GenerationRun",
    "GenerationState",
    "build_definition_prompt",
    "definition_fields_from_json",
    "parse_definition",
]
