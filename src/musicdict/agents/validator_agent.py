"""
Quality validator: score a candidate entry against the editorial rubric.

The validator issues exactly one completion request describing the entry's
definition and reference completeness, and parses the JSON reply into a
:class:`ValidationResult`. It never raises: an unreachable completion service
or an unusable reply degrades to ``score=0, issues=["Validation failed"]`` so
the generation loop treats it as "needs another attempt".
"""

from __future__ import annotations

import json
from typing import Any

from musicdict.core.contracts.entry import DictionaryEntry
from musicdict.core.contracts.review import ValidationResult
from musicdict.core.errors import ParseError
from musicdict.core.ports import CompletionService
from musicdict.core.settings import get_logger
from musicdict.llm.client import LLMClient
from musicdict.llm.parsing import parse_json_object, parse_score, parse_str_list

logger = get_logger(__name__)

# Logical model alias for rubric scoring.
_QUALITY_MODEL_ALIAS = "quality"


def _get_llm_client() -> LLMClient:
    """Return the default completion client.

    Split into a helper so tests can monkeypatch this function and inject
    a fake client.
    """
    return LLMClient.from_env()


def _entry_summary(entry: DictionaryEntry) -> dict[str, Any]:
    """The part of an entry the reviewer sees: term, definition, references."""
    return {
        "term": entry.term,
        "type": entry.type,
        "language": entry.lang,
        "definition": entry.definition.model_dump(mode="json", exclude_none=True),
        "references": entry.references.model_dump(mode="json", exclude_none=True),
    }


def build_quality_prompt(entry: DictionaryEntry) -> str:
    """Build the review prompt for one entry."""
    entry_json = json.dumps(_entry_summary(entry), indent=2, ensure_ascii=False)
    return f"""You are a music education quality reviewer. Evaluate the following dictionary entry for overall quality.

Entry:
{entry_json}

Evaluate the entry considering:
1. Definition accuracy and clarity
2. Completeness of information
3. Educational value for music students
4. Reference quality and availability
5. Overall usefulness for learning

Provide your evaluation in JSON format:
{{
  "score": <number between 0-100>,
  "issues": ["list any significant problems"],
  "suggestions": ["specific improvements that could be made"]
}}

Be objective and constructive in your assessment. Return only the JSON object."""


def parse_validation(raw: str) -> ValidationResult:
    """Parse a reviewer reply into a :class:`ValidationResult`.

    Raises
    ------
    ParseError
        If the reply has no JSON object or no numeric ``score``.
    """
    payload = parse_json_object(raw)
    if "score" not in payload:
        raise ParseError("Reviewer reply has no 'score' field")
    score = parse_score(payload.get("score"), default=-1)
    if score < 0:
        raise ParseError(f"Reviewer score is not numeric: {payload.get('score')!r}")

    return ValidationResult(
        score=score,
        issues=parse_str_list(payload.get("issues", [])),
        suggestions=parse_str_list(payload.get("suggestions", [])),
    )


class QualityValidator:
    """Rubric scorer backed by one completion call per entry.

    Parameters
    ----------
    llm:
        Completion service; defaults to :func:`_get_llm_client`.
    model:
        Logical model alias or provider model id.
    """

    def __init__(
        self,
        llm: CompletionService | None = None,
        *,
        model: str = _QUALITY_MODEL_ALIAS,
    ) -> None:
        self.llm = llm if llm is not None else _get_llm_client()
        self.model = model

    def validate(self, entry: DictionaryEntry) -> ValidationResult:
        """Score ``entry``; degrades to the failed verdict instead of raising."""
        prompt = build_quality_prompt(entry)
        try:
            completion = self.llm.complete(
                prompt, model=self.model, max_tokens=500, temperature=0.1
            )
            result = parse_validation(completion.response)
        except Exception as exc:
            logger.warning("Validation failed for %r: %s", entry.term, exc)
            return ValidationResult.failed()

        logger.info("Validated %r: score=%d issues=%d", entry.term, result.score, len(result.issues))
        return result


__all__ = ["QualityValidator", "build_quality_prompt", "parse_validation"]
