"""Heuristic quality breakdown computed without a completion call.

The validator's score decides acceptance; this module fills in the
informative sub-scores of :class:`QualityScore` and is the sole scorer used
by the enhancer, which never loops to a threshold.
"""

from __future__ import annotations

from musicdict.core.contracts.common import confidence_level_for
from musicdict.core.contracts.entry import Definition, QualityScore, ReferenceSet

# Base sub-scores credited to AI-written content.
BASE_CLARITY = 70
BASE_ACCURACY = 70

_COMPLETENESS_WEIGHTS = {
    "concise": 30,
    "detailed": 40,
    "etymology": 10,
    "pronunciation": 10,
    "usage_example": 10,
}


def completeness_score(definition: Definition) -> int:
    """Sum the weights of the definition fields that are filled in."""
    total = 0
    for field_name, weight in _COMPLETENESS_WEIGHTS.items():
        value = getattr(definition, field_name)
        if field_name == "pronunciation":
            if value is not None and not value.is_empty():
                total += weight
        elif value:
            total += weight
    return total


def reference_score(references: ReferenceSet) -> int:
    """Twenty points per reference group, capped at 100."""
    return min(100, references.count() * 20)


def heuristic_quality(
    definition: Definition,
    references: ReferenceSet,
    *,
    overall: int | None = None,
    human_verified: bool = False,
) -> QualityScore:
    """Build a :class:`QualityScore` from field completeness and references.

    Parameters
    ----------
    definition, references:
        The content being scored.
    overall:
        Optional externally supplied overall score (the validator's). When
        omitted, the heuristic average is used.
    human_verified:
        Carried over unchanged.
    """
    completeness = completeness_score(definition)
    refs = reference_score(references)
    if overall is None:
        overall = round((BASE_ACCURACY + completeness + BASE_CLARITY + refs) / 4)
    overall = max(0, min(100, int(overall)))

    return QualityScore(
        overall=overall,
        definition_clarity=BASE_CLARITY,
        reference_completeness=refs,
        accuracy_verification=BASE_ACCURACY,
        human_verified=human_verified,
        confidence_level=confidence_level_for(overall),
    )


__all__ = ["completeness_score", "heuristic_quality", "reference_score"]
