"""ValidationResult and BatchItemResult — verdicts returned by the pipeline.

- ValidationResult: the quality reviewer's score with issues/suggestions. The
  failure value (score 0, ``["Validation failed"]``) is a valid instance, not
  an exception.
- BatchItemResult: one row of a batch run; either an entry or an error message.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .common import Score
from .entry import DictionaryEntry

VALIDATION_FAILED_ISSUE = "Validation failed"


class ValidationResult(BaseModel):
    """Rubric score of a candidate entry."""

    score: Score = 0
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    @classmethod
    def failed(cls) -> ValidationResult:
        """The degraded verdict used when the reviewer cannot be reached or parsed."""
        return cls(score=0, issues=[VALIDATION_FAILED_ISSUE], suggestions=[])


class BatchItemResult(BaseModel):
    """Outcome of one item in a batch generation run."""

    index: int
    term: str
    entry: DictionaryEntry | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.entry is not None and self.error is None


__all__ = ["BatchItemResult", "VALIDATION_FAILED_ISSUE", "ValidationResult"]
