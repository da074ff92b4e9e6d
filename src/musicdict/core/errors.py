"""Typed error taxonomy for the dictionary pipeline.

Only :class:`AIServiceError` and :class:`GenerationQualityError` are allowed
to escape the generator, enhancer and validator. The remaining errors are
raised by collaborators and recovered locally:

- :class:`LookupUnavailableError` is turned into a deterministic reference URL
  by the reference resolver.
- :class:`ParseError` is turned into a degraded-but-valid result wherever a
  completion response is parsed.
"""

from __future__ import annotations

from collections.abc import Sequence


class MusicDictError(Exception):
    """Base class for all errors raised by :mod:`musicdict`."""


class AIServiceError(MusicDictError):
    """A completion or embedding call failed.

    Covers transport failures, HTTP errors (quota, auth), missing credentials
    and provider envelopes that do not contain a usable response.
    """

    def __init__(self, detail: str, *, provider: str = "", model: str = "") -> None:
        self.detail = detail
        self.provider = provider
        self.model = model
        prefix = f"[{provider}:{model}] " if provider or model else ""
        super().__init__(f"{prefix}{detail}")


class GenerationQualityError(MusicDictError):
    """No generation attempt within the budget cleared the quality threshold."""

    def __init__(
        self,
        term: str,
        *,
        attempts: int,
        issues: Sequence[str] = (),
        suggestions: Sequence[str] = (),
        last_score: int = 0,
    ) -> None:
        self.term = term
        self.attempts = attempts
        self.issues = list(issues)
        self.suggestions = list(suggestions)
        self.last_score = last_score
        super().__init__(
            f"Failed to generate entry with acceptable quality for {term!r} "
            f"after {attempts} attempt(s); last score {last_score}"
        )


class LookupUnavailableError(MusicDictError):
    """The encyclopedia lookup service could not be reached or answered badly."""


class ParseError(MusicDictError):
    """A completion response did not contain the expected JSON payload."""


class DuplicateEntryError(MusicDictError):
    """An entry with the same normalized term and language already exists."""


__all__ = [
    "AIServiceError",
    "DuplicateEntryError",
    "GenerationQualityError",
    "LookupUnavailableError",
    "MusicDictError",
    "ParseError",
]
