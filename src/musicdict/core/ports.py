"""Collaborator interfaces consumed by the pipeline.

Each external dependency is described by a narrow :class:`typing.Protocol`
so that real adapters (:class:`musicdict.llm.client.LLMClient`,
:class:`musicdict.references.wikipedia.WikipediaLookup`,
:class:`musicdict.storage.memory.InMemoryEntryRepository`) and test fakes are
interchangeable without inheritance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from musicdict.core.contracts.entry import DictionaryEntry


@dataclass(frozen=True, slots=True)
class Completion:
    """A single text completion.

    Parameters
    ----------
    response:
        Raw text produced by the model. Callers parse JSON out of it
        themselves and must treat malformed JSON as a parse failure.
    latency_ms:
        Wall-clock time of the call in milliseconds.
    model:
        Concrete provider model id that served the request.
    """

    response: str
    latency_ms: int = 0
    model: str = ""


@dataclass(frozen=True, slots=True)
class LookupCandidate:
    """One candidate page returned by the encyclopedia lookup."""

    title: str
    url: str
    description: str = ""


@runtime_checkable
class CompletionService(Protocol):
    """Text-completion provider.

    Implementations raise :class:`musicdict.core.errors.AIServiceError` on
    transport or availability failure.
    """

    def complete(
        self,
        prompt: str,
        *,
        model: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
        stream: bool = False,
    ) -> Completion: ...


@runtime_checkable
class EmbeddingService(Protocol):
    """Produces fixed-dimensionality vectors for search and ranking."""

    def embed(self, text: str) -> list[float]: ...


@runtime_checkable
class LookupService(Protocol):
    """Encyclopedia search. Advisory: may raise ``LookupUnavailableError``."""

    def suggest(self, term: str, limit: int, language: str) -> list[LookupCandidate]: ...


@runtime_checkable
class EntryRepository(Protocol):
    """Persistent store keyed uniquely by ``(normalized_term, lang)``."""

    def find_by_term(self, term: str, language: str) -> DictionaryEntry | None: ...

    def find_by_id(self, entry_id: str) -> DictionaryEntry | None: ...

    def create(self, entry: DictionaryEntry) -> DictionaryEntry: ...

    def update(self, entry: DictionaryEntry) -> DictionaryEntry: ...

    def upsert(self, entry: DictionaryEntry) -> DictionaryEntry: ...


__all__ = [
    "Completion",
    "CompletionService",
    "EmbeddingService",
    "EntryRepository",
    "LookupCandidate",
    "LookupService",
]
