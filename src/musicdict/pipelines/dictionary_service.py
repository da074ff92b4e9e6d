"""
Dictionary service: the flows that connect the pipeline to a repository.

The generator and enhancer are pure with respect to storage; only this module
writes, and every write goes through the repository's ``(normalized_term,
lang)`` key so concurrent requests for the same term cannot duplicate it.

Flows
-----
- ``lookup_or_generate``: serve a stored entry (bumping its access counters)
  or generate, store and return a new one.
- ``enhance_stored``: load by id, run one enhancement pass, store.
- ``seed``: batch-generate a list of requests and upsert every success.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from musicdict.agents.enhancer_agent import EntryEnhancer
from musicdict.agents.generator_agent import EntryGenerator
from musicdict.core.contracts.common import utc_now
from musicdict.core.contracts.entry import DictionaryEntry, GenerationContext, GenerationRequest
from musicdict.core.contracts.review import BatchItemResult
from musicdict.core.ports import EntryRepository
from musicdict.core.settings import get_logger, load_settings

logger = get_logger(__name__)


class DictionaryService:
    """Lookup, generation, enhancement and seeding over one repository."""

    def __init__(
        self,
        generator: EntryGenerator,
        enhancer: EntryEnhancer,
        repository: EntryRepository,
    ) -> None:
        self.generator = generator
        self.enhancer = enhancer
        self.repository = repository

    def lookup_or_generate(
        self,
        term: str,
        term_type: str = "general",
        language: str | None = None,
        *,
        context: GenerationContext | None = None,
    ) -> DictionaryEntry:
        """Return the stored entry for ``term`` or generate and store one.

        Raises
        ------
        AIServiceError, GenerationQualityError
            Propagated from the generator on a cache miss.
        """
        lang = language or load_settings().default_entry_language
        found = self.repository.find_by_term(term, lang)
        if found is not None:
            metadata = found.metadata.model_copy(
                update={
                    "search_frequency": found.metadata.search_frequency + 1,
                    "last_accessed": utc_now(),
                }
            )
            logger.info("Serving stored entry for %r (%s)", term, lang)
            return self.repository.update(found.model_copy(update={"metadata": metadata}))

        entry = self.generator.generate(term, term_type, lang, context=context)
        return self.repository.upsert(entry)

    def enhance_stored(
        self, entry_id: str, focus_areas: Iterable[str] | None = None
    ) -> DictionaryEntry:
        """Enhance the stored entry ``entry_id`` and save the new version.

        Raises
        ------
        KeyError
            If no entry has this id.
        """
        existing = self.repository.find_by_id(entry_id)
        if existing is None:
            raise KeyError(entry_id)
        enhanced = self.enhancer.enhance(existing, focus_areas)
        return self.repository.update(enhanced)

    def seed(self, requests: Sequence[GenerationRequest]) -> list[BatchItemResult]:
        """Generate ``requests`` in windows and store every success."""
        rows = self.generator.generate_many(requests)
        stored: list[BatchItemResult] = []
        for row in rows:
            if row.entry is not None:
                row = row.model_copy(update={"entry": self.repository.upsert(row.entry)})
            stored.append(row)
        failed = sum(1 for r in stored if not r.ok)
        logger.info("Seeded %d terms (%d failed)", len(stored) - failed, failed)
        return stored


__all__ = ["DictionaryService"]
