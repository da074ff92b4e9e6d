"""
In-memory entry repository.

An arena of entries keyed by id, plus a unique index on
``(normalized_term, lang)``. It satisfies the repository port and is what the
CLI and the tests use in place of a relational store.

Concurrency
-----------
All operations take one lock, so concurrent batch seeding cannot create two
entries for the same key: ``upsert`` keeps the stored id when the key already
exists.

Persistence
-----------
Volatile. ``dump``/``load`` round-trip the arena through a JSON file for the
CLI.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path

from musicdict.core.contracts.common import normalize_term
from musicdict.core.contracts.entry import DictionaryEntry
from musicdict.core.errors import DuplicateEntryError


class InMemoryEntryRepository:
    """Dictionary-backed store for :class:`DictionaryEntry` objects."""

    def __init__(self) -> None:
        self._entries: dict[str, DictionaryEntry] = {}
        self._by_key: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def find_by_term(self, term: str, language: str) -> DictionaryEntry | None:
        """Return the entry for ``(term, language)`` or None."""
        with self._lock:
            entry_id = self._by_key.get((normalize_term(term), language))
            return self._entries.get(entry_id) if entry_id else None

    def find_by_id(self, entry_id: str) -> DictionaryEntry | None:
        """Return the entry with ``entry_id`` or None."""
        with self._lock:
            return self._entries.get(entry_id)

    def all(self) -> list[DictionaryEntry]:
        """Return every entry, ordered by normalized term then language."""
        with self._lock:
            return sorted(self._entries.values(), key=lambda e: e.key)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def create(self, entry: DictionaryEntry) -> DictionaryEntry:
        """Insert a new entry.

        Raises
        ------
        DuplicateEntryError
            If the id or the ``(normalized_term, lang)`` key is taken.
        """
        with self._lock:
            if entry.id in self._entries or entry.key in self._by_key:
                raise DuplicateEntryError(
                    f"Entry for {entry.normalized_term!r} ({entry.lang}) already exists"
                )
            self._store(entry)
            return entry

    def update(self, entry: DictionaryEntry) -> DictionaryEntry:
        """Replace an existing entry, matched by id.

        Raises
        ------
        KeyError
            If no entry has this id.
        DuplicateEntryError
            If the update would move the entry onto another entry's key.
        """
        with self._lock:
            current = self._entries.get(entry.id)
            if current is None:
                raise KeyError(entry.id)
            owner = self._by_key.get(entry.key)
            if owner is not None and owner != entry.id:
                raise DuplicateEntryError(
                    f"Entry for {entry.normalized_term!r} ({entry.lang}) already exists"
                )
            del self._by_key[current.key]
            self._store(entry)
            return entry

    def upsert(self, entry: DictionaryEntry) -> DictionaryEntry:
        """Insert ``entry`` or replace the one sharing its key.

        A replaced record keeps its id and ``created_at``; its version becomes
        the larger of ``entry.version`` and the stored version plus one.
        """
        with self._lock:
            existing_id = self._by_key.get(entry.key)
            if existing_id is not None and existing_id != entry.id:
                previous = self._entries[existing_id]
                entry = entry.model_copy(
                    update={
                        "id": existing_id,
                        "created_at": previous.created_at,
                        "version": max(entry.version, previous.version + 1),
                    }
                )
            current = self._entries.get(entry.id)
            if current is not None and current.key != entry.key:
                del self._by_key[current.key]
            self._store(entry)
            return entry

    def _store(self, entry: DictionaryEntry) -> None:
        self._entries[entry.id] = entry
        self._by_key[entry.key] = entry.id

    # ------------------------------------------------------------------ #
    # File round-trip
    # ------------------------------------------------------------------ #
    def dump(self, path: Path) -> None:
        """Write all entries to ``path`` as a JSON array."""
        payload = [e.model_dump(mode="json") for e in self.all()]
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> InMemoryEntryRepository:
        """Build a repository from a file written by :meth:`dump`."""
        repo = cls()
        if path.exists():
            for node in json.loads(path.read_text(encoding="utf-8")):
                repo.upsert(DictionaryEntry.model_validate(node))
        return repo


__all__ = ["InMemoryEntryRepository"]
