"""Tests for the in-memory entry repository."""

from __future__ import annotations

import uuid
from pathlib import Path

import pytest
from fakes import make_entry

from musicdict.core.errors import DuplicateEntryError
from musicdict.core.ports import EntryRepository
from musicdict.storage.memory import InMemoryEntryRepository


def test_repository_satisfies_port() -> None:
    assert isinstance(InMemoryEntryRepository(), EntryRepository)


def test_create_and_find() -> None:
    repo = InMemoryEntryRepository()
    entry = repo.create(make_entry("Da Capo", normalized_term="da capo"))

    assert repo.find_by_id(entry.id) == entry
    assert repo.find_by_term("  DA   capo ", "en") == entry
    assert repo.find_by_term("da capo", "de") is None
    assert len(repo) == 1


def test_create_rejects_duplicate_key() -> None:
    repo = InMemoryEntryRepository()
    repo.create(make_entry("forte"))
    with pytest.raises(DuplicateEntryError):
        repo.create(make_entry("forte"))


def test_update_requires_known_id() -> None:
    repo = InMemoryEntryRepository()
    with pytest.raises(KeyError):
        repo.update(make_entry("forte"))


def test_update_cannot_steal_another_key() -> None:
    repo = InMemoryEntryRepository()
    repo.create(make_entry("forte"))
    piano = repo.create(make_entry("piano"))

    with pytest.raises(DuplicateEntryError):
        repo.update(piano.model_copy(update={"term": "forte", "normalized_term": "forte"}))


def test_upsert_keeps_id_and_bumps_version() -> None:
    repo = InMemoryEntryRepository()
    first = repo.upsert(make_entry("forte"))
    second = repo.upsert(make_entry("forte", id=str(uuid.uuid4())))

    assert second.id == first.id
    assert second.created_at == first.created_at
    assert second.version == 2
    assert len(repo) == 1


def test_upsert_under_a_new_key_releases_the_old_one() -> None:
    repo = InMemoryEntryRepository()
    forte = repo.upsert(make_entry("forte"))

    moved = repo.upsert(make_entry("piano", id=forte.id))

    assert repo.find_by_term("forte", "en") is None
    assert repo.find_by_term("piano", "en") == moved
    assert len(repo) == 1


def test_dump_and_load_roundtrip(tmp_path: Path) -> None:
    repo = InMemoryEntryRepository()
    repo.create(make_entry("piano"))
    repo.create(make_entry("forte"))
    path = tmp_path / "dictionary.json"

    repo.dump(path)
    restored = InMemoryEntryRepository.load(path)

    assert [e.term for e in restored.all()] == ["forte", "piano"]
    assert restored.find_by_term("piano", "en") == repo.find_by_term("piano", "en")


def test_load_missing_file_gives_empty_repository(tmp_path: Path) -> None:
    assert len(InMemoryEntryRepository.load(tmp_path / "absent.json")) == 0
