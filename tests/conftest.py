"""Shared fixtures for the musicdict test-suite.

Test doubles live in ``fakes.py`` next to this file; the fixtures below hand
out fresh instances and keep the cached settings isolated per test.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fakes import FakeLookup, RoutedLLM

from musicdict.core.settings import load_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    """Drop cached settings so env tweaks in one test never leak into another."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def llm() -> RoutedLLM:
    """Completion fake answering every alias with a passing piano entry."""
    return RoutedLLM()


@pytest.fixture
def lookup() -> FakeLookup:
    """Lookup fake returning the single 'Piano' article."""
    return FakeLookup()
