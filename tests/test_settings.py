"""Typed smoke tests for the settings loader.

These tests verify four guarantees:
1) Importing the module-level `settings` yields a `Settings` instance.
2) Environment variables override defaults after clearing the loader cache.
3) Pipeline knobs carry their documented defaults and are range-checked.
4) `get_logger()` respects the configured LOG_LEVEL when constructing loggers.
"""

from __future__ import annotations

import logging
from typing import Any

import pytest
from pydantic import ValidationError

from musicdict.core.settings import (
    Settings,
    get_logger,
    load_settings,
    settings,
)


def test_settings_instance_type() -> None:
    """`settings` should be an instance of the typed `Settings` model."""
    assert isinstance(settings, Settings)


def test_env_overrides_with_cache_clear(monkeypatch: Any) -> None:
    """Changing env vars should take effect after `load_settings.cache_clear()`."""
    monkeypatch.setenv("MUSICDICT_ENV", "test")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("QUALITY_THRESHOLD", "80")
    monkeypatch.setenv("BATCH_WINDOW_SIZE", "2")

    load_settings.cache_clear()
    s = load_settings()

    assert s.environment == "test"
    assert s.is_test and not s.is_prod
    assert s.log_level == "DEBUG"
    assert s.quality_threshold == 80
    assert s.batch_window_size == 2


def test_pipeline_defaults(monkeypatch: Any) -> None:
    """Without overrides the loop accepts at 70 within three attempts."""
    for name in (
        "QUALITY_THRESHOLD",
        "MAX_GENERATION_ATTEMPTS",
        "BATCH_WINDOW_SIZE",
        "DEFAULT_ENTRY_LANGUAGE",
    ):
        monkeypatch.delenv(name, raising=False)

    s = Settings(_env_file=None)

    assert s.quality_threshold == 70
    assert s.max_generation_attempts == 3
    assert s.batch_window_size == 5
    assert s.default_entry_language == "en"


def test_threshold_out_of_range_is_rejected(monkeypatch: Any) -> None:
    monkeypatch.setenv("QUALITY_THRESHOLD", "140")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_get_logger_respects_level(monkeypatch: Any) -> None:
    """`get_logger()` should apply the numeric level derived from `LOG_LEVEL`."""
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    load_settings.cache_clear()
    _ = load_settings()

    logger_name = "musicdict.tests.settings"
    logger = get_logger(logger_name)

    assert logger.level == logging.ERROR
    assert logger.handlers, "Expected at least one StreamHandler to be attached."
