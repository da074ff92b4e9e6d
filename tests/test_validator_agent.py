"""Tests for the LLM-backed quality validator."""

from __future__ import annotations

from typing import Any

import pytest
from fakes import RoutedLLM, make_entry, review

from musicdict.agents import validator_agent
from musicdict.agents.validator_agent import QualityValidator, parse_validation
from musicdict.core.errors import AIServiceError, ParseError


def test_validate_parses_score_issues_and_suggestions(llm: RoutedLLM) -> None:
    llm.script("quality", review(72, ["Detailed text is short"], ["Add a usage example"]))

    result = QualityValidator(llm).validate(make_entry("forte"))

    assert result.score == 72
    assert result.issues == ["Detailed text is short"]
    assert result.suggestions == ["Add a usage example"]


def test_validate_reads_review_after_bracketed_prose(llm: RoutedLLM) -> None:
    llm.script("quality", "Review [draft 1]:\n" + review(88))

    result = QualityValidator(llm).validate(make_entry("forte"))

    assert result.score == 88
    assert result.issues == []


def test_validate_issues_exactly_one_call(llm: RoutedLLM) -> None:
    """One completion request per entry, on the 'quality' alias."""
    QualityValidator(llm).validate(make_entry("forte"))

    assert llm.models() == ["quality"]
    assert llm.calls[0]["max_tokens"] == 500
    prompt = llm.calls[0]["prompt"]
    assert '"term": "forte"' in prompt
    assert "Loud." in prompt


@pytest.mark.parametrize(
    "reply",
    [
        AIServiceError("quota exceeded", provider="cloudflare"),
        "I think it's pretty good!",
        '{"issues": ["no score given"]}',
        '{"score": "excellent"}',
    ],
)
def test_validate_degrades_instead_of_raising(llm: RoutedLLM, reply: Any) -> None:
    llm.script("quality", reply)

    result = QualityValidator(llm).validate(make_entry("forte"))

    assert result.score == 0
    assert result.issues == ["Validation failed"]
    assert result.suggestions == []


def test_parse_validation_clamps_and_requires_score() -> None:
    assert parse_validation('```json\n{"score": "130"}\n```').score == 100
    with pytest.raises(ParseError):
        parse_validation('{"issues": []}')


def test_default_client_comes_from_factory(monkeypatch: Any) -> None:
    """Without an explicit client the module-level factory is used."""
    fake = RoutedLLM()
    monkeypatch.setattr(validator_agent, "_get_llm_client", lambda: fake)

    QualityValidator().validate(make_entry("forte"))

    assert fake.models() == ["quality"]
