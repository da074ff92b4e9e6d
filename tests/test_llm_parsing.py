"""Tests for the tolerant JSON extraction helpers."""

from __future__ import annotations

import pytest

from musicdict.core.errors import ParseError
from musicdict.llm.parsing import (
    extract_json_block,
    parse_json_object,
    parse_json_response,
    parse_ordinal,
    parse_score,
    parse_str_list,
)


def test_fenced_json_is_unwrapped() -> None:
    raw = 'Here you go:\n```json\n{"score": 90}\n```\nThanks!'
    assert parse_json_object(raw) == {"score": 90}


def test_prose_around_object_is_ignored() -> None:
    raw = 'Sure. {"concise": "Fast", "detailed": "Quick {tempo}"} Hope it helps.'
    assert parse_json_object(raw)["detailed"] == "Quick {tempo}"


def test_bracketed_prose_before_the_object_is_skipped() -> None:
    raw = 'Review [draft 1]:\n{"score": 88, "issues": [], "suggestions": []}'
    assert parse_json_object(raw) == {"score": 88, "issues": [], "suggestions": []}


def test_first_decodable_block_wins() -> None:
    text = 'Note {not json} then [1, 2] and {"a": 1}'
    assert extract_json_block(text) == "[1, 2]"


def test_braces_inside_strings_do_not_close_the_block() -> None:
    text = '{"a": "}", "b": "\\"]"} trailing'
    assert extract_json_block(text) == '{"a": "}", "b": "\\"]"}'


@pytest.mark.parametrize("raw", ["", "   ", "no json here", '{"a": 1', "{'a': 1}"])
def test_unusable_replies_raise_parse_error(raw: str) -> None:
    with pytest.raises(ParseError):
        parse_json_response(raw)


def test_parse_json_object_rejects_arrays() -> None:
    with pytest.raises(ParseError):
        parse_json_object("[1, 2]")


def test_parse_score_coerces_and_clamps() -> None:
    assert parse_score("75") == 75
    assert parse_score(82.6) == 83
    assert parse_score(140) == 100
    assert parse_score(-3) == 0
    assert parse_score("n/a", default=-1) == -1
    assert parse_score(float("inf"), default=-1) == -1


def test_parse_str_list_drops_blanks_and_non_lists() -> None:
    assert parse_str_list([" a ", "", 3]) == ["a", "3"]
    assert parse_str_list("not a list") == []


def test_parse_ordinal() -> None:
    assert parse_ordinal("2", 3) == 1
    assert parse_ordinal("Article 3 is the main one", 3) == 2
    assert parse_ordinal("7", 3) == 0
    assert parse_ordinal("none", 3) == 0
    assert parse_ordinal("1", 0) == 0
