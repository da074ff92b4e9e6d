"""Tests for the reference phrase cleaners, URL builders and lookup adapter."""

from __future__ import annotations

import http.client
import urllib.request
from collections.abc import Mapping
from typing import Any

import pytest

from musicdict.core.errors import LookupUnavailableError
from musicdict.references.wikipedia import (
    WikipediaLookup,
    build_search_url,
    build_video_search_url,
    build_wikipedia_url,
    clean_search_phrase,
    clean_video_phrase,
    parse_opensearch,
    wikipedia_title,
)


def test_composer_is_stripped_from_work_titles() -> None:
    assert clean_search_phrase("The Magic Flute Mozart", "The Magic Flute", "opera") == (
        "The Magic Flute"
    )
    assert clean_search_phrase("Mozart's Don Giovanni", "Don Giovanni", "opera") == "Don Giovanni"


def test_composer_is_kept_for_composer_entries() -> None:
    assert clean_search_phrase("Wolfgang Amadeus Mozart", "Mozart", "composer") == (
        "Wolfgang Amadeus Mozart"
    )


def test_search_filler_is_removed() -> None:
    assert clean_search_phrase("cadenza wikipedia article", "cadenza", "theory") == "Cadenza"


def test_video_phrase_drops_generic_tails() -> None:
    assert clean_video_phrase("violin vibrato tutorial", "vibrato", "technique") == (
        "violin vibrato"
    )


def test_video_phrase_adds_type_context_when_only_the_term_remains() -> None:
    assert clean_video_phrase("Mozart music lessons", "Mozart", "composer") == (
        "Mozart composer biography"
    )
    assert clean_video_phrase("", "glissando", "general") == "glissando music term"


def test_known_and_disambiguated_titles() -> None:
    assert wikipedia_title("the magic flute", "opera") == "The Magic Flute"
    assert wikipedia_title("Scale", "theory") == "Scale (music)"
    assert wikipedia_title("pitch", "theory") == "Pitch (music)"
    assert wikipedia_title("allegro", "tempo") == "Allegro"


def test_build_wikipedia_url_encodes_title() -> None:
    assert build_wikipedia_url("Carmen", "opera") == "https://en.wikipedia.org/wiki/Carmen"
    assert build_wikipedia_url("scale", "theory", "de") == (
        "https://de.wikipedia.org/wiki/Scale_(music)"
    )
    assert build_wikipedia_url("Für Elise", "composition") == (
        "https://en.wikipedia.org/wiki/F%C3%BCr_Elise"
    )


def test_search_and_video_urls() -> None:
    url = build_search_url("La traviata", 5, "it")
    assert url.startswith("https://it.wikipedia.org/w/api.php?")
    assert "action=opensearch" in url and "search=La+traviata" in url and "limit=5" in url

    assert build_video_search_url("Tosca opera performance") == (
        "https://www.youtube.com/results?search_query=Tosca%20opera%20performance"
    )


def test_parse_opensearch_pairs_titles_with_urls() -> None:
    payload = [
        "tosca",
        ["Tosca", "Tosca (1956 film)"],
        ["Opera by Puccini", ""],
        ["https://en.wikipedia.org/wiki/Tosca", "https://en.wikipedia.org/wiki/Tosca_(1956_film)"],
    ]
    candidates = parse_opensearch(payload)
    assert [c.title for c in candidates] == ["Tosca", "Tosca (1956 film)"]
    assert candidates[0].description == "Opera by Puccini"

    with pytest.raises(LookupUnavailableError):
        parse_opensearch({"error": "bad"})


def test_lookup_suggest_uses_get_seam(monkeypatch: Any) -> None:
    captured: dict[str, Any] = {}

    def fake_get(self: WikipediaLookup, *, url: str, headers: Mapping[str, str]) -> Any:
        captured["url"] = url
        captured["headers"] = dict(headers)
        return [
            "harp",
            ["Harp", "Harp (disambiguation)"],
            ["String instrument", ""],
            ["https://en.wikipedia.org/wiki/Harp", "https://en.wikipedia.org/wiki/Harp_(d)"],
        ]

    monkeypatch.setattr(WikipediaLookup, "_get", fake_get)

    candidates = WikipediaLookup().suggest("Harp", 1, "en")

    assert [c.title for c in candidates] == ["Harp"]
    assert "search=Harp" in captured["url"]
    assert captured["headers"]["User-Agent"].startswith("musicdict/")


def test_lookup_errors_surface_as_lookup_unavailable(monkeypatch: Any) -> None:
    def fake_get(self: WikipediaLookup, **kwargs: Any) -> Any:
        raise LookupUnavailableError("Lookup network error: timed out")

    monkeypatch.setattr(WikipediaLookup, "_get", fake_get)

    with pytest.raises(LookupUnavailableError):
        WikipediaLookup().suggest("Harp", 5, "en")


@pytest.mark.parametrize(
    "error",
    [
        http.client.RemoteDisconnected("Remote end closed connection without response"),
        ConnectionResetError(104, "Connection reset by peer"),
        http.client.IncompleteRead(b"[", 40),
    ],
)
def test_dropped_connection_becomes_lookup_unavailable(
    monkeypatch: Any, error: Exception
) -> None:
    def fake_urlopen(*args: Any, **kwargs: Any) -> Any:
        raise error

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(LookupUnavailableError):
        WikipediaLookup().suggest("Piano", 5, "en")
