"""
Encyclopedia and video reference helpers.

This module contains two kinds of code:

- Pure string helpers that clean model-suggested search phrases and build
  deterministic URLs (encyclopedia article, OpenSearch query, video search).
  These never touch the network and back the resolver's fallback path.
- :class:`WikipediaLookup`, a small synchronous adapter over the MediaWiki
  OpenSearch API that satisfies the lookup port. Like the LLM client it uses
  ``urllib.request`` and exposes a ``_get`` seam for tests.
"""

from __future__ import annotations

import http.client
import json
import re
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from musicdict.core.errors import LookupUnavailableError
from musicdict.core.ports import LookupCandidate
from musicdict.core.settings import get_logger, load_settings

logger = get_logger(__name__)

# --------------------------------------------------------------------------- #
# Vocabulary
# --------------------------------------------------------------------------- #

COMPOSER_NAMES: tuple[str, ...] = (
    "Mozart",
    "Beethoven",
    "Bach",
    "Wagner",
    "Verdi",
    "Puccini",
    "Handel",
    "Haydn",
    "Brahms",
    "Schubert",
    "Chopin",
    "Liszt",
    "Tchaikovsky",
    "Vivaldi",
    "Bizet",
)

_COMPOSER_ALT = "|".join(COMPOSER_NAMES)
_TRAILING_COMPOSER_RE = re.compile(rf"\s+(?:by\s+)?(?:{_COMPOSER_ALT})(?:'s)?$", re.IGNORECASE)
_LEADING_COMPOSER_RE = re.compile(rf"^(?:{_COMPOSER_ALT})(?:'s)?\s+", re.IGNORECASE)
_FILLER_RE = re.compile(
    r"\b(?:on\s+wikipedia|wikipedia|search\s+for|search|article|page)\b", re.IGNORECASE
)
_WS_RE = re.compile(r"\s+")

#: Known article titles, keyed by lower-cased phrase.
KNOWN_TITLES: dict[str, str] = {
    "the magic flute": "The Magic Flute",
    "la traviata": "La traviata",
    "carmen": "Carmen",
    "don giovanni": "Don Giovanni",
    "the marriage of figaro": "The Marriage of Figaro",
    "tosca": "Tosca",
    "la bohème": "La bohème",
    "la boheme": "La bohème",
    "madama butterfly": "Madama Butterfly",
    "aida": "Aida",
    "rigoletto": "Rigoletto",
    "tempo": "Tempo",
    "dynamics": "Dynamics (music)",
    "harmony": "Harmony",
    "melody": "Melody",
    "rhythm": "Rhythm",
    "scale": "Scale (music)",
    "key": "Key (music)",
    "chord": "Chord (music)",
}

#: Phrases whose bare article is already the musical one.
UNAMBIGUOUS_TERMS: frozenset[str] = frozenset(
    {
        "allegro", "adagio", "andante", "presto", "largo", "fortissimo",
        "pianissimo", "mezzoforte", "mezzopiano", "crescendo", "decrescendo",
        "diminuendo", "staccato", "legato", "pizzicato", "arco", "cadenza",
        "coda", "dal segno", "da capo",
        "mozart", "beethoven", "chopin", "liszt", "brahms", "tchaikovsky",
        "vivaldi", "handel", "haydn",
    }
)  # fmt: skip

#: Everyday words whose bare article is not about music.
AMBIGUOUS_TERMS: frozenset[str] = frozenset(
    {"scale", "key", "chord", "dynamics", "harmony", "pitch", "tone", "mode", "movement", "suite"}
)

_DISAMBIGUATORS: dict[str, str] = {
    "opera": "(opera)",
    "instrument": "(instrument)",
    "composer": "(composer)",
}
DEFAULT_DISAMBIGUATOR = "(music)"

# Generic tails models like to append to video searches.
_VIDEO_SUFFIXES: tuple[str, ...] = (
    "music lessons",
    "music lesson",
    "educational videos",
    "educational video",
    "for beginners",
    "tutorials",
    "tutorial",
    "lessons",
    "lesson",
    "explained",
    "definition",
    "youtube",
    "video",
)

_VIDEO_CONTEXT: dict[str, str] = {
    "composer": "composer biography",
    "opera": "opera performance",
    "composition": "performance",
    "instrument": "instrument demonstration",
    "technique": "technique demonstration",
    "genre": "music genre history",
    "tempo": "tempo marking music theory",
    "dynamics": "dynamics music theory",
    "theory": "music theory",
}
DEFAULT_VIDEO_CONTEXT = "music term"

YOUTUBE_SEARCH_URL = "https://www.youtube.com/results?search_query="


# --------------------------------------------------------------------------- #
# Phrase cleaning
# --------------------------------------------------------------------------- #


def _collapse(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _title_case(text: str) -> str:
    # Only the first letter of each word changes ("La traviata" stays readable).
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" ") if word)


def mentions_composer(text: str) -> bool:
    """Return True if ``text`` contains any known composer surname."""
    lowered = text.lower()
    return any(re.search(rf"\b{name.lower()}\b", lowered) for name in COMPOSER_NAMES)


def strip_composer_names(phrase: str) -> str:
    """Remove a leading or trailing composer surname from ``phrase``."""
    stripped = _TRAILING_COMPOSER_RE.sub("", phrase)
    stripped = _LEADING_COMPOSER_RE.sub("", stripped)
    return _collapse(stripped) or phrase


def clean_wikipedia_term(phrase: str) -> str:
    """Drop search filler words, collapse whitespace and title-case words."""
    return _title_case(_collapse(_FILLER_RE.sub(" ", phrase)))


def clean_search_phrase(phrase: str, term: str, term_type: str) -> str:
    """Clean a model-suggested encyclopedia search phrase.

    Composer surnames are removed unless the entry is about a composer or the
    raw term itself names one, so a work is never looked up as
    "<work> <composer>". An empty result falls back to the term.
    """
    cleaned = clean_wikipedia_term(phrase)
    if term_type != "composer" and not mentions_composer(term):
        cleaned = strip_composer_names(cleaned)
    return cleaned or clean_wikipedia_term(term) or term.strip()


def clean_video_phrase(phrase: str, term: str, term_type: str) -> str:
    """Clean a model-suggested video search phrase.

    Generic tails ("music lessons", "tutorial", ...) are removed. Type context
    such as "composer biography" is appended only when what remains merely
    restates the term.
    """
    cleaned = _collapse(phrase)
    changed = True
    while changed and cleaned:
        changed = False
        lowered = cleaned.lower()
        for suffix in _VIDEO_SUFFIXES:
            if lowered == suffix or lowered.endswith(" " + suffix):
                cleaned = _collapse(cleaned[: len(cleaned) - len(suffix)])
                changed = True
                break

    if term_type != "composer" and not mentions_composer(term):
        cleaned = strip_composer_names(cleaned) if cleaned else cleaned

    if not cleaned or cleaned.lower() == _collapse(term).lower():
        context = _VIDEO_CONTEXT.get(term_type, DEFAULT_VIDEO_CONTEXT)
        cleaned = f"{_collapse(term)} {context}"
    return cleaned


# --------------------------------------------------------------------------- #
# Deterministic URL construction
# --------------------------------------------------------------------------- #


def needs_disambiguation(title: str, term_type: str) -> bool:
    """Return True if the bare ``title`` likely lands on a non-musical article."""
    key = title.lower()
    if key in UNAMBIGUOUS_TERMS:
        return False
    if key in KNOWN_TITLES:
        return "(" in KNOWN_TITLES[key]
    return key in AMBIGUOUS_TERMS


def wikipedia_title(phrase: str, term_type: str) -> str:
    """Resolve the article title for a cleaned phrase.

    Known titles win. Otherwise the phrase is cleaned, composer names are
    stripped for works, and a type-specific disambiguator is appended to
    ambiguous everyday words.
    """
    known = KNOWN_TITLES.get(_collapse(phrase).lower())
    if known is not None:
        return known

    title = clean_wikipedia_term(phrase)
    if term_type in ("opera", "composition"):
        title = strip_composer_names(title)
        known = KNOWN_TITLES.get(title.lower())
        if known is not None:
            return known

    if "(" not in title and needs_disambiguation(title, term_type):
        suffix = _DISAMBIGUATORS.get(term_type, DEFAULT_DISAMBIGUATOR)
        title = f"{title} {suffix}"
    return title


def article_url(title: str, language: str = "en") -> str:
    """Build ``https://{language}.wikipedia.org/wiki/{Title_With_Underscores}``."""
    encoded = urllib.parse.quote(title.replace(" ", "_"), safe="()!*'~")
    return f"https://{language}.wikipedia.org/wiki/{encoded}"


def build_wikipedia_url(phrase: str, term_type: str, language: str = "en") -> str:
    """Deterministic article URL for ``phrase``, used when lookup is unavailable."""
    return article_url(wikipedia_title(phrase, term_type), language)


def build_search_url(term: str, limit: int = 5, language: str = "en") -> str:
    """Build the MediaWiki OpenSearch URL for ``term``."""
    params = urllib.parse.urlencode(
        {
            "action": "opensearch",
            "search": term,
            "limit": str(limit),
            "namespace": "0",
            "format": "json",
            "origin": "*",
        }
    )
    return f"https://{language}.wikipedia.org/w/api.php?{params}"


def build_video_search_url(phrase: str) -> str:
    """Build a YouTube search-results URL for ``phrase``."""
    return YOUTUBE_SEARCH_URL + urllib.parse.quote(phrase, safe="")


# --------------------------------------------------------------------------- #
# Lookup adapter
# --------------------------------------------------------------------------- #


def parse_opensearch(payload: Any) -> list[LookupCandidate]:
    """Convert an OpenSearch ``[query, titles, descriptions, urls]`` payload.

    Raises
    ------
    LookupUnavailableError
        If the payload does not have the OpenSearch shape.
    """
    if not isinstance(payload, list) or len(payload) < 4:
        raise LookupUnavailableError("Unexpected OpenSearch payload shape")

    titles, descriptions, urls = payload[1], payload[2], payload[3]
    if not isinstance(titles, list) or not isinstance(urls, list):
        raise LookupUnavailableError("OpenSearch payload is missing titles or urls")
    if not isinstance(descriptions, list):
        descriptions = []

    candidates: list[LookupCandidate] = []
    for i, (title, url) in enumerate(zip(titles, urls, strict=False)):
        if not title or not url:
            continue
        description = descriptions[i] if i < len(descriptions) else ""
        candidates.append(
            LookupCandidate(title=str(title), url=str(url), description=str(description or ""))
        )
    return candidates


@dataclass(slots=True)
class WikipediaLookup:
    """Encyclopedia lookup backed by the MediaWiki OpenSearch API.

    Parameters
    ----------
    timeout_seconds:
        Network timeout per request.
    user_agent:
        Sent with every request, as the Wikimedia API policy requires.
    """

    timeout_seconds: float = 5.0
    user_agent: str = "musicdict/0.1 (dictionary reference resolver)"

    @classmethod
    def from_env(cls) -> WikipediaLookup:
        return cls(timeout_seconds=load_settings().lookup_timeout_seconds)

    def suggest(self, term: str, limit: int, language: str) -> list[LookupCandidate]:
        """Return up to ``limit`` candidate pages for ``term``.

        Raises
        ------
        LookupUnavailableError
            On network failure or an unexpected response body.
        """
        url = build_search_url(term, limit, language)
        payload = self._get(url=url, headers={"User-Agent": self.user_agent})
        candidates = parse_opensearch(payload)[:limit]
        logger.debug("OpenSearch %r (%s) -> %d candidates", term, language, len(candidates))
        return candidates

    def _get(self, *, url: str, headers: Mapping[str, str]) -> Any:
        """Perform an HTTP GET and decode the JSON body (test seam)."""
        request = urllib.request.Request(url=url, headers=dict(headers), method="GET")
        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            raise LookupUnavailableError(f"Lookup HTTP error {exc.code}: {exc.reason}") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise LookupUnavailableError(f"Lookup network error: {exc}") from exc

        try:
            return json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise LookupUnavailableError("Lookup response is not JSON") from exc


__all__ = [
    "COMPOSER_NAMES",
    "WikipediaLookup",
    "article_url",
    "build_search_url",
    "build_video_search_url",
    "build_wikipedia_url",
    "clean_search_phrase",
    "clean_video_phrase",
    "clean_wikipedia_term",
    "mentions_composer",
    "needs_disambiguation",
    "parse_opensearch",
    "strip_composer_names",
    "wikipedia_title",
]
