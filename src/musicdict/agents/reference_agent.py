"""
Reference resolver: find the canonical encyclopedia page and a video search.

Algorithm
---------
1. Ask the completion service for an encyclopedia search phrase and a video
   search phrase tailored to the term's type. Malformed replies degrade to
   the raw term. The phrases are cleaned: filler words and, for anything but
   composers, composer surnames are removed; generic video tails such as
   "music lessons" are dropped, and type context such as
   "composer biography" is appended only when the phrase merely restates
   the term.
2. Query the lookup service for up to ``result_limit`` candidates in the
   entry language.
3. One candidate is used directly. Several candidates trigger one selection
   call whose reply is parsed as a 1-based ordinal; unparsable or
   out-of-range replies, and failed selection calls, pick candidate 1.
4. If the lookup is unavailable or returns nothing, the article URL is built
   deterministically from the cleaned phrase.

Completion-service failures in step 1 propagate as ``AIServiceError``;
lookup failures never do.
"""

from __future__ import annotations

from collections.abc import Sequence

from musicdict.core.contracts.entry import (
    EducationalVideo,
    MediaReferences,
    ReferenceSet,
    WikipediaReference,
    YoutubeReferences,
)
from musicdict.core.errors import AIServiceError, LookupUnavailableError, ParseError
from musicdict.core.ports import CompletionService, LookupCandidate, LookupService
from musicdict.core.settings import get_logger, load_settings
from musicdict.llm.client import LLMClient
from musicdict.llm.parsing import parse_json_object, parse_optional_str, parse_ordinal
from musicdict.references.wikipedia import (
    WikipediaLookup,
    build_video_search_url,
    build_wikipedia_url,
    clean_search_phrase,
    clean_video_phrase,
    wikipedia_title,
)

logger = get_logger(__name__)

_REFERENCE_MODEL_ALIAS = "reference"
_SELECTION_MODEL_ALIAS = "selection"

FALLBACK_EXTRACT = "Search Wikipedia for more information"


def _get_llm_client() -> LLMClient:
    """Return the default completion client (monkeypatched in tests)."""
    return LLMClient.from_env()


def _get_lookup() -> WikipediaLookup:
    """Return the default lookup service (monkeypatched in tests)."""
    return WikipediaLookup.from_env()


def build_phrase_prompt(term: str, term_type: str, source_language: str | None = None) -> str:
    """Prompt asking for encyclopedia and video search phrases."""
    origin = ""
    if source_language:
        origin = f"\nThe term comes from the language with code '{source_language}'."
    return f"""Help find authoritative references for the music term "{term}" (type: {term_type}).{origin}

Suggest search queries in JSON format:
{{
  "wikipedia_search": "best search query for Wikipedia",
  "youtube_search": "search query for educational videos"
}}

Rules:
- The Wikipedia query should be the title of the article about the term itself.
- Do not add a composer's name to the title of an opera or composition.
- Focus on educational and authoritative sources.
- Return only the JSON object."""


def build_selection_prompt(
    term: str, term_type: str, candidates: Sequence[LookupCandidate]
) -> str:
    """Prompt asking the model to pick the canonical article by ordinal."""
    lines = []
    for i, cand in enumerate(candidates, start=1):
        desc = f" - {cand.description}" if cand.description else ""
        lines.append(f"{i}. {cand.title}{desc}")
    listing = "\n".join(lines)
    return f"""Several encyclopedia articles match the music term "{term}" (type: {term_type}).

{listing}

Which article is the primary, canonical article about this term? Prefer the
main article over disambiguated variants (recordings, films, adaptations).
Answer with the number of the article only."""


class ReferenceResolver:
    """Builds a :class:`ReferenceSet` for a term.

    Parameters
    ----------
    llm:
        Completion service used for phrase suggestion and selection.
    lookup:
        Encyclopedia lookup service; advisory.
    result_limit:
        Maximum candidates requested from the lookup service.
    """

    def __init__(
        self,
        llm: CompletionService | None = None,
        lookup: LookupService | None = None,
        *,
        result_limit: int | None = None,
    ) -> None:
        self.llm = llm if llm is not None else _get_llm_client()
        self.lookup = lookup if lookup is not None else _get_lookup()
        self.result_limit = result_limit or load_settings().lookup_result_limit

    def resolve(
        self,
        term: str,
        term_type: str,
        language: str,
        *,
        source_language: str | None = None,
    ) -> ReferenceSet:
        """Resolve encyclopedia and video references for ``term``.

        Parameters
        ----------
        term, term_type:
            The entry's term and declared type.
        language:
            Language edition used for the lookup and the fallback URL.
        source_language:
            Detected language of the term, passed to the phrase prompt.

        Raises
        ------
        AIServiceError
            If the phrase-suggestion call fails.
        """
        wiki_phrase, video_phrase = self.suggest_phrases(term, term_type, source_language)
        cleaned = clean_search_phrase(wiki_phrase, term, term_type)
        video = clean_video_phrase(video_phrase, term, term_type)

        wikipedia = self._resolve_wikipedia(term, term_type, cleaned, language)
        media = MediaReferences(
            youtube=YoutubeReferences(
                educational_videos=[
                    EducationalVideo(
                        title=f"Search results for {video}",
                        url=build_video_search_url(video),
                    )
                ]
            )
        )
        return ReferenceSet(wikipedia=wikipedia, media=media)

    def suggest_phrases(
        self, term: str, term_type: str, source_language: str | None = None
    ) -> tuple[str, str]:
        """Return ``(wikipedia_phrase, video_phrase)``; both default to ``term``."""
        completion = self.llm.complete(
            build_phrase_prompt(term, term_type, source_language),
            model=_REFERENCE_MODEL_ALIAS,
            max_tokens=200,
            temperature=0.1,
        )
        try:
            payload = parse_json_object(completion.response)
        except ParseError as exc:
            logger.warning("Reference phrases for %r not parseable: %s", term, exc)
            return term, term

        wiki = parse_optional_str(payload.get("wikipedia_search")) or term
        video = parse_optional_str(payload.get("youtube_search")) or term
        return wiki, video

    def select_candidate(
        self, term: str, term_type: str, candidates: Sequence[LookupCandidate]
    ) -> LookupCandidate:
        """Pick one candidate; a single candidate needs no completion call."""
        if len(candidates) == 1:
            return candidates[0]
        try:
            completion = self.llm.complete(
                build_selection_prompt(term, term_type, candidates),
                model=_SELECTION_MODEL_ALIAS,
                max_tokens=10,
                temperature=0.0,
            )
        except AIServiceError as exc:
            logger.warning("Candidate selection for %r failed, using first: %s", term, exc)
            return candidates[0]
        return candidates[parse_ordinal(completion.response, len(candidates))]

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _resolve_wikipedia(
        self, term: str, term_type: str, cleaned: str, language: str
    ) -> WikipediaReference:
        try:
            candidates = self.lookup.suggest(cleaned, self.result_limit, language)
        except LookupUnavailableError as exc:
            logger.warning("Lookup unavailable for %r, building URL: %s", cleaned, exc)
            candidates = []

        if not candidates:
            return WikipediaReference(
                url=build_wikipedia_url(cleaned, term_type, language),
                title=wikipedia_title(cleaned, term_type),
                extract=FALLBACK_EXTRACT,
            )

        chosen = self.select_candidate(term, term_type, candidates)
        return WikipediaReference(
            url=chosen.url,
            title=chosen.title,
            extract=chosen.description or FALLBACK_EXTRACT,
        )


__all__ = [
    "ReferenceResolver",
    "build_phrase_prompt",
    "build_selection_prompt",
]
