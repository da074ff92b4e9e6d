"""Tolerant extraction of JSON payloads from model responses.

Models frequently wrap JSON in Markdown fences or surround it with prose. The
helpers here strip fences, locate the first balanced object or array (aware
of string literals and escapes) and decode it, raising
:class:`~musicdict.core.errors.ParseError` when nothing usable is found.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from musicdict.core.errors import ParseError

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
_INT_RE = re.compile(r"-?\d+")

_CLOSERS = {"{": "}", "[": "]"}


def strip_code_fences(text: str) -> str:
    """Return the contents of the first fenced block, or ``text`` trimmed."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _balanced_span(text: str, start: int) -> int | None:
    """Return the end index of the bracket group opened at ``start``, if balanced."""
    stack: list[str] = []
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i + 1
    return None


def extract_json_block(text: str) -> str:
    """Return the first balanced substring of ``text`` that decodes as JSON.

    Bracketed prose such as ``"Review [draft 1]:"`` is skipped; scanning
    resumes at the next ``{`` or ``[``.
    """
    starts = [i for i, ch in enumerate(text) if ch in _CLOSERS]
    if not starts:
        raise ParseError("No JSON object or array found in response")

    truncated = False
    for start in starts:
        end = _balanced_span(text, start)
        if end is None:
            truncated = True
            continue
        block = text[start:end]
        try:
            json.loads(block)
        except json.JSONDecodeError:
            continue
        return block

    if truncated:
        raise ParseError("Truncated or unbalanced JSON in response")
    raise ParseError("No decodable JSON object or array in response")


def parse_json_response(text: str) -> Any:
    """Decode the JSON payload embedded in a model response.

    Raises
    ------
    ParseError
        If the response is empty or contains no decodable JSON block.
    """
    if not text or not text.strip():
        raise ParseError("Empty response")
    block = extract_json_block(strip_code_fences(text))
    try:
        return json.loads(block)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON in response: {exc}") from exc


def parse_json_object(text: str) -> dict[str, Any]:
    """Like :func:`parse_json_response` but require a JSON object at the root."""
    payload = parse_json_response(text)
    if not isinstance(payload, Mapping):
        raise ParseError("Expected a JSON object at the root of the response")
    return dict(payload)


# --------------------------------------------------------------------------- #
# Field coercion helpers
# --------------------------------------------------------------------------- #


def parse_str_list(raw: Any) -> list[str]:
    """Parse a sequence-like value into a cleaned list of strings."""
    items: list[str] = []
    if not isinstance(raw, Sequence) or isinstance(raw, str | bytes):
        return items

    for entry in raw:
        text = str(entry).strip()
        if text:
            items.append(text)

    return items


def parse_optional_str(raw: Any) -> str | None:
    """Return a stripped string, or ``None`` for missing/blank values."""
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def parse_score(raw: Any, default: int = 0) -> int:
    """Coerce a 0-100 score (number or numeric string) and clamp it."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default

    if not math.isfinite(value):
        return default
    return max(0, min(100, int(round(value))))


def parse_ordinal(raw: str, count: int) -> int:
    """Parse a 1-based choice among ``count`` options into a 0-based index.

    The first integer in ``raw`` is taken. Anything unparsable or out of
    range maps to index 0.
    """
    if count <= 0:
        return 0
    match = _INT_RE.search(raw or "")
    if match is None:
        return 0
    choice = int(match.group(0))
    if choice < 1 or choice > count:
        return 0
    return choice - 1


__all__ = [
    "extract_json_block",
    "parse_json_object",
    "parse_json_response",
    "parse_optional_str",
    "parse_ordinal",
    "parse_score",
    "parse_str_list",
    "strip_code_fences",
]
