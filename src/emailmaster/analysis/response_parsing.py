"""Recover JSON from free-form model output.

Models are asked for "JSON only" but routinely wrap it in prose or code
fences, use smart quotes, or leave trailing commas. These helpers try the
strict parse first and then progressively more tolerant ones. They never
raise; a response with nothing usable yields None.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Any

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.S)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_SMART_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})

_decoder = json.JSONDecoder()


def _candidates(text: str) -> Iterator[str]:
    normalized = text.translate(_SMART_QUOTES)
    for match in _FENCE_RE.finditer(normalized):
        block = match.group(1).strip()
        if block:
            yield block
            yield _TRAILING_COMMA_RE.sub(r"\1", block)
    yield normalized
    yield _TRAILING_COMMA_RE.sub(r"\1", normalized)


def _scan(text: str, opener: str) -> Iterator[Any]:
    """Yield every JSON value that starts at an ``opener`` character."""

    start = text.find(opener)
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
        except ValueError:
            pass
        else:
            yield value
        start = text.find(opener, start + 1)


def _only_dicts(items: list[Any]) -> list[dict[str, Any]]:
    return [item for item in items if isinstance(item, dict)]


def parse_ai_response(text: str | None) -> list[dict[str, Any]] | None:
    """Extract a list of JSON objects from a model response.

    Search order: the whole text (or a fenced block) as JSON, then the first
    embedded JSON array, then the first embedded JSON object (wrapped in a
    list). An object holding a single list of objects (``{"results": [...]}``)
    is unwrapped.

    Returns:
        The list of objects, or None if no JSON could be recovered.
    """

    if not text or not text.strip():
        return None

    for candidate in _candidates(text):
        try:
            value = json.loads(candidate)
        except ValueError:
            value = None
        if value is None:
            for scanned in _scan(candidate, "["):
                if isinstance(scanned, list) and (not scanned or _only_dicts(scanned)):
                    value = scanned
                    break
        if value is None:
            value = next(_scan(candidate, "{"), None)

        if isinstance(value, list):
            return _only_dicts(value)
        if isinstance(value, dict):
            inner = [v for v in value.values() if isinstance(v, list)]
            if len(value) == 1 and len(inner) == 1 and _only_dicts(inner[0]):
                return _only_dicts(inner[0])
            return [value]

    return None
