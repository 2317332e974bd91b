"""Pull a JSON object out of free-form model output."""

from __future__ import annotations

import json
import re
from typing import Any

from questmap.llm.errors import EmptyPayloadError, MalformedPayloadError


def strip_fences(text: str) -> str:
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", text.strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned)
    return cleaned.strip()


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the first JSON object in ``text``.

    Tries the fenced/raw text as-is, then the outermost ``{...}`` span.
    Raises ``EmptyPayloadError`` for blank input and ``MalformedPayloadError``
    when nothing parses to a dict.
    """
    if not isinstance(text, str) or not text.strip():
        raise EmptyPayloadError("empty model response")

    cleaned = strip_fences(text)
    candidates = [cleaned]
    match = re.search(r"\{[\s\S]*\}", cleaned)
    if match and match.group(0) != cleaned:
        candidates.append(match.group(0))

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = e
            continue
        if isinstance(data, dict):
            return data
        last_error = MalformedPayloadError(f"expected a JSON object, got {type(data).__name__}")

    raise MalformedPayloadError(f"unparsable model response: {last_error}")
