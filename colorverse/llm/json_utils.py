"""Extraction of JSON payloads from model output.

Models asked for JSON often wrap it in prose or markdown fences, so the
whole text is tried first and then the outermost object or array in it.
"""

import json
import re
from typing import Any

from .exceptions import JSONExtractionError

_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")
_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")
_PATTERNS = (("{", _OBJECT_PATTERN), ("[", _ARRAY_PATTERN))


def extract_json(content: str) -> Any:
    """Parse JSON from completion content.

    Args:
        content: Raw completion text

    Returns:
        The decoded JSON value

    Raises:
        JSONExtractionError: If no valid JSON object or array is found
    """
    text = (content or "").strip()
    if not text:
        raise JSONExtractionError("Response is empty")

    try:
        return json.loads(text)
    except ValueError:
        pass

    # Prefer whichever bracket type opens first
    openers = [(text.find(opener), pattern) for opener, pattern in _PATTERNS if opener in text]
    for _, pattern in sorted(openers, key=lambda item: item[0]):
        match = pattern.search(text)
        if match is None:
            continue
        try:
            return json.loads(match.group(0))
        except ValueError:
            continue

    raise JSONExtractionError("Response does not contain valid JSON")
