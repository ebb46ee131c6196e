"""Best-effort extraction of structured data from free-text model completions.

Each stage is a pure function returning ``None`` when it does not apply, so the
fallback chain in :func:`interpret` stays flat:

1. first balanced ``{...}`` object embedded in the text
2. the whole trimmed text as a JSON object or array
3. ``key: value`` lines
4. the raw text, tagged unstructured
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from ..schemas import InterpretedResult
from .enums import InterpretationStrategy


_KEY_WHITESPACE_RE = re.compile(r"\s+")


def find_balanced_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` substring, ignoring braces inside strings."""
    if not text:
        return None
    start = text.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def parse_embedded_object(text: str) -> Optional[Dict[str, Any]]:
    candidate = find_balanced_object(text)
    if candidate is None:
        return None
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_full_json(text: str) -> Optional[Any]:
    # Scalars ("42", "true") are left to the later stages.
    stripped = (text or "").strip()
    if not stripped:
        return None
    try:
        parsed = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, (dict, list)) else None


def normalize_key(key: str) -> str:
    return _KEY_WHITESPACE_RE.sub("_", key.strip().lower())


def parse_key_value_lines(text: str) -> Optional[Dict[str, str]]:
    """Collect ``key: value`` pairs; a repeated key keeps its last value."""
    if not text:
        return None
    result: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = normalize_key(key)
        if not key:
            continue
        result[key] = value.strip()
    return result or None


def interpret(raw: str) -> InterpretedResult:
    text = raw if isinstance(raw, str) else ("" if raw is None else str(raw))

    embedded = parse_embedded_object(text)
    if embedded is not None:
        return InterpretedResult(
            structured=True,
            strategy=InterpretationStrategy.EMBEDDED_JSON,
            data=embedded,
            text=text,
        )

    full = parse_full_json(text)
    if full is not None:
        return InterpretedResult(
            structured=True,
            strategy=InterpretationStrategy.FULL_JSON,
            data=full,
            text=text,
        )

    pairs = parse_key_value_lines(text)
    if pairs is not None:
        return InterpretedResult(
            structured=True,
            strategy=InterpretationStrategy.KEY_VALUE,
            data=pairs,
            text=text,
        )

    return InterpretedResult(
        structured=False,
        strategy=InterpretationStrategy.RAW_TEXT,
        data=None,
        text=text,
    )
