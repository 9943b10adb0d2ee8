"""
Best-effort structured decoding of free-form text-completion responses.

Responses may wrap JSON in markdown fences, surround it with prose, or be
malformed altogether. decode_object() finds the first balanced JSON object
by brace matching (string-aware), and falls back to regex key/value
extraction when json.loads fails.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)
# "key": [ ... ]   (non-nested arrays only)
_ARRAY_FIELD_RE = r'"{key}"\s*:\s*\[(.*?)\]'
# "key": "value" | number | true/false/null
_SCALAR_FIELD_RE = r'"{key}"\s*:\s*("(?:[^"\\]|\\.)*"|-?\d+(?:\.\d+)?|true|false|null)'
_QUOTED_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')


def strip_fences(text: str) -> str:
    """Return the content of the first markdown code fence, or the text unchanged."""
    match = _FENCE_RE.search(text)
    return match.group(1).strip() if match else text


def find_json_object(text: str) -> Optional[str]:
    """
    Locate the first balanced {...} span, ignoring braces inside strings.

    Returns None when no opening brace exists or the braces never balance.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
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
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


def _unescape(value: str) -> str:
    try:
        return json.loads(f'"{value}"')
    except json.JSONDecodeError:
        return value


def extract_fields(text: str, keys: List[str]) -> Dict[str, Any]:
    """
    Regex key/value fallback for responses that are not valid JSON.

    Arrays yield the quoted strings inside them; scalars are decoded as JSON
    literals where possible. Keys that are not found are omitted.
    """
    found: Dict[str, Any] = {}
    for key in keys:
        array_match = re.search(_ARRAY_FIELD_RE.format(key=re.escape(key)), text, re.DOTALL)
        if array_match:
            found[key] = [_unescape(item) for item in _QUOTED_RE.findall(array_match.group(1))]
            continue
        scalar_match = re.search(_SCALAR_FIELD_RE.format(key=re.escape(key)), text)
        if scalar_match:
            raw = scalar_match.group(1)
            try:
                found[key] = json.loads(raw)
            except json.JSONDecodeError:
                found[key] = raw.strip('"')
    return found


def decode_object(text: Optional[str], keys: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Decode a JSON object embedded in free text.

    Args:
        text: Raw response text
        keys: Keys to recover with the regex fallback when JSON decoding fails

    Returns:
        The decoded object, the fields recovered by regex, or {} (never raises)

    Examples:
        'Sure! {"skills": ["Python"]} Hope that helps' -> {"skills": ["Python"]}
        '{"skills": ["Python", "Go",]}' with keys=["skills"] -> {"skills": ["Python", "Go"]}
    """
    if not text or not isinstance(text, str):
        return {}

    body = strip_fences(text)
    candidate = find_json_object(body)
    if candidate is not None:
        try:
            decoded = json.loads(candidate)
            if isinstance(decoded, dict):
                return decoded
        except json.JSONDecodeError as exc:
            logger.debug("JSON decode failed (%s); falling back to key/value extraction", exc)

    if keys:
        recovered = extract_fields(candidate or body, keys)
        if recovered:
            return recovered
    return {}
