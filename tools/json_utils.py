"""JSON extraction from free-form model output."""

import json
import re

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

# Models often emit raw newlines inside JSON strings
_LENIENT_DECODER = json.JSONDecoder(strict=False)


def _loads(text: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return _LENIENT_DECODER.decode(text)


def _candidates(text: str):
    yield text
    match = _JSON_FENCE_RE.search(text)
    if match:
        yield match.group(1).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        yield text[start:end + 1]


def parse_json_response(text: str) -> dict:
    """Extract a JSON object from model output.

    Accepts bare JSON, JSON inside markdown code fences, and JSON embedded
    in surrounding prose. Only objects are accepted.

    Raises:
        ValueError: If no JSON object can be decoded.
    """
    text = (text or "").strip()
    for candidate in _candidates(text):
        try:
            result = _loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(result, dict):
            return result
    raise ValueError(f"Failed to parse JSON object from response: {text[:200]}...")
