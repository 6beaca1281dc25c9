# src/providers/normalizer.py — v1
"""Turn untrusted provider text into a validated VisionSuggestion.

Two stages: parse the whole text as JSON, else parse the span between the
first '{' and the last '}'. Nothing is coerced or clamped afterwards.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from stowvision.core.errors import ProviderOutputInvalid
from stowvision.core.models import VisionSuggestion


def extract_json(text: str) -> Any:
    """Parse JSON from a provider response that may be wrapped in prose.

    Raises:
        ProviderOutputInvalid: Neither the text nor its brace span parses.
    """
    trimmed = text.strip()
    try:
        return json.loads(trimmed)
    except json.JSONDecodeError:
        pass

    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start >= 0 and end > start:
        try:
            return json.loads(trimmed[start:end + 1])
        except json.JSONDecodeError:
            pass
    raise ProviderOutputInvalid("provider response was not valid JSON")


def normalize_suggestion(value: Any) -> VisionSuggestion:
    """Validate a parsed value against the suggestion schema.

    Raises:
        ProviderOutputInvalid: Naming the first offending field.
    """
    if not isinstance(value, dict):
        raise ProviderOutputInvalid("expected a JSON object")
    try:
        return VisionSuggestion.model_validate(value, strict=True)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"]) or "payload"
        raise ProviderOutputInvalid(f"{field}: {first['msg']}") from e


def parse_suggestion(text: str) -> VisionSuggestion:
    """extract_json + normalize_suggestion."""
    return normalize_suggestion(extract_json(text))
