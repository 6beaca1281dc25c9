# src/providers/prompts.py — v1
"""Categorization prompt shared by every provider."""

from __future__ import annotations


def inventory_vision_prompt(area_name: str | None = None) -> str:
    """Fixed instructions plus an optional area hint."""
    lines = [
        "You categorize household inventory items from a single image.",
        "Return STRICT JSON with keys: suggestedName, tags, notes, confidence, rationale.",
        "Confidence must be between 0 and 1.",
        "Avoid guessing exact brand/model unless clearly visible.",
        "Tags should be short and useful (2-6 typical).",
        f"The item may be located in area: {area_name}." if area_name else "",
        "If uncertain, use a generic name and lower confidence.",
    ]
    return " ".join(line for line in lines if line)
