# src/storage/paths.py — v1
"""Document paths for per-household gateway state."""

from __future__ import annotations


def household(household_id: str) -> str:
    return f"households/{household_id}"


def member(household_id: str, uid: str) -> str:
    return f"households/{household_id}/members/{uid}"


def llm_config(household_id: str) -> str:
    return f"households/{household_id}/settings/llm"


def llm_secret(household_id: str) -> str:
    return f"households/{household_id}/settings/llmSecret"


def vision_jobs(household_id: str) -> str:
    return f"households/{household_id}/visionJobs"
