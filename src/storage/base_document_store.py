# src/storage/base_document_store.py — v1
"""Abstract document store: get / merge-set / append with server timestamps.

Writers place ``SERVER_TIMESTAMP`` in a payload; the store replaces it with
its own clock at write time. Merge-set updates only the given fields and
never drops sibling fields already on the document.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any


class _ServerTimestamp:
    """Sentinel resolved to the store clock on write."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP: Any = _ServerTimestamp()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseDocumentStore(ABC):
    """Unified interface for document storage backends."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or utc_now

    @abstractmethod
    async def get(self, path: str) -> dict[str, Any] | None:
        """Return a copy of the document at path, or None if absent."""

    @abstractmethod
    async def merge_set(self, path: str, data: dict[str, Any]) -> None:
        """Create the document or merge fields into it."""

    @abstractmethod
    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Append a new document with a generated id; returns the id."""

    @abstractmethod
    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        """Direct child documents of a collection, in insertion order."""

    # --- Shared helpers ---

    def _resolve(self, data: dict[str, Any]) -> dict[str, Any]:
        """Replace SERVER_TIMESTAMP sentinels with the store clock."""
        now = self._clock()

        def resolve(value: Any) -> Any:
            if value is SERVER_TIMESTAMP:
                return now
            if isinstance(value, dict):
                return {k: resolve(v) for k, v in value.items()}
            if isinstance(value, list):
                return [resolve(v) for v in value]
            return value

        return resolve(data)


def deep_merge(target: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Merge nested maps in place; non-map values overwrite."""
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            deep_merge(target[key], value)
        else:
            target[key] = value
    return target


def is_direct_child(path: str, collection: str) -> bool:
    prefix = collection.rstrip("/") + "/"
    return path.startswith(prefix) and "/" not in path[len(prefix):]
