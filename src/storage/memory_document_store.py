# src/storage/memory_document_store.py — v1
"""In-process document store (DOCUMENT_STORE=memory).

Used by tests and local tooling. Reads and writes deep-copy payloads so
callers never share mutable state with the store.
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any

from stowvision.storage.base_document_store import (
    BaseDocumentStore,
    deep_merge,
    is_direct_child,
)


class MemoryDocumentStore(BaseDocumentStore):
    """Dict-backed document store."""

    def __init__(
        self,
        documents: dict[str, dict[str, Any]] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(clock)
        self._docs: dict[str, dict[str, Any]] = copy.deepcopy(documents or {})

    async def get(self, path: str) -> dict[str, Any] | None:
        doc = self._docs.get(path)
        return copy.deepcopy(doc) if doc is not None else None

    async def merge_set(self, path: str, data: dict[str, Any]) -> None:
        resolved = copy.deepcopy(self._resolve(data))
        current = self._docs.get(path)
        if current is None:
            self._docs[path] = resolved
        else:
            deep_merge(current, resolved)

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._docs[f"{collection.rstrip('/')}/{doc_id}"] = copy.deepcopy(
            self._resolve(data)
        )
        return doc_id

    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(doc)
            for path, doc in self._docs.items()
            if is_direct_child(path, collection)
        ]
