# src/storage/json_document_store.py — v1
"""JSON file-backed document store (DOCUMENT_STORE=json).

All documents live in one JSON object keyed by path. Every write rewrites
the file through a temp file and an atomic rename.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from stowvision.storage.base_document_store import (
    BaseDocumentStore,
    deep_merge,
    is_direct_child,
)

logger = logging.getLogger(__name__)


class JsonDocumentStore(BaseDocumentStore):
    """Single-file document store for local tooling."""

    def __init__(
        self, path: Path | str, clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(clock)
        self._path = Path(path).expanduser()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    async def get(self, path: str) -> dict[str, Any] | None:
        return self._load().get(path)

    async def merge_set(self, path: str, data: dict[str, Any]) -> None:
        async with self._lock:
            docs = self._load()
            resolved = _to_json_ready(self._resolve(data))
            if path in docs:
                deep_merge(docs[path], resolved)
            else:
                docs[path] = resolved
            self._save(docs)

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        async with self._lock:
            docs = self._load()
            docs[f"{collection.rstrip('/')}/{doc_id}"] = _to_json_ready(
                self._resolve(data)
            )
            self._save(docs)
        return doc_id

    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        return [
            doc for path, doc in self._load().items()
            if is_direct_child(path, collection)
        ]

    # --- Internal helpers ---

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            return {}
        return json.loads(self._path.read_text(encoding="utf-8"))

    def _save(self, docs: dict[str, dict[str, Any]]) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(docs, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, self._path)
        logger.debug("Document store saved: %s (%d docs)", self._path, len(docs))


def _to_json_ready(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _to_json_ready(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_json_ready(v) for v in value]
    return value
