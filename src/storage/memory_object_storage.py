# src/storage/memory_object_storage.py — v1
"""In-process object storage (OBJECT_STORAGE=memory).

Keeps a registry of object paths and issues URLs under a fixed base; tests
serve those URLs through an httpx mock transport.
"""

from __future__ import annotations

import time
from urllib.parse import quote

from stowvision.storage.base_object_storage import BaseObjectStorage


class MemoryObjectStorage(BaseObjectStorage):
    """Object registry issuing deterministic signed URLs."""

    def __init__(self, base_url: str = "https://storage.local") -> None:
        self._base_url = base_url.rstrip("/")
        self._objects: dict[str, str] = {}

    def put(self, path: str, content_type: str = "image/jpeg") -> str:
        """Register an object; returns its unsigned URL."""
        self._objects[path] = content_type
        return f"{self._base_url}/{quote(path)}"

    async def exists(self, path: str) -> bool:
        return path in self._objects

    async def signed_url(self, path: str, expires_in: int) -> str:
        expires = int(time.time()) + expires_in
        return f"{self._base_url}/{quote(path)}?expires={expires}&signature=memory"
