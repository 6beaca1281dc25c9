# src/storage/base_object_storage.py — v1
"""Abstract object storage: existence check and signed read URLs."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseObjectStorage(ABC):
    """Unified interface for object storage backends."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check if an object exists."""

    @abstractmethod
    async def signed_url(self, path: str, expires_in: int) -> str:
        """Return a short-lived URL granting read access to the object."""
