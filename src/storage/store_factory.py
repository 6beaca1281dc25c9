# src/storage/store_factory.py — v1
"""Factory: instantiate document store and object storage from configuration."""

from __future__ import annotations

from stowvision.config.settings import Settings
from stowvision.storage.base_document_store import BaseDocumentStore
from stowvision.storage.base_object_storage import BaseObjectStorage
from stowvision.storage.memory_document_store import MemoryDocumentStore
from stowvision.storage.memory_object_storage import MemoryObjectStorage


def create_document_store(settings: Settings) -> BaseDocumentStore:
    """Create the document store selected by DOCUMENT_STORE.

    Raises:
        ValueError: If the backend is not supported.
    """
    if settings.document_store == "memory":
        return MemoryDocumentStore()

    if settings.document_store == "json":
        from stowvision.storage.json_document_store import JsonDocumentStore
        if settings.document_store_path is None:
            raise ValueError(
                "DOCUMENT_STORE_PATH must be set when DOCUMENT_STORE=json"
            )
        return JsonDocumentStore(settings.document_store_path)

    raise ValueError(f"Unsupported document store: {settings.document_store!r}")


def create_object_storage(settings: Settings) -> BaseObjectStorage:
    """Create the object storage selected by OBJECT_STORAGE.

    Raises:
        ValueError: If the backend is not supported.
    """
    if settings.object_storage == "memory":
        return MemoryObjectStorage()

    if settings.object_storage == "s3":
        from stowvision.storage.s3_object_storage import S3ObjectStorage
        if not settings.object_storage_bucket:
            raise ValueError(
                "OBJECT_STORAGE_BUCKET must be set when OBJECT_STORAGE=s3"
            )
        return S3ObjectStorage(
            bucket=settings.object_storage_bucket,
            region=settings.object_storage_region or None,
            endpoint_url=settings.object_storage_endpoint_url or None,
        )

    raise ValueError(f"Unsupported object storage: {settings.object_storage!r}")
