# src/api/facade.py — v2
"""Public API facade: the four gateway operations.

Usage:
    async with VisionGateway.from_settings() as gateway:
        await gateway.save_config({"householdId": "h1", "config": {...}}, actor="uid")
        result = await gateway.categorize({"householdId": "h1", "imageRef": {...}}, actor="uid")

Each operation authenticates the actor, validates the raw payload, and
returns a JSON-ready dict. Failures raise a GatewayError subclass.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from stowvision.api.models import (
    CategorizeInput,
    SaveConfigInput,
    SetSecretInput,
    ValidateConfigInput,
)
from stowvision.auth.authz import require_uid
from stowvision.config.settings import Settings
from stowvision.core.errors import GatewayError, InvalidArgument
from stowvision.crypto.encryption_context import EncryptionContext
from stowvision.crypto.secret_codec import SecretCodec
from stowvision.gateway.categorizer import CategorizationPipeline
from stowvision.gateway.config_manager import ConfigLifecycleManager
from stowvision.gateway.image_resolver import ImageResolver
from stowvision.logging.context import clear_context, set_request_context
from stowvision.providers.registry import ProviderRegistry
from stowvision.storage.base_document_store import BaseDocumentStore
from stowvision.storage.base_object_storage import BaseObjectStorage
from stowvision.storage.store_factory import create_document_store, create_object_storage

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


class VisionGateway:
    """Wires codec, registry, config manager and pipeline behind one API."""

    def __init__(
        self,
        settings: Settings,
        store: BaseDocumentStore,
        storage: BaseObjectStorage,
        http_client: httpx.AsyncClient,
        encryption: EncryptionContext | None = None,
        owns_http_client: bool = False,
    ) -> None:
        self.settings = settings
        self.store = store
        self._http = http_client
        self._owns_http = owns_http_client

        self.codec = SecretCodec(encryption or EncryptionContext.from_settings(settings))
        self.registry = ProviderRegistry(http_client, settings)
        self.configs = ConfigLifecycleManager(store, self.codec, self.registry)
        self.pipeline = CategorizationPipeline(
            store,
            self.configs,
            self.registry,
            ImageResolver(http_client, storage, settings.signed_url_ttl_seconds),
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        store: BaseDocumentStore | None = None,
        storage: BaseObjectStorage | None = None,
    ) -> VisionGateway:
        """Build the default wiring; the gateway owns its HTTP client."""
        settings = settings or Settings()
        return cls(
            settings=settings,
            store=store or create_document_store(settings),
            storage=storage or create_object_storage(settings),
            http_client=httpx.AsyncClient(),
            owns_http_client=True,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> VisionGateway:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # --- Operations ---

    async def save_config(self, raw: Any, actor: str | None) -> dict[str, Any]:
        uid = require_uid(actor)
        data = _parse(SaveConfigInput, raw)
        async with _request("save_config", data.household_id, uid):
            await self.configs.save_config(data.household_id, uid, data.config)
        return {"ok": True}

    async def set_secret(self, raw: Any, actor: str | None) -> dict[str, Any]:
        uid = require_uid(actor)
        data = _parse(SetSecretInput, raw)
        async with _request("set_secret", data.household_id, uid):
            await self.configs.set_secret(
                data.household_id, uid, data.api_key.get_secret_value()
            )
        return {"ok": True}

    async def validate_config(self, raw: Any, actor: str | None) -> dict[str, Any]:
        uid = require_uid(actor)
        data = _parse(ValidateConfigInput, raw)
        async with _request("validate_config", data.household_id, uid):
            result = await self.configs.validate_config(data.household_id, uid)
        return result.model_dump()

    async def categorize(self, raw: Any, actor: str | None) -> dict[str, Any]:
        uid = require_uid(actor)
        data = _parse(CategorizeInput, raw)
        async with _request("categorize", data.household_id, uid):
            result = await self.pipeline.categorize(
                data.household_id, uid, data.image_ref, data.context
            )
        return result.model_dump(by_alias=True, mode="json", exclude_none=True)


def _parse(model: type[_M], raw: Any) -> _M:
    """Validate a raw payload, reporting the first offending field."""
    if not isinstance(raw, dict):
        raise InvalidArgument("payload", "Request payload must be an object")
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"]) or "payload"
        raise InvalidArgument(field, f"Invalid argument: {field}: {first['msg']}") from None


@asynccontextmanager
async def _request(operation: str, household_id: str, actor: str) -> AsyncIterator[None]:
    """Set logging context for one operation and log typed failures."""
    set_request_context(operation, household_id, actor)
    try:
        yield
    except GatewayError as e:
        logger.info("%s failed: code=%s", operation, e.code)
        raise
    finally:
        clear_context()
