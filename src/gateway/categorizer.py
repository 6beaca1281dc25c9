# src/gateway/categorizer.py — v1
"""Categorization pipeline: image reference in, validated suggestion out.

Flow per request: membership check → load config + key → enabled gate →
fetch image → classify (timed) → append one VisionJob audit record.
The key and image bytes stay local to the request.
"""

from __future__ import annotations

import logging
import time

from stowvision.auth.authz import require_household_member
from stowvision.core.errors import CategorizationDisabled
from stowvision.core.models import (
    CategorizeContext,
    CategorizeResult,
    ImageRef,
    ProviderInfo,
)
from stowvision.gateway.config_manager import ConfigLifecycleManager
from stowvision.gateway.image_resolver import ImageResolver
from stowvision.providers.prompts import inventory_vision_prompt
from stowvision.providers.registry import ProviderRegistry
from stowvision.storage import paths
from stowvision.storage.base_document_store import SERVER_TIMESTAMP, BaseDocumentStore

logger = logging.getLogger(__name__)


class CategorizationPipeline:
    """Member-level categorize operation."""

    def __init__(
        self,
        store: BaseDocumentStore,
        config_manager: ConfigLifecycleManager,
        registry: ProviderRegistry,
        image_resolver: ImageResolver,
    ) -> None:
        self._store = store
        self._configs = config_manager
        self._registry = registry
        self._images = image_resolver

    async def categorize(
        self,
        household_id: str,
        actor: str,
        image_ref: ImageRef,
        context: CategorizeContext | None = None,
    ) -> CategorizeResult:
        """Categorize one image for a household member.

        Raises:
            PermissionDenied: Actor is not a household member.
            ConfigMissing / SecretMissing: Gateway not configured.
            CategorizationDisabled: Config has ``enabled=False``.
            ImageNotFound / ImageFetchFailed: Image could not be read.
            ProviderRequestFailed / ProviderOutputInvalid: Provider failure.
        """
        await require_household_member(self._store, household_id, actor)
        config, api_key = await self._configs.load_config_and_secret(household_id)
        if not config.enabled:
            raise CategorizationDisabled(
                "Vision categorization is disabled for this household"
            )

        image = await self._images.resolve(image_ref)
        adapter = self._registry.resolve(config.provider_type)
        prompt = inventory_vision_prompt(context.area_name if context else None)

        start = time.monotonic()
        suggestion = await adapter.classify_image(api_key, config, prompt, image)
        latency_ms = int((time.monotonic() - start) * 1000)

        job_id = await self._store.add(
            paths.vision_jobs(household_id),
            {
                "createdAt": SERVER_TIMESTAMP,
                "createdBy": actor,
                "providerType": config.provider_type.value,
                "model": config.model,
                "latencyMs": latency_ms,
                "confidence": suggestion.confidence,
                "context": (
                    context.model_dump(by_alias=True, exclude_none=True)
                    if context else None
                ),
            },
        )
        logger.info(
            "Image categorized: household=%s, provider=%s, model=%s, "
            "latency_ms=%d, confidence=%.2f, job=%s",
            household_id, config.provider_type.value, config.model,
            latency_ms, suggestion.confidence, job_id,
        )
        return CategorizeResult(
            suggestion=suggestion,
            provider=ProviderInfo(provider_type=config.provider_type, model=config.model),
        )
