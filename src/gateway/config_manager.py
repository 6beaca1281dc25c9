# src/gateway/config_manager.py — v1
"""Config lifecycle: save config, set secret, validate, load for use.

Per household: Unconfigured → ConfigSaved / SecretSet (either order,
re-saving overwrites) → Validated. ``lastValidatedAt`` is a last-known-good
stamp only; a later key change does not clear it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from stowvision.auth.authz import require_household_admin
from stowvision.core.errors import ConfigMissing, SecretMissing, UnsupportedProviderType
from stowvision.core.models import HouseholdLlmConfig, ValidationResult
from stowvision.crypto.secret_codec import SecretCodec
from stowvision.providers.registry import ProviderRegistry
from stowvision.storage import paths
from stowvision.storage.base_document_store import SERVER_TIMESTAMP, BaseDocumentStore

logger = logging.getLogger(__name__)


class ConfigLifecycleManager:
    """Admin-only config/secret operations plus the shared loader."""

    def __init__(
        self,
        store: BaseDocumentStore,
        codec: SecretCodec,
        registry: ProviderRegistry,
    ) -> None:
        self._store = store
        self._codec = codec
        self._registry = registry

    async def save_config(
        self, household_id: str, actor: str, config: HouseholdLlmConfig,
    ) -> None:
        """Upsert the config document. Reachability is not checked here."""
        await require_household_admin(self._store, household_id, actor)
        payload = {
            **config.to_document(),
            "updatedAt": SERVER_TIMESTAMP,
            "updatedBy": actor,
        }
        await self._store.merge_set(paths.llm_config(household_id), payload)
        logger.info(
            "LLM config saved: household=%s, provider=%s, model=%s, enabled=%s",
            household_id, config.provider_type.value, config.model, config.enabled,
        )

    async def set_secret(self, household_id: str, actor: str, api_key: str) -> None:
        """Encrypt the key and replace the stored envelope."""
        await require_household_admin(self._store, household_id, actor)
        ciphertext = await self._codec.encrypt(api_key)
        await self._store.merge_set(
            paths.llm_secret(household_id),
            {
                "ciphertext": ciphertext,
                "updatedAt": SERVER_TIMESTAMP,
                "updatedBy": actor,
            },
        )
        logger.info("LLM secret updated: household=%s", household_id)

    async def validate_config(self, household_id: str, actor: str) -> ValidationResult:
        """Check the stored key against its provider.

        A failed check is returned as ``ok=False``; only a successful one
        stamps ``lastValidatedAt``/``lastValidatedBy``.
        """
        await require_household_admin(self._store, household_id, actor)
        config, api_key = await self.load_config_and_secret(household_id)
        adapter = self._registry.resolve(config.provider_type)
        result = await adapter.validate(api_key, config)

        if result.ok:
            await self._store.merge_set(
                paths.llm_config(household_id),
                {"lastValidatedAt": SERVER_TIMESTAMP, "lastValidatedBy": actor},
            )
        logger.info(
            "LLM config validated: household=%s, provider=%s, ok=%s",
            household_id, config.provider_type.value, result.ok,
        )
        return result

    async def load_config_and_secret(
        self, household_id: str,
    ) -> tuple[HouseholdLlmConfig, str]:
        """Read the config and decrypt the stored key. No caching.

        Raises:
            ConfigMissing: No config document (or it does not parse).
            SecretMissing: No secret document or no ciphertext on it.
            UnsupportedProviderType: Stored provider type is unknown.
        """
        cfg_doc, secret_doc = await asyncio.gather(
            self._store.get(paths.llm_config(household_id)),
            self._store.get(paths.llm_secret(household_id)),
        )
        if cfg_doc is None:
            raise ConfigMissing("LLM config is not set")
        config = _parse_config(cfg_doc)

        if secret_doc is None:
            raise SecretMissing("LLM API key is not set")
        ciphertext = secret_doc.get("ciphertext")
        if not ciphertext:
            raise SecretMissing("LLM API key ciphertext is missing")

        api_key = await self._codec.decrypt(ciphertext)
        return config, api_key


def _parse_config(doc: dict[str, Any]) -> HouseholdLlmConfig:
    try:
        return HouseholdLlmConfig.model_validate(doc)
    except ValidationError as e:
        first = e.errors()[0]
        if first["loc"] and first["loc"][0] == "providerType":
            raise UnsupportedProviderType(str(doc.get("providerType"))) from None
        field = ".".join(str(p) for p in first["loc"])
        raise ConfigMissing(f"LLM config is incomplete: {field}") from None
