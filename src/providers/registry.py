# src/providers/registry.py — v1
"""Provider registry: map a configured provider type to its adapter.

This is the only place that knows which adapter class implements which
provider type. Adapters are imported lazily and built once per registry.
"""

from __future__ import annotations

import importlib
import logging

import httpx

from stowvision.config.settings import Settings
from stowvision.core.errors import UnsupportedProviderType
from stowvision.core.models import ProviderType
from stowvision.providers.base_adapter import BaseVisionAdapter

logger = logging.getLogger(__name__)

# Provider type → adapter class path (lazy import).
_ADAPTER_REGISTRY: dict[ProviderType, str] = {
    ProviderType.OPENAI_COMPATIBLE: (
        "stowvision.providers.adapters.openai_compatible_adapter.OpenAICompatibleAdapter"
    ),
    ProviderType.GEMINI: "stowvision.providers.adapters.gemini_adapter.GeminiAdapter",
    ProviderType.ANTHROPIC: "stowvision.providers.adapters.anthropic_adapter.AnthropicAdapter",
}


class ProviderRegistry:
    """Resolves provider types to adapter instances sharing one HTTP client."""

    def __init__(
        self, http_client: httpx.AsyncClient, settings: Settings | None = None,
    ) -> None:
        self._http = http_client
        self._settings = settings
        self._instances: dict[ProviderType, BaseVisionAdapter] = {}

    def resolve(self, provider_type: ProviderType | str) -> BaseVisionAdapter:
        """Return the adapter for a provider type.

        Raises:
            UnsupportedProviderType: If the type is not one of the known variants.
        """
        try:
            key = ProviderType(provider_type)
        except ValueError:
            raise UnsupportedProviderType(str(provider_type)) from None

        if key not in self._instances:
            adapter_cls = _import_class(_ADAPTER_REGISTRY[key])
            logger.debug("Creating vision adapter: provider=%s", key.value)
            self._instances[key] = adapter_cls(self._http, self._settings)
        return self._instances[key]

    @staticmethod
    def supported_types() -> list[str]:
        return sorted(t.value for t in _ADAPTER_REGISTRY)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
