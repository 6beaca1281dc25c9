# tests/unit/gateway/conftest.py — v1
"""Fixtures wiring the gateway components over in-memory backends."""

from __future__ import annotations

import pytest

from stowvision.gateway.categorizer import CategorizationPipeline
from stowvision.gateway.config_manager import ConfigLifecycleManager
from stowvision.gateway.image_resolver import ImageResolver
from stowvision.providers.registry import ProviderRegistry


@pytest.fixture
def registry(http_client, settings) -> ProviderRegistry:
    return ProviderRegistry(http_client, settings)


@pytest.fixture
def manager(store, codec, registry) -> ConfigLifecycleManager:
    return ConfigLifecycleManager(store, codec, registry)


@pytest.fixture
def resolver(http_client, object_storage) -> ImageResolver:
    return ImageResolver(http_client, object_storage, signed_url_ttl=300)


@pytest.fixture
def pipeline(store, manager, registry, resolver) -> CategorizationPipeline:
    return CategorizationPipeline(store, manager, registry, resolver)
