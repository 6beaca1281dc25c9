# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides settings, an in-memory document store seeded with household
members, encryption contexts, and an httpx mock transport that plays every
provider and image host. No network access.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Union
from unittest.mock import AsyncMock

import httpx
import pytest

from stowvision.config.settings import Settings
from stowvision.core.models import HouseholdLlmConfig, ProviderType, VisionImageInput
from stowvision.crypto.encryption_context import EncryptionContext, LocalKeyRing
from stowvision.crypto.secret_codec import SecretCodec
from stowvision.storage import paths
from stowvision.storage.memory_document_store import MemoryDocumentStore
from stowvision.storage.memory_object_storage import MemoryObjectStorage

HOUSEHOLD = "h1"
OWNER = "owner-1"
ADMIN = "admin-1"
MEMBER = "member-1"
FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

Responder = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class MockHttp:
    """Route table for httpx.MockTransport; records every request."""

    def __init__(self) -> None:
        self.routes: list[tuple[str, str, Responder]] = []
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url_prefix: str, response: Responder) -> None:
        self.routes.append((method.upper(), url_prefix, response))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for method, prefix, response in self.routes:
            if request.method == method and str(request.url).startswith(prefix):
                if callable(response):
                    return response(request)
                # Fresh copy so one route can answer repeated calls.
                return httpx.Response(
                    response.status_code, headers=response.headers, content=response.content,
                )
        return httpx.Response(404, json={"error": "no route"})

    def requests_to(self, url_prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(url_prefix)]


# === FIXTURES: Settings & crypto ===


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, local_secret_encryption_key="test-seed")


@pytest.fixture
def local_context() -> EncryptionContext:
    return EncryptionContext(local=LocalKeyRing.from_seeds("test-seed"))


@pytest.fixture
def codec(local_context: EncryptionContext) -> SecretCodec:
    return SecretCodec(local_context)


@pytest.fixture
def fake_kms_client() -> AsyncMock:
    """KMS client whose 'ciphertext' is the reversed plaintext."""

    class _Response:
        def __init__(self, **fields: Any) -> None:
            self.__dict__.update(fields)

    async def encrypt(request: dict[str, Any]) -> _Response:
        return _Response(ciphertext=b"KMS" + request["plaintext"][::-1])

    async def decrypt(request: dict[str, Any]) -> _Response:
        return _Response(plaintext=request["ciphertext"][3:][::-1])

    client = AsyncMock()
    client.encrypt = AsyncMock(side_effect=encrypt)
    client.decrypt = AsyncMock(side_effect=decrypt)
    return client


# === FIXTURES: Storage ===


@pytest.fixture
def store() -> MemoryDocumentStore:
    """Document store with one household and members of every role."""
    return MemoryDocumentStore(
        documents={
            paths.household(HOUSEHOLD): {"name": "Home"},
            paths.member(HOUSEHOLD, OWNER): {"role": "OWNER"},
            paths.member(HOUSEHOLD, ADMIN): {"role": "ADMIN"},
            paths.member(HOUSEHOLD, MEMBER): {"role": "MEMBER"},
        },
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def object_storage() -> MemoryObjectStorage:
    return MemoryObjectStorage(base_url="https://storage.local")


# === FIXTURES: HTTP ===


@pytest.fixture
def mock_http() -> MockHttp:
    return MockHttp()


@pytest.fixture
def http_client(mock_http: MockHttp) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(mock_http.handler))


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_image() -> VisionImageInput:
    return VisionImageInput(mime_type="image/png", data=b"\x89PNG-fake-bytes")


@pytest.fixture
def openai_config() -> HouseholdLlmConfig:
    return HouseholdLlmConfig(
        enabled=True,
        provider_type=ProviderType.OPENAI_COMPATIBLE,
        model="gpt-4.1-mini",
    )
