# tests/integration/gateway/test_int_categorize_flow.py — v1
"""Integration tests for the full gateway: facade → config → codec → adapter → audit.

No external services required: a JSON document store on disk, in-memory
object storage, and an httpx mock transport playing the provider and the
image host.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from stowvision.api.facade import VisionGateway
from stowvision.core.errors import CategorizationDisabled, SecretMissing
from stowvision.crypto.encryption_context import EncryptionContext, KmsKeyHandle
from stowvision.storage import paths
from stowvision.storage.json_document_store import JsonDocumentStore

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
CHAT_URL = "https://llm.internal.example/v1/chat/completions"
CONFIG = {
    "enabled": True,
    "providerType": "openai_compatible",
    "model": "llava-13b",
    "baseUrl": "https://llm.internal.example/v1",
    "maxTokens": 300,
}
LAMP_RESPONSE = {
    "choices": [
        {"message": {"content": '{"suggestedName":"Lamp","tags":[],"confidence":0.9}'}}
    ]
}


@pytest.fixture
def json_store(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({
        paths.member("h1", "owner-1"): {"role": "OWNER"},
        paths.member("h1", "member-1"): {"role": "MEMBER"},
    }), encoding="utf-8")
    return JsonDocumentStore(path, clock=lambda: NOW)


@pytest.fixture
def gateway(settings, json_store, object_storage, http_client, local_context):
    return VisionGateway(
        settings=settings,
        store=json_store,
        storage=object_storage,
        http_client=http_client,
        encryption=local_context,
    )


async def _setup(gateway: VisionGateway, config: dict | None = None) -> None:
    await gateway.save_config({"householdId": "h1", "config": config or CONFIG}, "owner-1")
    await gateway.set_secret({"householdId": "h1", "apiKey": "sk-local-0123456789"}, "owner-1")


class TestCategorizeFlow:
    @pytest.mark.asyncio
    async def test_storage_path_end_to_end(self, gateway, json_store, object_storage, mock_http):
        object_storage.put("households/h1/items/lamp.jpg")
        mock_http.add("GET", "https://storage.local/households/h1/items/lamp.jpg",
                      httpx.Response(200, content=b"JPEG", headers={"content-type": "image/jpeg"}))
        mock_http.add("POST", CHAT_URL, httpx.Response(200, json=LAMP_RESPONSE))
        await _setup(gateway)

        result = await gateway.categorize(
            {
                "householdId": "h1",
                "imageRef": {"storagePath": "households/h1/items/lamp.jpg"},
                "context": {"areaName": "Living room"},
            },
            "member-1",
        )

        assert result["suggestion"]["suggestedName"] == "Lamp"
        assert result["provider"] == {"providerType": "openai_compatible", "model": "llava-13b"}

        chat = mock_http.requests_to(CHAT_URL)[0]
        assert chat.headers["authorization"] == "Bearer sk-local-0123456789"
        assert json.loads(chat.content)["max_tokens"] == 300

        jobs = await json_store.list_documents(paths.vision_jobs("h1"))
        assert jobs == [{
            "createdAt": NOW.isoformat(),
            "createdBy": "member-1",
            "providerType": "openai_compatible",
            "model": "llava-13b",
            "latencyMs": jobs[0]["latencyMs"],
            "confidence": 0.9,
            "context": {"areaName": "Living room"},
        }]

    @pytest.mark.asyncio
    async def test_persisted_state_holds_no_plaintext(self, gateway, json_store, tmp_path):
        await _setup(gateway)
        raw = (tmp_path / "state.json").read_text(encoding="utf-8")
        assert "sk-local-0123456789" not in raw
        assert '"ciphertext": "local:' in raw

    @pytest.mark.asyncio
    async def test_disable_then_enable(self, gateway, mock_http):
        mock_http.add("GET", "https://img.example.com/", httpx.Response(200, content=b"x"))
        mock_http.add("POST", CHAT_URL, httpx.Response(200, json=LAMP_RESPONSE))
        await _setup(gateway, {**CONFIG, "enabled": False})
        payload = {"householdId": "h1", "imageRef": {"imageUrl": "https://img.example.com/a.jpg"}}

        with pytest.raises(CategorizationDisabled):
            await gateway.categorize(payload, "member-1")
        assert mock_http.requests == []

        await gateway.save_config({"householdId": "h1", "config": CONFIG}, "owner-1")
        result = await gateway.categorize(payload, "member-1")
        assert result["suggestion"]["confidence"] == 0.9

    @pytest.mark.asyncio
    async def test_validate_without_secret(self, gateway, mock_http):
        await gateway.save_config({"householdId": "h1", "config": CONFIG}, "owner-1")
        with pytest.raises(SecretMissing):
            await gateway.validate_config({"householdId": "h1"}, "owner-1")
        assert mock_http.requests == []


class TestSecretLifecycle:
    @pytest.mark.asyncio
    async def test_concurrent_set_secret_converges(self, gateway, json_store):
        keys = [f"sk-concurrent-{i:04d}" for i in range(8)]
        await asyncio.gather(*(
            gateway.set_secret({"householdId": "h1", "apiKey": k}, "owner-1") for k in keys
        ))
        doc = await json_store.get(paths.llm_secret("h1"))
        assert await gateway.codec.decrypt(doc["ciphertext"]) in keys

    @pytest.mark.asyncio
    async def test_switch_to_kms_keeps_local_secret_readable(
        self, settings, json_store, object_storage, http_client, local_context,
        fake_kms_client, mock_http,
    ):
        mock_http.add("GET", "https://llm.internal.example/v1/models",
                      httpx.Response(200, json={"object": "list", "data": []}))
        local_gateway = VisionGateway(
            settings, json_store, object_storage, http_client, encryption=local_context,
        )
        await _setup(local_gateway)

        kms_context = EncryptionContext(
            local=local_context.local,
            kms=KmsKeyHandle("projects/p/keys/k", client=fake_kms_client),
        )
        kms_gateway = VisionGateway(
            settings, json_store, object_storage, http_client, encryption=kms_context,
        )
        result = await kms_gateway.validate_config({"householdId": "h1"}, "owner-1")
        assert result["ok"] is True
        fake_kms_client.decrypt.assert_not_called()

        await kms_gateway.set_secret(
            {"householdId": "h1", "apiKey": "sk-kms-0123456789"}, "owner-1",
        )
        doc = await json_store.get(paths.llm_secret("h1"))
        assert doc["ciphertext"].startswith("kms:")
        assert await kms_gateway.codec.decrypt(doc["ciphertext"]) == "sk-kms-0123456789"
