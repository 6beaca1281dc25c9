# tests/unit/crypto/test_secret_codec.py — v1
"""Tests for crypto/secret_codec.py — kms: and local: envelopes."""

from __future__ import annotations

import base64
from unittest.mock import AsyncMock

import pytest

from stowvision.core.errors import (
    DecryptionFailed,
    DecryptionUnconfigured,
    EncryptionUnavailable,
    UnknownEnvelopeFormat,
)
from stowvision.crypto.encryption_context import (
    EncryptionContext,
    KmsKeyHandle,
    LocalKeyRing,
)
from stowvision.crypto.secret_codec import SecretCodec

KEY_NAME = "projects/p/locations/global/keyRings/r/cryptoKeys/k"


def _kms_codec(client) -> SecretCodec:
    return SecretCodec(
        EncryptionContext(
            local=LocalKeyRing.from_seeds("test-seed"),
            kms=KmsKeyHandle(KEY_NAME, client=client),
        )
    )


class TestLocalEnvelope:
    @pytest.mark.asyncio
    async def test_round_trip(self, codec):
        envelope = await codec.encrypt("sk-abc123")
        assert envelope.startswith("local:")
        assert await codec.decrypt(envelope) == "sk-abc123"

    @pytest.mark.asyncio
    async def test_envelope_shape(self, codec):
        envelope = await codec.encrypt("sk-abc123")
        iv, tag, ct = envelope[len("local:"):].split(":")
        assert len(base64.b64decode(iv)) == 12
        assert len(base64.b64decode(tag)) == 16
        assert len(base64.b64decode(ct)) == len("sk-abc123")

    @pytest.mark.asyncio
    async def test_fresh_nonce_per_call(self, codec):
        first = await codec.encrypt("same-key-value")
        second = await codec.encrypt("same-key-value")
        assert first != second
        assert first.split(":")[1] != second.split(":")[1]

    @pytest.mark.asyncio
    async def test_unicode_plaintext(self, codec):
        envelope = await codec.encrypt("clé-secrète-✓")
        assert await codec.decrypt(envelope) == "clé-secrète-✓"

    @pytest.mark.asyncio
    async def test_other_seed_cannot_decrypt(self, codec):
        envelope = await codec.encrypt("sk-abc123")
        other = SecretCodec(EncryptionContext(local=LocalKeyRing.from_seeds("other")))
        with pytest.raises(DecryptionFailed):
            await other.decrypt(envelope)

    @pytest.mark.asyncio
    async def test_retired_seed_still_decrypts(self):
        old = SecretCodec(EncryptionContext(local=LocalKeyRing.from_seeds("old-seed")))
        envelope = await old.encrypt("sk-rotated")
        rotated = SecretCodec(
            EncryptionContext(local=LocalKeyRing.from_seeds("new-seed", ["old-seed"]))
        )
        assert await rotated.decrypt(envelope) == "sk-rotated"

    @pytest.mark.asyncio
    async def test_tampered_ciphertext_fails(self, codec):
        envelope = await codec.encrypt("sk-abc123")
        prefix, iv, tag, ct = envelope.split(":")
        raw = bytearray(base64.b64decode(ct))
        raw[0] ^= 0x01
        tampered = ":".join([prefix, iv, tag, base64.b64encode(bytes(raw)).decode()])
        with pytest.raises(DecryptionFailed):
            await codec.decrypt(tampered)


class TestMalformedEnvelopes:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("envelope", ["", "plain-text", "aes:abc", "KMS:abc"])
    async def test_unknown_prefix(self, codec, envelope):
        with pytest.raises(UnknownEnvelopeFormat, match="Unknown secret envelope format"):
            await codec.decrypt(envelope)

    @pytest.mark.asyncio
    async def test_wrong_field_count(self, codec):
        with pytest.raises(UnknownEnvelopeFormat):
            await codec.decrypt("local:AAAA:BBBB")

    @pytest.mark.asyncio
    async def test_invalid_base64(self, codec):
        with pytest.raises(UnknownEnvelopeFormat):
            await codec.decrypt("local:!!!:???:***")

    @pytest.mark.asyncio
    async def test_wrong_nonce_length(self, codec):
        short = base64.b64encode(b"x" * 8).decode()
        tag = base64.b64encode(b"t" * 16).decode()
        with pytest.raises(UnknownEnvelopeFormat):
            await codec.decrypt(f"local:{short}:{tag}:{short}")


class TestKmsEnvelope:
    @pytest.mark.asyncio
    async def test_round_trip(self, fake_kms_client):
        codec = _kms_codec(fake_kms_client)
        envelope = await codec.encrypt("sk-kms-key")
        assert envelope.startswith("kms:")
        assert await codec.decrypt(envelope) == "sk-kms-key"

    @pytest.mark.asyncio
    async def test_request_names_key(self, fake_kms_client):
        await _kms_codec(fake_kms_client).encrypt("sk-kms-key")
        request = fake_kms_client.encrypt.call_args.kwargs["request"]
        assert request["name"] == KEY_NAME
        assert request["plaintext"] == b"sk-kms-key"

    @pytest.mark.asyncio
    async def test_kms_mode_still_reads_local(self, codec, fake_kms_client):
        legacy = await codec.encrypt("sk-legacy")
        assert await _kms_codec(fake_kms_client).decrypt(legacy) == "sk-legacy"
        fake_kms_client.decrypt.assert_not_called()

    @pytest.mark.asyncio
    async def test_kms_envelope_without_kms(self, codec, fake_kms_client):
        envelope = await _kms_codec(fake_kms_client).encrypt("sk-kms-key")
        with pytest.raises(DecryptionUnconfigured):
            await codec.decrypt(envelope)

    @pytest.mark.asyncio
    async def test_encrypt_failure(self):
        client = AsyncMock()
        client.encrypt.side_effect = RuntimeError("kms down")
        with pytest.raises(EncryptionUnavailable):
            await _kms_codec(client).encrypt("sk-kms-key")

    @pytest.mark.asyncio
    async def test_encrypt_empty_ciphertext(self):
        client = AsyncMock()
        client.encrypt.return_value = type("R", (), {"ciphertext": b""})()
        with pytest.raises(EncryptionUnavailable):
            await _kms_codec(client).encrypt("sk-kms-key")

    @pytest.mark.asyncio
    async def test_decrypt_failure(self):
        client = AsyncMock()
        client.decrypt.side_effect = RuntimeError("permission denied")
        envelope = "kms:" + base64.b64encode(b"opaque").decode()
        with pytest.raises(DecryptionFailed):
            await _kms_codec(client).decrypt(envelope)

    @pytest.mark.asyncio
    async def test_empty_string_round_trip(self, fake_kms_client):
        codec = _kms_codec(fake_kms_client)
        assert await codec.decrypt(await codec.encrypt("")) == ""

    @pytest.mark.asyncio
    async def test_decrypt_missing_plaintext(self):
        client = AsyncMock()
        client.decrypt.return_value = type("R", (), {"plaintext": None})()
        envelope = "kms:" + base64.b64encode(b"opaque").decode()
        with pytest.raises(DecryptionFailed):
            await _kms_codec(client).decrypt(envelope)
