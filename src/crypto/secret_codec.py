# src/crypto/secret_codec.py — v1
"""Envelope encryption for provider API keys.

Envelope formats:
    kms:<base64 ciphertext>
    local:<base64 iv>:<base64 tag>:<base64 ciphertext>

Local envelopes use AES-256-GCM with a fresh 12-byte nonce per call.
"""

from __future__ import annotations

import base64
import binascii
import logging
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from stowvision.core.errors import (
    DecryptionFailed,
    DecryptionUnconfigured,
    EncryptionUnavailable,
    UnknownEnvelopeFormat,
)
from stowvision.crypto.encryption_context import EncryptionContext

logger = logging.getLogger(__name__)

KMS_PREFIX = "kms:"
LOCAL_PREFIX = "local:"
NONCE_SIZE = 12
TAG_SIZE = 16


class SecretCodec:
    """Encrypts secrets under the current mode, decrypts any known mode."""

    def __init__(self, context: EncryptionContext) -> None:
        self._ctx = context

    async def encrypt(self, plaintext: str) -> str:
        """Encrypt plaintext into a new envelope string.

        Raises:
            EncryptionUnavailable: KMS is selected but the call failed or
                returned no ciphertext.
        """
        if self._ctx.kms is not None:
            try:
                ciphertext = await self._ctx.kms.encrypt(plaintext.encode("utf-8"))
            except Exception as e:
                logger.error("KMS encryption failed: %s", type(e).__name__)
                raise EncryptionUnavailable("KMS encryption failed") from e
            if not ciphertext:
                raise EncryptionUnavailable("KMS encryption returned no ciphertext")
            return KMS_PREFIX + _b64(ciphertext)

        nonce = secrets.token_bytes(NONCE_SIZE)
        sealed = AESGCM(self._ctx.local.primary).encrypt(
            nonce, plaintext.encode("utf-8"), None
        )
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        return f"{LOCAL_PREFIX}{_b64(nonce)}:{_b64(tag)}:{_b64(ciphertext)}"

    async def decrypt(self, envelope: str) -> str:
        """Decrypt an envelope produced under either mode.

        Raises:
            DecryptionUnconfigured: ``kms:`` envelope without a KMS key.
            UnknownEnvelopeFormat: unrecognized prefix or malformed fields.
            DecryptionFailed: well-formed envelope that does not decrypt.
        """
        if envelope.startswith(KMS_PREFIX):
            return await self._decrypt_kms(envelope[len(KMS_PREFIX):])
        if envelope.startswith(LOCAL_PREFIX):
            return self._decrypt_local(envelope[len(LOCAL_PREFIX):])
        raise UnknownEnvelopeFormat("Unknown secret envelope format")

    async def _decrypt_kms(self, payload: str) -> str:
        if self._ctx.kms is None:
            raise DecryptionUnconfigured("KMS decryption is not configured")
        ciphertext = _unb64(payload)
        try:
            plaintext = await self._ctx.kms.decrypt(ciphertext)
        except Exception as e:
            logger.error("KMS decryption failed: %s", type(e).__name__)
            raise DecryptionFailed("KMS decryption failed") from e
        if plaintext is None:
            raise DecryptionFailed("KMS decryption returned no plaintext")
        return plaintext.decode("utf-8")

    def _decrypt_local(self, payload: str) -> str:
        fields = payload.split(":")
        if len(fields) != 3:
            raise UnknownEnvelopeFormat("Malformed local secret envelope")
        nonce, tag, ciphertext = (_unb64(f) for f in fields)
        if len(nonce) != NONCE_SIZE or len(tag) != TAG_SIZE:
            raise UnknownEnvelopeFormat("Malformed local secret envelope")

        for index, key in enumerate(self._ctx.local.candidates()):
            try:
                plaintext = AESGCM(key).decrypt(nonce, ciphertext + tag, None)
            except InvalidTag:
                continue
            if index > 0:
                logger.info("Local envelope decrypted with retired key #%d", index)
            return plaintext.decode("utf-8")
        raise DecryptionFailed("Stored secret could not be decrypted")


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UnknownEnvelopeFormat("Secret envelope is not valid base64") from e
