# src/crypto/encryption_context.py — v1
"""Process-wide encryption handles, built once at startup.

An EncryptionContext always carries the derived local key ring, and
optionally a KMS key handle. New envelopes are written under KMS when a
handle is present; reading dispatches on the envelope prefix alone.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from stowvision.config.settings import Settings

logger = logging.getLogger(__name__)


def derive_local_key(seed: str) -> bytes:
    """SHA-256 of the seed: a 32-byte AES-256 key."""
    return hashlib.sha256(seed.encode("utf-8")).digest()


@dataclass(frozen=True)
class LocalKeyRing:
    """Current local key plus retired keys still accepted for decryption."""

    primary: bytes
    previous: tuple[bytes, ...] = ()

    @classmethod
    def from_seeds(cls, seed: str, previous_seeds: list[str] | None = None) -> LocalKeyRing:
        return cls(
            primary=derive_local_key(seed),
            previous=tuple(derive_local_key(s) for s in previous_seeds or []),
        )

    def candidates(self) -> tuple[bytes, ...]:
        return (self.primary, *self.previous)


class KmsKeyHandle:
    """Cloud KMS key resource with a lazily constructed async client."""

    def __init__(self, key_name: str, client: Any = None) -> None:
        self.key_name = key_name
        self.__client = client

    @property
    def _client(self) -> Any:
        """Lazy-init KMS client (only on first call)."""
        if self.__client is None:
            try:
                from google.cloud import kms
            except ImportError as e:
                raise ImportError(
                    "google-cloud-kms package required: pip install google-cloud-kms"
                ) from e
            self.__client = kms.KeyManagementServiceAsyncClient()
            logger.debug("KMS client initialized for %s", self.key_name)
        return self.__client

    async def encrypt(self, plaintext: bytes) -> bytes:
        response = await self._client.encrypt(
            request={"name": self.key_name, "plaintext": plaintext}
        )
        return bytes(response.ciphertext or b"")

    async def decrypt(self, ciphertext: bytes) -> bytes | None:
        response = await self._client.decrypt(
            request={"name": self.key_name, "ciphertext": ciphertext}
        )
        plaintext = response.plaintext
        return None if plaintext is None else bytes(plaintext)


@dataclass(frozen=True)
class EncryptionContext:
    """Immutable handle pair passed into the SecretCodec."""

    local: LocalKeyRing
    kms: KmsKeyHandle | None = field(default=None, compare=False)

    @property
    def write_mode(self) -> Literal["kms", "local"]:
        return "kms" if self.kms is not None else "local"

    @classmethod
    def from_settings(cls, settings: Settings, kms_client: Any = None) -> EncryptionContext:
        """Build the context for this process from settings.

        Args:
            settings: Application settings.
            kms_client: Pre-built KMS client (tests); lazily created otherwise.
        """
        local = LocalKeyRing.from_seeds(
            settings.local_secret_encryption_key,
            settings.local_secret_previous_keys_list,
        )
        kms = None
        if settings.kms_enabled:
            kms = KmsKeyHandle(settings.kms_key_name, client=kms_client)
        logger.info(
            "Encryption context ready: write_mode=%s, retired_local_keys=%d",
            "kms" if kms else "local", len(local.previous),
        )
        return cls(local=local, kms=kms)
