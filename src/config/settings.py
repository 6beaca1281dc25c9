# src/config/settings.py — v2
"""Gateway configuration: environment variables and .env, parsed by pydantic-settings.

Single source of truth for deployment-specific settings: encryption mode,
provider endpoints, storage backends and logging.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_SEED = "stow-local-dev-only-change-me"


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Process-wide gateway settings (storage, secrets, providers, logging)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "test", "production"] = "development"

    # === SECRET ENCRYPTION ===
    kms_key_name: str = ""
    local_secret_encryption_key: str = DEFAULT_LOCAL_SEED
    local_secret_previous_keys: str = ""

    # === PROVIDER ENDPOINTS ===
    openai_compatible_base_url: str = "https://api.openai.com/v1"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_version: str = "2023-06-01"

    # === IMAGES ===
    signed_url_ttl_seconds: int = 300

    # === Document store ===
    document_store: Literal["memory", "json"] = "memory"
    document_store_path: Path | None = None

    # === Object storage ===
    object_storage: Literal["memory", "s3"] = "memory"
    object_storage_bucket: str = ""
    object_storage_region: str = ""
    object_storage_endpoint_url: str = ""

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("signed_url_ttl_seconds")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("signed_url_ttl_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.object_storage == "s3" and not self.object_storage_bucket:
            errors.append("OBJECT_STORAGE=s3 requires OBJECT_STORAGE_BUCKET")

        if self.document_store == "json" and self.document_store_path is None:
            errors.append("DOCUMENT_STORE=json requires DOCUMENT_STORE_PATH")

        if errors:
            raise ConfigurationError("; ".join(errors))

        # The default seed is public. Production deployments are expected to
        # override it; this is reported, not enforced.
        if (
            self.environment == "production"
            and not self.kms_key_name
            and self.local_secret_encryption_key == DEFAULT_LOCAL_SEED
        ):
            logger.warning(
                "Local secret encryption is using the default seed in production"
            )

        return self

    # --- Helpers ---

    @property
    def kms_enabled(self) -> bool:
        return bool(self.kms_key_name)

    @property
    def local_secret_previous_keys_list(self) -> list[str]:
        """Parse comma-separated retired local seeds."""
        return [
            k.strip() for k in self.local_secret_previous_keys.split(",") if k.strip()
        ]


def load_settings(**overrides: object) -> Settings:
    """Build Settings from the environment, applying keyword overrides last.

    Args:
        **overrides: Field-level overrides (for testing or tooling).

    Returns:
        A consistent Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
