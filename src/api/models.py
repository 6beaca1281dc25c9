# src/api/models.py — v2
"""Request payloads accepted by the gateway facade (camelCase on the wire)."""

from __future__ import annotations

from pydantic import SecretStr, field_validator

from stowvision.core.models import (
    CamelModel,
    CategorizeContext,
    HouseholdLlmConfig,
    NonEmptyStr,
    StorageImageRef,
    UrlImageRef,
)

MIN_API_KEY_LENGTH = 8


class SaveConfigInput(CamelModel):
    household_id: NonEmptyStr
    config: HouseholdLlmConfig


class SetSecretInput(CamelModel):
    household_id: NonEmptyStr
    api_key: SecretStr

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: SecretStr) -> SecretStr:
        if len(v.get_secret_value()) < MIN_API_KEY_LENGTH:
            raise ValueError(f"must be at least {MIN_API_KEY_LENGTH} characters")
        return v


class ValidateConfigInput(CamelModel):
    household_id: NonEmptyStr


class CategorizeInput(CamelModel):
    household_id: NonEmptyStr
    image_ref: StorageImageRef | UrlImageRef
    context: CategorizeContext | None = None
