# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

Field names are snake_case in Python and camelCase on the wire and in
stored documents (``model_dump(by_alias=True)``).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 400
PROMPT_PROFILE = "default_inventory"
MAX_SUGGESTION_TAGS = 15


def _require_http_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("must be an http(s) URL")
    return value


HttpUrlStr = Annotated[str, AfterValidator(_require_http_url)]
NonEmptyStr = Annotated[str, Field(min_length=1)]


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === PROVIDER CONFIGURATION ===


class ProviderType(str, Enum):
    """Closed set of supported provider protocols."""

    OPENAI_COMPATIBLE = "openai_compatible"
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"


class HouseholdLlmConfig(CamelModel):
    """Per-household provider configuration document."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore",
    )

    enabled: bool
    provider_type: ProviderType
    model: NonEmptyStr
    base_url: HttpUrlStr | None = None
    prompt_profile: Literal["default_inventory"] = PROMPT_PROFILE
    max_tokens: int | None = Field(default=None, ge=1, le=4096)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    last_validated_at: datetime | None = None
    last_validated_by: str | None = None

    @property
    def effective_temperature(self) -> float:
        return DEFAULT_TEMPERATURE if self.temperature is None else self.temperature

    @property
    def effective_max_tokens(self) -> int:
        return DEFAULT_MAX_TOKENS if self.max_tokens is None else self.max_tokens

    def to_document(self) -> dict[str, Any]:
        """Caller-settable fields only; audit fields are written by the gateway."""
        return self.model_dump(
            by_alias=True,
            mode="json",
            exclude={"last_validated_at", "last_validated_by"},
            exclude_none=True,
        )


class ValidationResult(BaseModel):
    """Outcome of a provider reachability check."""

    ok: bool
    message: str


# === SUGGESTIONS ===


class VisionSuggestion(CamelModel):
    """Validated categorization returned by a provider."""

    # Providers must use the wire (camelCase) keys.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=False)

    suggested_name: NonEmptyStr
    tags: list[NonEmptyStr] = Field(max_length=MAX_SUGGESTION_TAGS)
    notes: str | None = None
    confidence: float = Field(ge=0.0, le=1.0)
    rationale: str | None = None

    @field_validator("notes", "rationale", mode="before")
    @classmethod
    def reject_explicit_null(cls, v: Any) -> Any:
        # Optional means "may be omitted", not "may be null".
        if v is None:
            raise ValueError("must be a string when present")
        return v


class VisionImageInput(BaseModel):
    """Image bytes handed to a provider. Never persisted."""

    mime_type: str
    data: bytes
    source_url: str | None = None


# === IMAGE REFERENCES ===


class StorageImageRef(CamelModel):
    """Object-storage path with an optional pre-signed download URL."""

    storage_path: NonEmptyStr
    download_url: HttpUrlStr | None = None


class UrlImageRef(CamelModel):
    """Directly fetchable image URL."""

    image_url: HttpUrlStr


ImageRef = StorageImageRef | UrlImageRef


class CategorizeContext(CamelModel):
    """Optional placement hint supplied by the caller."""

    space_id: str | None = None
    area_id: str | None = None
    area_name: str | None = None


# === RESULTS & AUDIT ===


class ProviderInfo(CamelModel):
    provider_type: ProviderType
    model: str


class CategorizeResult(CamelModel):
    suggestion: VisionSuggestion
    provider: ProviderInfo


class VisionJob(CamelModel):
    """Audit record for one successful categorization (metadata only)."""

    created_at: datetime
    created_by: str
    provider_type: ProviderType
    model: str
    latency_ms: int
    confidence: float
    context: CategorizeContext | None = None
