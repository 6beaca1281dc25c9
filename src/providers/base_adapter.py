# src/providers/base_adapter.py — v1
"""Abstract vision provider adapter.

Adapters translate one categorization or validation call into a provider's
wire format. They hold no credentials: the decrypted key is passed per call
and dropped when the call returns.
"""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod

import httpx

from stowvision.config.settings import Settings
from stowvision.core.models import (
    HouseholdLlmConfig,
    ProviderType,
    ValidationResult,
    VisionImageInput,
    VisionSuggestion,
)

VALIDATION_OK_MESSAGE = "Connection successful"
UNREACHABLE_MESSAGE = "Provider unreachable"


class BaseVisionAdapter(ABC):
    """Unified classify/validate interface for all providers."""

    def __init__(
        self, http_client: httpx.AsyncClient, settings: Settings | None = None,
    ) -> None:
        self._http = http_client
        self._settings = settings or Settings(_env_file=None)

    @abstractmethod
    async def classify_image(
        self,
        credential: str,
        config: HouseholdLlmConfig,
        prompt: str,
        image: VisionImageInput,
    ) -> VisionSuggestion:
        """Categorize one image.

        Raises:
            ProviderRequestFailed: Non-2xx response or transport failure.
            ProviderOutputInvalid: Response text is not a valid suggestion.
        """

    @abstractmethod
    async def validate(
        self, credential: str, config: HouseholdLlmConfig,
    ) -> ValidationResult:
        """Cheapest authenticated call; failures are reported, not raised."""

    @property
    @abstractmethod
    def provider_type(self) -> ProviderType:
        """Provider identifier stored in HouseholdLlmConfig."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable provider name used in error messages."""

    # --- Shared helpers ---

    @staticmethod
    def _b64(image: VisionImageInput) -> str:
        return base64.b64encode(image.data).decode("ascii")

    @staticmethod
    def _failed(label: str, status: int) -> ValidationResult:
        return ValidationResult(ok=False, message=f"{label} ({status})")
