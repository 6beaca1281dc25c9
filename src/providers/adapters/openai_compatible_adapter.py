# src/providers/adapters/openai_compatible_adapter.py — v1
"""OpenAI-compatible chat-completions adapter.

Uses the official openai SDK over the gateway's shared httpx client, so any
server exposing ``{baseUrl}/chat/completions`` with bearer auth works.
"""

from __future__ import annotations

import logging
from typing import Any

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from stowvision.core.errors import ProviderOutputInvalid, ProviderRequestFailed
from stowvision.core.models import (
    HouseholdLlmConfig,
    ProviderType,
    ValidationResult,
    VisionImageInput,
    VisionSuggestion,
)
from stowvision.providers.base_adapter import (
    UNREACHABLE_MESSAGE,
    VALIDATION_OK_MESSAGE,
    BaseVisionAdapter,
)
from stowvision.providers.normalizer import parse_suggestion

logger = logging.getLogger(__name__)


class OpenAICompatibleAdapter(BaseVisionAdapter):
    """Adapter for OpenAI and OpenAI-compatible endpoints."""

    async def classify_image(
        self,
        credential: str,
        config: HouseholdLlmConfig,
        prompt: str,
        image: VisionImageInput,
    ) -> VisionSuggestion:
        client = self._client(credential, config)
        data_url = f"data:{image.mime_type};base64,{self._b64(image)}"
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Categorize this item image."},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ],
            },
        ]
        try:
            completion = await client.chat.completions.create(
                model=config.model,
                temperature=config.effective_temperature,
                max_tokens=config.effective_max_tokens,
                response_format={"type": "json_object"},
                messages=messages,
            )
        except APIStatusError as e:
            logger.warning("%s request failed: status=%d", self.display_name, e.status_code)
            raise ProviderRequestFailed(self.display_name, e.status_code) from None
        except APIConnectionError:
            logger.warning("%s unreachable", self.display_name)
            raise ProviderRequestFailed(self.display_name, None) from None

        if isinstance(completion, (str, bytes)):
            raise ProviderOutputInvalid("provider response body was not JSON")
        choices = getattr(completion, "choices", None)
        message = getattr(choices[0], "message", None) if choices else None
        return parse_suggestion(getattr(message, "content", None) or "")

    async def validate(
        self, credential: str, config: HouseholdLlmConfig,
    ) -> ValidationResult:
        client = self._client(credential, config)
        try:
            await client.models.list()
        except APIStatusError as e:
            return self._failed("Model list failed", e.status_code)
        except APIConnectionError:
            return ValidationResult(ok=False, message=UNREACHABLE_MESSAGE)
        return ValidationResult(ok=True, message=VALIDATION_OK_MESSAGE)

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.OPENAI_COMPATIBLE

    @property
    def display_name(self) -> str:
        return "OpenAI-compatible"

    # --- Internal helpers ---

    def base_url(self, config: HouseholdLlmConfig) -> str:
        """Configured base URL without trailing slashes."""
        return (config.base_url or self._settings.openai_compatible_base_url).rstrip("/")

    def _client(self, credential: str, config: HouseholdLlmConfig) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=credential,
            base_url=self.base_url(config),
            http_client=self._http,
            max_retries=0,
        )
