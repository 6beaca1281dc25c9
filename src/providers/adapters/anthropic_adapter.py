# src/providers/adapters/anthropic_adapter.py — v2
"""Anthropic Messages API adapter.

Uses the official anthropic SDK over the gateway's shared httpx client.
The categorization prompt goes in the ``system`` field; the image is sent
as a base64 content block ahead of a short instruction.
"""

from __future__ import annotations

import logging
from typing import Any

from anthropic import APIConnectionError, APIStatusError, AsyncAnthropic

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

VALIDATION_MAX_TOKENS = 8


class AnthropicAdapter(BaseVisionAdapter):
    """Adapter for Anthropic Claude models."""

    async def classify_image(
        self,
        credential: str,
        config: HouseholdLlmConfig,
        prompt: str,
        image: VisionImageInput,
    ) -> VisionSuggestion:
        content_blocks: list[dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.mime_type,
                    "data": self._b64(image),
                },
            },
            {
                "type": "text",
                "text": "Categorize this item image. Return strict JSON only.",
            },
        ]
        try:
            response = await self._client(credential).messages.create(
                model=config.model,
                max_tokens=config.effective_max_tokens,
                temperature=config.effective_temperature,
                system=prompt,
                messages=[{"role": "user", "content": content_blocks}],
            )
        except APIStatusError as e:
            logger.warning("%s request failed: status=%d", self.display_name, e.status_code)
            raise ProviderRequestFailed(self.display_name, e.status_code) from None
        except APIConnectionError:
            logger.warning("%s unreachable", self.display_name)
            raise ProviderRequestFailed(self.display_name, None) from None

        if isinstance(response, (str, bytes)):
            raise ProviderOutputInvalid("provider response body was not JSON")
        return parse_suggestion(self._extract_text(response))

    async def validate(
        self, credential: str, config: HouseholdLlmConfig,
    ) -> ValidationResult:
        try:
            await self._client(credential).messages.create(
                model=config.model,
                max_tokens=VALIDATION_MAX_TOKENS,
                messages=[{"role": "user", "content": "Reply with OK"}],
            )
        except APIStatusError as e:
            return self._failed("Validation request failed", e.status_code)
        except APIConnectionError:
            return ValidationResult(ok=False, message=UNREACHABLE_MESSAGE)
        return ValidationResult(ok=True, message=VALIDATION_OK_MESSAGE)

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.ANTHROPIC

    @property
    def display_name(self) -> str:
        return "Anthropic"

    # --- Internal helpers ---

    def _client(self, credential: str) -> AsyncAnthropic:
        return AsyncAnthropic(
            api_key=credential,
            base_url=self._settings.anthropic_base_url,
            http_client=self._http,
            max_retries=0,
            default_headers={"anthropic-version": self._settings.anthropic_version},
        )

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Join all text blocks of a Messages response."""
        return "\n".join(
            getattr(block, "text", "") or ""
            for block in getattr(response, "content", None) or []
            if getattr(block, "type", None) == "text"
        )
