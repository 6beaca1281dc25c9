# src/providers/adapters/gemini_adapter.py — v2
"""Google Gemini adapter over the generativelanguage REST API.

Calls ``models/{model}:generateContent`` directly with httpx: the key
travels as the ``key`` query parameter and the image as inline base64.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

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


class GeminiAdapter(BaseVisionAdapter):
    """Google Gemini multimodal adapter."""

    async def classify_image(
        self,
        credential: str,
        config: HouseholdLlmConfig,
        prompt: str,
        image: VisionImageInput,
    ) -> VisionSuggestion:
        body: dict[str, Any] = {
            "generationConfig": {
                "temperature": config.effective_temperature,
                "maxOutputTokens": config.effective_max_tokens,
            },
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {
                            "text": f"{prompt} Categorize this item image and "
                            "return strict JSON only."
                        },
                        {
                            "inlineData": {
                                "mimeType": image.mime_type,
                                "data": self._b64(image),
                            }
                        },
                    ],
                }
            ],
        }
        # The request URL carries the key; exceptions are not chained or logged.
        try:
            response = await self._http.post(
                f"{self._model_url(config)}:generateContent",
                params={"key": credential},
                json=body,
            )
        except httpx.HTTPError:
            logger.warning("%s unreachable", self.display_name)
            raise ProviderRequestFailed(self.display_name, None) from None

        if not response.is_success:
            logger.warning(
                "%s request failed: status=%d", self.display_name, response.status_code,
            )
            raise ProviderRequestFailed(self.display_name, response.status_code)

        try:
            payload = response.json()
        except ValueError:
            raise ProviderOutputInvalid("provider response body was not JSON") from None
        return parse_suggestion(self._extract_text(payload))

    async def validate(
        self, credential: str, config: HouseholdLlmConfig,
    ) -> ValidationResult:
        try:
            response = await self._http.get(
                self._model_url(config), params={"key": credential},
            )
        except httpx.HTTPError:
            return ValidationResult(ok=False, message=UNREACHABLE_MESSAGE)
        if not response.is_success:
            return self._failed("Model lookup failed", response.status_code)
        return ValidationResult(ok=True, message=VALIDATION_OK_MESSAGE)

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.GEMINI

    @property
    def display_name(self) -> str:
        return "Gemini"

    # --- Internal helpers ---

    def _model_url(self, config: HouseholdLlmConfig) -> str:
        base = self._settings.gemini_base_url.rstrip("/")
        return f"{base}/models/{quote(config.model, safe='')}"

    @staticmethod
    def _extract_text(payload: Any) -> str:
        """Join the text parts of the first candidate."""
        if not isinstance(payload, dict):
            return ""
        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return ""
        if not isinstance(candidates[0], dict):
            return ""
        content = candidates[0].get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return ""
        return "\n".join(
            part["text"] for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
