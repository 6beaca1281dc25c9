# src/core/errors.py — v1
"""Typed failures raised by the gateway.

Every error carries a stable ``code`` that a transport layer maps to its
own status vocabulary, plus a message that is safe to show to the caller.
Messages never contain a decrypted credential or a raw provider body.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    """Base class for all caller-visible gateway failures."""

    code: str = "internal"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)

    def details(self) -> dict[str, Any]:
        """Structured attributes beyond code/message."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details()}


class Unauthenticated(GatewayError):
    """Authentication required."""

    code = "unauthenticated"


class PermissionDenied(GatewayError):
    """Caller lacks the required household role."""

    code = "permission_denied"


class ConfigMissing(GatewayError):
    """LLM config is not set."""

    code = "config_missing"


class SecretMissing(GatewayError):
    """LLM API key is not set."""

    code = "secret_missing"


class EncryptionUnavailable(GatewayError):
    """Secret encryption is unavailable."""

    code = "encryption_unavailable"


class DecryptionUnconfigured(GatewayError):
    """KMS decryption is not configured."""

    code = "decryption_unconfigured"


class DecryptionFailed(GatewayError):
    """Stored secret could not be decrypted."""

    code = "decryption_failed"


class UnknownEnvelopeFormat(GatewayError):
    """Unknown secret envelope format."""

    code = "unknown_envelope_format"


class UnsupportedProviderType(GatewayError):
    """Unsupported provider type."""

    code = "unsupported_provider_type"

    def __init__(self, provider_type: str) -> None:
        self.provider_type = provider_type
        super().__init__(f"Unsupported provider type: {provider_type}")

    def details(self) -> dict[str, Any]:
        return {"providerType": self.provider_type}


class ProviderRequestFailed(GatewayError):
    """Provider API request failed.

    ``status`` is None when the request never produced an HTTP response.
    """

    code = "provider_request_failed"

    def __init__(self, provider: str, status: int | None) -> None:
        self.provider = provider
        self.status = status
        if status is None:
            message = f"{provider} API request failed: provider unreachable"
        else:
            message = f"{provider} API request failed ({status})"
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"provider": self.provider, "status": self.status}


class ProviderOutputInvalid(GatewayError):
    """Provider response did not contain a valid suggestion."""

    code = "provider_output_invalid"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid vision suggestion payload: {detail}")

    def details(self) -> dict[str, Any]:
        return {"detail": self.detail}


class ImageNotFound(GatewayError):
    """Image file not found in storage."""

    code = "image_not_found"


class ImageFetchFailed(GatewayError):
    """Failed to fetch image."""

    code = "image_fetch_failed"

    def __init__(self, status: int | None) -> None:
        self.status = status
        if status is None:
            message = "Failed to fetch image: source unreachable"
        else:
            message = f"Failed to fetch image ({status})"
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"status": self.status}


class CategorizationDisabled(GatewayError):
    """Vision categorization is disabled for this household."""

    code = "categorization_disabled"


class InvalidArgument(GatewayError):
    """Request payload failed validation."""

    code = "invalid_argument"

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Invalid argument: {field}")

    def details(self) -> dict[str, Any]:
        return {"field": self.field}
