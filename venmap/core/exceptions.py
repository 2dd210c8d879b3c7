# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Custom exceptions for Venmap.

This module defines all custom exceptions used throughout the application
to provide clear error handling and debugging information. Provider failures
are normally absorbed by the router; these types surface only for caller input
errors, startup configuration errors, and the router's strict mode.
"""

from typing import Any


class VenmapError(Exception):
    """Base exception for all Venmap errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """Initialize Venmap base exception."""
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "message": self.message,
                "type": self.__class__.__name__,
                "code": self.error_code,
                "details": self.details,
            }
        }


class ConfigurationError(VenmapError):
    """Exception for configuration-related errors."""

    def __init__(self, message: str, config_key: str | None = None, **kwargs: Any) -> None:
        """Initialize configuration error with key context."""
        self.config_key = config_key
        details = kwargs.get("details", {})
        details["config_key"] = config_key
        super().__init__(message, error_code="configuration_error", details=details)


class ValidationError(VenmapError):
    """Exception for input validation errors."""

    def __init__(self, message: str, field: str | None = None, **kwargs: Any) -> None:
        """Initialize validation error with field context."""
        self.field = field
        details = kwargs.get("details", {})
        details["field"] = field
        super().__init__(message, error_code="validation_error", details=details)


class ProviderError(VenmapError):
    """Exception for provider-related errors."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize provider error with provider context."""
        self.provider = provider
        self.status_code = status_code
        details = kwargs.get("details", {})
        details.update({"provider": provider, "status_code": status_code})
        super().__init__(message, kwargs.get("error_code", "provider_error"), details)


class AuthenticationError(ProviderError):
    """Upstream rejected the credential (401/403)."""

    def __init__(self, message: str = "Authentication failed", **kwargs: Any) -> None:
        super().__init__(message, error_code="authentication_error", **kwargs)


class RateLimitError(ProviderError):
    """Upstream rate limit exceeded (429)."""

    def __init__(self, message: str = "Rate limit exceeded", **kwargs: Any) -> None:
        super().__init__(message, error_code="rate_limit_exceeded", **kwargs)


class ModelNotFoundError(ProviderError):
    """Endpoint or model not found upstream (404)."""

    def __init__(self, message: str = "Endpoint not found", **kwargs: Any) -> None:
        super().__init__(message, error_code="not_found", **kwargs)


class MalformedResponseError(ProviderError):
    """2xx response without text at any known location."""

    def __init__(self, message: str = "Malformed provider response", **kwargs: Any) -> None:
        super().__init__(message, error_code="malformed_response", **kwargs)


class ProviderUnavailableError(ProviderError):
    """Transport-level failure: DNS, refused connection, timeout."""

    def __init__(self, message: str = "Provider unreachable", **kwargs: Any) -> None:
        super().__init__(message, error_code="network_unreachable", **kwargs)


class NoProvidersAvailableError(VenmapError):
    """Exception for when no providers are configured."""

    def __init__(self, message: str = "No AI provider is configured", **kwargs: Any) -> None:
        """Initialize no providers available error."""
        super().__init__(message, error_code="no_providers_available", **kwargs)
