# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Centralized application settings for Venmap.

This module provides a typed configuration system using Pydantic BaseSettings.
It organizes settings into logical groups and loads values from the environment
and an optional .env file at the repository root.

Settings are built once at startup (``Settings()``) and passed explicitly to the
router and the application factory; nothing in the package reads a global
settings instance.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    case_sensitive=False,
    extra="ignore",
    populate_by_name=True,
)


class APIKeysSettings(BaseSettings):
    """Operator-owned provider credentials.

    Values are loaded raw; placeholder and too-short keys are rejected later by
    ``venmap.core.credentials.validate_api_key``.
    """

    model_config = _ENV_CONFIG

    custom_api_key: str | None = Field(
        default=None,
        description="Credential for the operator-configured custom REST backend.",
        validation_alias=AliasChoices("CUSTOM_API_KEY"),
    )
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Gemini API key.",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )
    claude_api_key: str | None = Field(
        default=None,
        description="Anthropic Claude API key.",
        validation_alias=AliasChoices("CLAUDE_API_KEY", "ANTHROPIC_API_KEY"),
    )
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key.",
        validation_alias=AliasChoices("OPENAI_API_KEY"),
    )


class CustomProviderSettings(BaseSettings):
    """Wire settings for the generic/custom backend."""

    model_config = _ENV_CONFIG

    base_url: str | None = Field(
        default=None,
        description="Base URL of the custom backend (required to enable it).",
        validation_alias=AliasChoices("CUSTOM_API_BASE_URL"),
    )
    endpoint: str = Field(
        default="/chat/completions",
        description="Path appended to the base URL for generation requests.",
        validation_alias=AliasChoices("CUSTOM_API_ENDPOINT"),
    )
    model: str = Field(
        default="gpt-3.5-turbo",
        description="Model name sent in the request body.",
        validation_alias=AliasChoices("CUSTOM_API_MODEL"),
    )
    format: Literal["openai", "claude", "custom"] = Field(
        default="openai",
        description="Request/response convention the backend speaks.",
        validation_alias=AliasChoices("CUSTOM_API_FORMAT"),
    )
    header_prefix: str = Field(
        default="Bearer",
        description="Auth scheme: 'Bearer', a named key header such as 'x-api-key', or any prefix.",
        validation_alias=AliasChoices("CUSTOM_API_HEADER_PREFIX"),
    )
    max_tokens: int = Field(
        default=4000,
        description="Maximum output tokens requested from the backend.",
        validation_alias=AliasChoices("CUSTOM_API_MAX_TOKENS"),
    )
    temperature: float = Field(
        default=0.7,
        description="Sampling temperature between 0.0 and 2.0.",
        validation_alias=AliasChoices("CUSTOM_API_TEMPERATURE"),
    )

    @field_validator("base_url", mode="before")
    @classmethod
    def _blank_base_url(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("max_tokens")
    @classmethod
    def _validate_max_tokens(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("CUSTOM_API_MAX_TOKENS must be > 0")
        return value

    @field_validator("temperature")
    @classmethod
    def _validate_temperature(cls, value: float) -> float:
        if not 0.0 <= value <= 2.0:
            raise ValueError("CUSTOM_API_TEMPERATURE must be between 0.0 and 2.0")
        return value


class ProviderAdapterSettings(BaseSettings):
    """Transport settings shared by all provider adapters."""

    model_config = _ENV_CONFIG

    timeout_ms: int = Field(
        default=30000,
        description="Per-request timeout in milliseconds for provider calls.",
        validation_alias=AliasChoices("PROVIDER_TIMEOUT_MS", "TIMEOUT_MS"),
    )
    health_timeout_ms: int = Field(
        default=5000,
        description="Timeout in milliseconds for custom backend health probes.",
        validation_alias=AliasChoices("PROVIDER_HEALTH_TIMEOUT_MS"),
    )

    @field_validator("timeout_ms", "health_timeout_ms")
    @classmethod
    def _validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Value must be > 0")
        return value


class FeatureFlagsSettings(BaseSettings):
    """Feature flag toggles."""

    model_config = _ENV_CONFIG

    use_backend_api_keys: bool = Field(
        default=False,
        description="Allow POST /api/generate to spend the server-held credentials.",
        validation_alias=AliasChoices("USE_BACKEND_API_KEYS"),
    )
    fallback_enabled: bool = Field(
        default=True,
        description="Answer with the templated fallback when every provider fails.",
        validation_alias=AliasChoices("ROUTER_FALLBACK_ENABLED"),
    )


class ServerSettings(BaseSettings):
    """Server runtime parameters."""

    model_config = _ENV_CONFIG

    host: str = Field(
        default="0.0.0.0",
        description="Server host to bind to (use 0.0.0.0 in containers).",
        validation_alias=AliasChoices("HOST", "SERVER_HOST"),
    )
    port: int = Field(
        default=3001,
        description="Server port to listen on (must be > 0).",
        validation_alias=AliasChoices("PORT", "SERVER_PORT"),
    )
    debug: bool = Field(
        default=False,
        description="Expose internal error messages in 500 responses.",
        validation_alias=AliasChoices("DEBUG", "SERVER_DEBUG"),
    )
    environment: str = Field(
        default="development",
        description="Deployment environment name reported by /health.",
        validation_alias=AliasChoices("NODE_ENV", "APP_ENV"),
    )
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Origin allowed by CORS.",
        validation_alias=AliasChoices("FRONTEND_URL"),
    )

    @field_validator("debug", mode="before")
    @classmethod
    def _parse_debug_flag(cls, value: Any) -> bool:
        """Parse debug flag from various string/boolean formats."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")
        return bool(value) if value is not None else False

    @field_validator("port")
    @classmethod
    def _validate_port(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("PORT must be > 0")
        return value


class ObservabilitySettings(BaseSettings):
    """Logging and metrics settings."""

    model_config = _ENV_CONFIG

    log_level: str = Field(
        default="info",
        description="Log level for application logs.",
        validation_alias=AliasChoices("LOG_LEVEL", "OBS_LOG_LEVEL"),
    )
    prometheus_enabled: bool = Field(
        default=True,
        description="Expose Prometheus metrics at /metrics/prometheus.",
        validation_alias=AliasChoices("PROMETHEUS_ENABLED", "OBS_PROMETHEUS_ENABLED"),
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        """Normalize log level to lowercase string."""
        if isinstance(value, str):
            return value.lower()
        return str(value)


class ClientSettings(BaseSettings):
    """Settings for the client-side router that talks to a Venmap server."""

    model_config = _ENV_CONFIG

    backend_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the Venmap server used in proxy mode.",
        validation_alias=AliasChoices("VENMAP_BACKEND_URL", "BACKEND_URL"),
    )
    developer_mode: bool = Field(
        default=True,
        description="Allow the client to call the server when no user keys are set.",
        validation_alias=AliasChoices("VENMAP_DEVELOPER_MODE", "DEVELOPER_MODE"),
    )


class Settings(BaseSettings):
    """Root settings object combining all configuration groups."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    api: APIKeysSettings = Field(default_factory=APIKeysSettings)
    custom: CustomProviderSettings = Field(default_factory=CustomProviderSettings)
    providers: ProviderAdapterSettings = Field(default_factory=ProviderAdapterSettings)
    features: FeatureFlagsSettings = Field(default_factory=FeatureFlagsSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    client: ClientSettings = Field(default_factory=ClientSettings)
