# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Provider configuration registry.

Builds the fixed-priority list of backends from settings: the operator's custom
backend first, then Gemini, Claude and OpenAI. The order is data, not control
flow, so it can be inspected and tested.
"""

from __future__ import annotations

import httpx
import structlog

from ..core.credentials import mask_api_key
from ..settings import Settings
from .base import ProviderConfig, ProviderKind, RequestFormat
from .http_adapter import HTTPProviderAdapter

logger = structlog.get_logger(__name__)

CUSTOM_LABEL = "Custom API"
GEMINI_LABEL = "Gemini"
CLAUDE_LABEL = "Claude"
OPENAI_LABEL = "OpenAI"

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_MODEL = "gemini-1.5-pro-latest"
CLAUDE_BASE_URL = "https://api.anthropic.com"
CLAUDE_MODEL = "claude-3-sonnet-20240229"
ANTHROPIC_VERSION = "2023-06-01"
OPENAI_BASE_URL = "https://api.openai.com/v1"
OPENAI_MODEL = "gpt-4"

PROVIDER_PRIORITY = (
    ProviderKind.CUSTOM,
    ProviderKind.GEMINI,
    ProviderKind.CLAUDE,
    ProviderKind.OPENAI,
)


def custom_config(settings: Settings) -> ProviderConfig:
    custom = settings.custom
    return ProviderConfig(
        kind=ProviderKind.CUSTOM,
        label=CUSTOM_LABEL,
        credential=settings.api.custom_api_key,
        base_url=custom.base_url,
        endpoint_path=custom.endpoint,
        model=custom.model,
        request_format=RequestFormat(custom.format),
        header_prefix=custom.header_prefix,
        max_tokens=custom.max_tokens,
        temperature=custom.temperature,
    )


def gemini_config(credential: str | None, model: str = GEMINI_MODEL) -> ProviderConfig:
    return ProviderConfig(
        kind=ProviderKind.GEMINI,
        label=GEMINI_LABEL,
        credential=credential,
        base_url=GEMINI_BASE_URL,
        endpoint_path=f"/models/{model}:generateContent",
        model=model,
        request_format=RequestFormat.GEMINI,
        header_prefix="x-goog-api-key",
    )


def claude_config(
    credential: str | None, model: str = CLAUDE_MODEL, wrap_context: bool = True
) -> ProviderConfig:
    return ProviderConfig(
        kind=ProviderKind.CLAUDE,
        label=CLAUDE_LABEL,
        credential=credential,
        base_url=CLAUDE_BASE_URL,
        endpoint_path="/v1/messages",
        model=model,
        request_format=RequestFormat.CLAUDE,
        header_prefix="x-api-key",
        wrap_context=wrap_context,
        extra_headers={"anthropic-version": ANTHROPIC_VERSION},
    )


def openai_config(
    credential: str | None, model: str = OPENAI_MODEL, wrap_context: bool = True
) -> ProviderConfig:
    return ProviderConfig(
        kind=ProviderKind.OPENAI,
        label=OPENAI_LABEL,
        credential=credential,
        base_url=OPENAI_BASE_URL,
        endpoint_path="/chat/completions",
        model=model,
        request_format=RequestFormat.OPENAI,
        header_prefix="Bearer",
        wrap_context=wrap_context,
    )


def build_provider_configs(settings: Settings) -> list[ProviderConfig]:
    """Return every server-side backend in priority order, configured or not."""
    configs = {
        ProviderKind.CUSTOM: custom_config(settings),
        ProviderKind.GEMINI: gemini_config(settings.api.gemini_api_key),
        ProviderKind.CLAUDE: claude_config(settings.api.claude_api_key),
        ProviderKind.OPENAI: openai_config(settings.api.openai_api_key),
    }
    ordered = [configs[kind] for kind in PROVIDER_PRIORITY]

    for config in ordered:
        if config.is_configured:
            logger.info(
                "provider_configured",
                provider=config.label,
                url=config.url,
                key=mask_api_key(config.api_key),
            )
        elif config.credential and config.api_key is None:
            logger.warning("provider_credential_rejected", provider=config.label)
        elif config.kind is ProviderKind.CUSTOM and config.api_key and not config.base_url:
            logger.warning("provider_missing_base_url", provider=config.label)
    return ordered


def build_adapters(
    configs: list[ProviderConfig], client: httpx.AsyncClient
) -> list[HTTPProviderAdapter]:
    """Create adapters for the configured backends, preserving order."""
    return [HTTPProviderAdapter(config, client) for config in configs if config.is_configured]
