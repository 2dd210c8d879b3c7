# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
AI provider router.

Tries the configured backends strictly in priority order, returns the first
success, and otherwise answers with the templated fallback. Provider failures
never reach the caller in the default mode.
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx
import structlog

from .core.exceptions import NoProvidersAvailableError, ValidationError
from .fallback import FallbackResponder
from .providers.base import (
    FALLBACK_PROVIDER,
    FailureReason,
    GenerationRequest,
    GenerationResult,
    LLMProviderAdapter,
    ProviderConfig,
    ProviderKind,
    ProviderOutcome,
    outcome_to_error,
)
from .providers.registry import build_adapters, build_provider_configs
from .settings import Settings
from .telemetry.metrics import ROUTER_FALLBACKS, ROUTER_REQUESTS

logger = structlog.get_logger(__name__)

NOT_CONFIGURED_REASON = "No AI provider is configured"
NO_ACTIVE_PROVIDER = "None"

_CONFIG_INFO_KEYS = {
    ProviderKind.CUSTOM: "customAPI",
    ProviderKind.GEMINI: "gemini",
    ProviderKind.CLAUDE: "claude",
    ProviderKind.OPENAI: "openai",
}


class AIRouter:
    """Orchestrates provider attempts for one deployment.

    Args:
        adapters: Adapters for the configured backends, highest priority first.
        configs: Every known backend config (configured or not), used for
            reporting. Defaults to the adapters' configs.
        fallback: Responder used when every adapter fails.
        fallback_enabled: When False, the last failure is raised as a
            ``ProviderError`` instead of being answered by the fallback.
        client: HTTP client shared by the adapters; closed by ``aclose()``.
    """

    def __init__(
        self,
        adapters: Sequence[LLMProviderAdapter],
        configs: Sequence[ProviderConfig] | None = None,
        fallback: FallbackResponder | None = None,
        fallback_enabled: bool = True,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.adapters = tuple(adapters)
        self.configs = tuple(configs) if configs is not None else tuple(
            a.config for a in self.adapters
        )
        self.fallback = fallback or FallbackResponder()
        self.fallback_enabled = fallback_enabled
        self._client = client

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> "AIRouter":
        if client is None:
            client = httpx.AsyncClient(timeout=settings.providers.timeout_ms / 1000)
        configs = build_provider_configs(settings)
        return cls(
            adapters=build_adapters(configs, client),
            configs=configs,
            fallback_enabled=settings.features.fallback_enabled,
            client=client,
        )

    @property
    def provider_order(self) -> list[str]:
        return [adapter.name for adapter in self.adapters]

    async def generate(self, prompt: str, context: str | None = None) -> GenerationResult:
        """Answer ``prompt``; always returns a result unless the prompt itself is invalid."""
        if not isinstance(prompt, str) or not prompt:
            raise ValidationError("Prompt is required and must be a string", field="prompt")

        request = GenerationRequest(prompt=prompt, context=context or None)
        last_label: str | None = None
        last_outcome: ProviderOutcome | None = None

        for adapter in self.adapters:
            outcome = await self._attempt(adapter, request)
            if outcome.ok:
                ROUTER_REQUESTS.labels(provider=adapter.name).inc()
                logger.info(
                    "provider_succeeded", provider=adapter.name, latency_ms=outcome.latency_ms
                )
                return GenerationResult(text=outcome.output_text, provider=adapter.name)

            logger.warning(
                "provider_failed_trying_next",
                provider=adapter.name,
                reason=outcome.failure.value,
                status_code=outcome.status_code,
                error=outcome.error,
            )
            last_label, last_outcome = adapter.name, outcome

        return self._fall_back(prompt, last_label, last_outcome)

    async def _attempt(
        self, adapter: LLMProviderAdapter, request: GenerationRequest
    ) -> ProviderOutcome:
        try:
            return await adapter.invoke(request)
        except Exception as e:
            # Adapters classify their own failures; anything escaping is a bug, not a reason to stop.
            logger.exception("provider_adapter_error", provider=adapter.name, error=str(e))
            return ProviderOutcome.failed(FailureReason.OTHER, error=str(e))

    def _fall_back(
        self, prompt: str, label: str | None, outcome: ProviderOutcome | None
    ) -> GenerationResult:
        if outcome is None or label is None:
            if not self.fallback_enabled:
                raise NoProvidersAvailableError()
            reason = NOT_CONFIGURED_REASON
            metric_reason = "not_configured"
        else:
            if not self.fallback_enabled:
                raise outcome_to_error(outcome, label)
            reason = f"{label} request failed ({outcome.failure.value})"
            metric_reason = outcome.failure.value

        ROUTER_FALLBACKS.labels(reason=metric_reason).inc()
        ROUTER_REQUESTS.labels(provider=FALLBACK_PROVIDER).inc()
        logger.warning("router_fallback", reason=reason, attempted=len(self.adapters))
        return GenerationResult(
            text=self.fallback.respond(prompt, reason), provider=FALLBACK_PROVIDER
        )

    def is_configured(self) -> bool:
        return bool(self.adapters)

    def active_provider(self) -> str:
        """Label of the backend that would be tried first."""
        return self.adapters[0].name if self.adapters else NO_ACTIVE_PROVIDER

    def config_info(self) -> dict[str, dict[str, Any]]:
        """Per-backend configuration summary. Never includes credentials."""
        info: dict[str, dict[str, Any]] = {}
        for config in self.configs:
            entry: dict[str, Any] = {"configured": config.is_configured, "baseUrl": config.base_url}
            if config.kind is ProviderKind.CUSTOM:
                entry.update(
                    {
                        "endpoint": config.endpoint_path,
                        "model": config.model,
                        "format": config.request_format.value,
                        "headerPrefix": config.header_prefix,
                    }
                )
            info[_CONFIG_INFO_KEYS[config.kind]] = entry
        return info

    async def aclose(self) -> None:
        for adapter in self.adapters:
            await adapter.aclose()
        if self._client is not None:
            await self._client.aclose()
