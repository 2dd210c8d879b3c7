# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.

import httpx
import pytest

from venmap.core.exceptions import (
    AuthenticationError,
    MalformedResponseError,
    NoProvidersAvailableError,
    RateLimitError,
    ValidationError,
)
from venmap.providers.base import (
    FALLBACK_PROVIDER,
    FailureReason,
    GenerationRequest,
    LLMProviderAdapter,
    ProviderOutcome,
    RequestFormat,
)
from venmap.providers.http_adapter import HTTPProviderAdapter
from venmap.providers.registry import build_provider_configs
from venmap.router import NO_ACTIVE_PROVIDER, NOT_CONFIGURED_REASON, AIRouter
from venmap.settings import APIKeysSettings, CustomProviderSettings, FeatureFlagsSettings, Settings
from tests.fixtures.providers import (
    VALID_KEY,
    MockProviderAdapter,
    failing_adapter,
    make_config,
)


class ExplodingAdapter(LLMProviderAdapter):
    def __init__(self, name: str):
        self.config = make_config(label=name)

    async def invoke(self, request: GenerationRequest) -> ProviderOutcome:
        raise RuntimeError("adapter bug")


class TestProviderOrder:
    async def test_first_success_stops_iteration(self):
        first = MockProviderAdapter("Custom API")
        second = MockProviderAdapter("Gemini")
        router = AIRouter([first, second])

        result = await router.generate("Hi")

        assert result.text == "Mock response from Custom API"
        assert result.provider == "Custom API"
        assert first.request_count == 1
        assert second.request_count == 0

    async def test_failures_advance_in_order(self):
        adapters = [
            failing_adapter("Custom API", FailureReason.AUTHORIZATION, 401),
            failing_adapter("Gemini", FailureReason.NETWORK_UNREACHABLE),
            MockProviderAdapter("Claude"),
            MockProviderAdapter("OpenAI"),
        ]
        router = AIRouter(adapters)

        result = await router.generate("Hi")

        assert result.provider == "Claude"
        assert [a.request_count for a in adapters] == [1, 1, 1, 0]

    async def test_each_backend_tried_at_most_once(self):
        adapters = [failing_adapter(name, FailureReason.OTHER, 500) for name in ("A", "B", "C")]
        router = AIRouter(adapters)

        result = await router.generate("Hi")

        assert result.provider == FALLBACK_PROVIDER
        assert [a.request_count for a in adapters] == [1, 1, 1]

    async def test_prompt_and_context_reach_adapter(self):
        adapter = MockProviderAdapter("Custom API")
        await AIRouter([adapter]).generate("Hi", "Bakery")
        assert adapter.requests == [GenerationRequest(prompt="Hi", context="Bakery")]

    async def test_empty_context_is_treated_as_absent(self):
        adapter = MockProviderAdapter("Custom API")
        await AIRouter([adapter]).generate("Hi", "")
        assert adapter.requests[0].context is None


class TestFallback:
    async def test_no_providers_configured(self):
        result = await AIRouter([]).generate("What licenses do I need?")

        assert result.provider == FALLBACK_PROVIDER
        assert result.is_fallback
        assert "What licenses do I need?" in result.text
        assert NOT_CONFIGURED_REASON in result.text
        assert "check your configuration" in result.text

    @pytest.mark.parametrize("failure", list(FailureReason))
    async def test_every_failure_reason_ends_in_fallback(self, failure):
        router = AIRouter([failing_adapter("Custom API", failure)])

        result = await router.generate("Hi")

        assert result.provider == FALLBACK_PROVIDER
        assert f"Custom API request failed ({failure.value})" in result.text

    async def test_adapter_exception_is_absorbed(self):
        fallback_adapter = MockProviderAdapter("OpenAI")
        router = AIRouter([ExplodingAdapter("Claude"), fallback_adapter])

        result = await router.generate("Hi")

        assert result.provider == "OpenAI"
        assert fallback_adapter.request_count == 1

    async def test_fallback_reason_carries_no_upstream_text(self):
        adapter = MockProviderAdapter(
            "Custom API",
            ProviderOutcome.failed(
                FailureReason.AUTHORIZATION, error="401 - secret upstream detail", status_code=401
            ),
        )
        result = await AIRouter([adapter]).generate("Hi")
        assert "secret upstream detail" not in result.text


class TestStrictMode:
    async def test_no_providers_raises(self):
        with pytest.raises(NoProvidersAvailableError):
            await AIRouter([], fallback_enabled=False).generate("Hi")

    @pytest.mark.parametrize(
        "failure, error_cls",
        [
            (FailureReason.AUTHORIZATION, AuthenticationError),
            (FailureReason.RATE_LIMITED, RateLimitError),
            (FailureReason.MALFORMED_RESPONSE, MalformedResponseError),
        ],
    )
    async def test_last_failure_is_raised(self, failure, error_cls):
        router = AIRouter(
            [
                failing_adapter("Custom API", FailureReason.OTHER, 500),
                failing_adapter("OpenAI", failure),
            ],
            fallback_enabled=False,
        )

        with pytest.raises(error_cls) as exc_info:
            await router.generate("Hi")

        assert exc_info.value.provider == "OpenAI"

    async def test_success_is_unaffected(self):
        router = AIRouter([MockProviderAdapter("Gemini")], fallback_enabled=False)
        assert (await router.generate("Hi")).provider == "Gemini"


@pytest.mark.parametrize("prompt", ["", None, 42])
async def test_invalid_prompt_raises(prompt):
    adapter = MockProviderAdapter("Custom API")
    with pytest.raises(ValidationError):
        await AIRouter([adapter]).generate(prompt)
    assert adapter.request_count == 0


class TestCustomBackendScenarios:
    """End-to-end through the HTTP adapter with a mocked upstream."""

    @staticmethod
    def _router(handler, request_format=RequestFormat.CLAUDE) -> AIRouter:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        config = make_config(request_format=request_format, header_prefix="x-api-key")
        return AIRouter([HTTPProviderAdapter(config, client)], client=client)

    async def test_custom_backend_answers(self):
        router = self._router(
            lambda request: httpx.Response(
                200, json={"content": [{"type": "text", "text": "Get a business license."}]}
            )
        )

        result = await router.generate("What licenses do I need?")
        await router.aclose()

        assert result.text == "Get a business license."
        assert result.provider == "Custom API"

    async def test_unauthorized_upstream_falls_back(self):
        router = self._router(
            lambda request: httpx.Response(401, json={"error": {"message": "bad key"}})
        )

        result = await router.generate("What licenses do I need?")
        await router.aclose()

        assert result.provider == FALLBACK_PROVIDER
        assert "Custom API" in result.text
        assert "authorization" in result.text

    async def test_malformed_upstream_falls_back(self):
        router = self._router(
            lambda request: httpx.Response(200, json={"output": "text in the wrong place"})
        )

        result = await router.generate("What licenses do I need?")
        await router.aclose()

        assert result.provider == FALLBACK_PROVIDER
        assert "malformed_response" in result.text


class TestReporting:
    def test_active_provider(self):
        router = AIRouter([MockProviderAdapter("Gemini"), MockProviderAdapter("OpenAI")])
        assert router.is_configured()
        assert router.active_provider() == "Gemini"
        assert router.provider_order == ["Gemini", "OpenAI"]

    def test_active_provider_when_empty(self):
        router = AIRouter([])
        assert not router.is_configured()
        assert router.active_provider() == NO_ACTIVE_PROVIDER

    async def test_config_info_never_contains_credentials(self):
        settings = Settings(
            api=APIKeysSettings(custom_api_key=VALID_KEY, claude_api_key=VALID_KEY),
            custom=CustomProviderSettings(base_url="https://llm.example.com"),
            features=FeatureFlagsSettings(),
        )
        router = AIRouter.from_settings(settings)

        info = router.config_info()
        await router.aclose()

        assert set(info) == {"customAPI", "gemini", "claude", "openai"}
        assert info["customAPI"] == {
            "configured": True,
            "baseUrl": "https://llm.example.com",
            "endpoint": "/chat/completions",
            "model": "gpt-3.5-turbo",
            "format": "openai",
            "headerPrefix": "Bearer",
        }
        assert info["claude"]["configured"] is True
        assert info["gemini"]["configured"] is False
        assert VALID_KEY not in repr(info)

    async def test_from_settings_respects_priority(self):
        settings = Settings(api=APIKeysSettings(openai_api_key=VALID_KEY, gemini_api_key=VALID_KEY))
        router = AIRouter.from_settings(settings)
        await router.aclose()

        assert router.provider_order == ["Gemini", "OpenAI"]
        assert len(router.configs) == len(build_provider_configs(settings))
