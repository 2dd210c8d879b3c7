# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.

import json

import httpx
import pytest

from venmap.client import (
    BACKEND_DISABLED_REASON,
    BACKEND_DOWN_REASON,
    CLIENT_CLAUDE_MODEL,
    CLIENT_OPENAI_MODEL,
    DIRECT_REMEDIATION,
    AIClient,
    UserApiKeys,
)
from venmap.core.exceptions import ValidationError
from venmap.settings import ClientSettings
from tests.fixtures.providers import VALID_KEY

BACKEND = "http://backend.test:3001"


def _client(handler, developer_mode: bool = True) -> AIClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    settings = ClientSettings(backend_url=f"{BACKEND}/", developer_mode=developer_mode)
    return AIClient(settings, client=http)


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


@pytest.mark.direct
class TestDirectMode:
    async def test_claude_key_calls_anthropic(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"content": [{"type": "text", "text": "From Claude"}]})

        client = _client(handler)
        client.set_user_api_keys(UserApiKeys(claude=VALID_KEY, provider="claude"))

        text = await client.generate("Hi", "Bakery")
        await client.aclose()

        assert text == "From Claude"
        assert str(seen[0].url) == "https://api.anthropic.com/v1/messages"
        assert seen[0].headers["x-api-key"] == VALID_KEY
        body = json.loads(seen[0].content)
        assert body["model"] == CLIENT_CLAUDE_MODEL
        # User-supplied context is sent as-is in direct mode.
        assert body["messages"][0] == {"role": "system", "content": "Bakery"}

    async def test_openai_key_calls_openai(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": "From OpenAI"}}]})

        client = _client(handler)
        client.set_user_api_keys(UserApiKeys(openai=VALID_KEY, provider="OpenAI"))

        assert await client.generate("Hi") == "From OpenAI"
        assert str(seen[0].url) == "https://api.openai.com/v1/chat/completions"
        assert json.loads(seen[0].content)["model"] == CLIENT_OPENAI_MODEL

    async def test_direct_failure_does_not_use_backend(self):
        calls: list[str] = []

        def handler(request):
            calls.append(request.url.host)
            return httpx.Response(401, json={"error": {"message": "bad key"}})

        client = _client(handler)
        client.set_user_api_keys(UserApiKeys(claude=VALID_KEY, provider="claude"))

        text = await client.generate("What licenses do I need?")

        assert calls == ["api.anthropic.com"]
        assert "Claude request failed (authorization)" in text

    async def test_unknown_provider(self):
        client = _client(_unreachable)
        client.set_user_api_keys(UserApiKeys(claude=VALID_KEY, provider="mistral"))

        text = await client.generate("Hi")

        assert "Unknown provider: mistral" in text

    async def test_missing_key_for_selected_provider(self):
        client = _client(_unreachable)
        client.set_user_api_keys(UserApiKeys(claude=VALID_KEY, provider="openai"))

        text = await client.generate("Hi")

        assert "OpenAI API key not configured" in text


class TestProxyMode:
    async def test_backend_success(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"response": "From backend", "provider": "Gemini"})

        client = _client(handler)

        assert await client.generate("Hi", "ctx") == "From backend"
        assert str(seen[0].url) == f"{BACKEND}/api/generate"
        assert json.loads(seen[0].content) == {"prompt": "Hi", "context": "ctx"}

    async def test_context_omitted_when_absent(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"response": "ok", "provider": "Gemini"})

        await _client(handler).generate("Hi")

        assert json.loads(seen[0].content) == {"prompt": "Hi"}

    async def test_backend_error_message_is_surfaced(self):
        client = _client(
            lambda request: httpx.Response(
                403,
                json={
                    "error": "Backend API keys disabled",
                    "message": "Backend API keys are disabled. Please use frontend API keys.",
                },
            )
        )

        text = await client.generate("Hi")

        assert "Backend API keys are disabled. Please use frontend API keys." in text

    async def test_backend_error_without_body(self):
        client = _client(lambda request: httpx.Response(500, text="boom"))
        text = await client.generate("Hi")
        assert "HTTP 500: Internal Server Error" in text

    async def test_backend_down(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        text = await _client(handler).generate("What licenses do I need?")

        assert BACKEND_DOWN_REASON in text
        assert "What licenses do I need?" in text
        assert BACKEND in text

    async def test_backend_without_response_field(self):
        client = _client(lambda request: httpx.Response(200, json={"provider": "Gemini"}))
        assert "Invalid response from backend" in await client.generate("Hi")

    async def test_developer_mode_off_skips_backend(self):
        text = await _client(_unreachable, developer_mode=False).generate("Hi")
        assert BACKEND_DISABLED_REASON in text

    async def test_cleared_keys_route_to_backend(self):
        client = _client(
            lambda request: httpx.Response(200, json={"response": "From backend", "provider": "X"})
        )
        client.set_user_api_keys(UserApiKeys(claude=VALID_KEY, provider="claude"))
        client.clear_user_api_keys()

        assert await client.generate("Hi") == "From backend"


@pytest.mark.parametrize("prompt", ["", None])
async def test_invalid_prompt(prompt):
    with pytest.raises(ValidationError):
        await _client(_unreachable).generate(prompt)


class TestBackendStatus:
    CONFIG = {
        "config": {"customAPI": {"configured": False, "baseUrl": None}},
        "activeProvider": "Gemini",
        "isConfigured": True,
        "useBackendKeys": True,
    }

    async def test_connected(self):
        client = _client(lambda request: httpx.Response(200, json=self.CONFIG))

        assert await client.is_configured() is True
        assert await client.get_provider() == "Gemini"
        info = await client.get_config_info()
        assert info["backend"] == {"configured": True, "url": BACKEND, "status": "connected"}
        assert info["customAPI"] == {"configured": False, "baseUrl": None}

    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused")

        client = _client(handler)

        assert await client.is_configured() is False
        assert await client.get_provider() == "Backend Unavailable"
        info = await client.get_config_info()
        assert info["backend"]["status"] == "unreachable"

    async def test_disabled(self):
        client = _client(_unreachable, developer_mode=False)

        assert await client.is_configured() is False
        assert await client.get_provider() == "Backend Disabled"
        assert (await client.get_config_info())["backend"]["status"] == "disabled"


class TestClientNeverRaises:
    async def test_undecodable_backend_body(self):
        client = _client(
            lambda request: httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all"
            )
        )

        text = await client.generate("What licenses do I need?")

        assert "What licenses do I need?" in text
        assert "Backend request failed: DecodingError" in text

    async def test_malformed_backend_url(self):
        http = httpx.AsyncClient(transport=httpx.MockTransport(_unreachable))
        client = AIClient(ClientSettings(backend_url="http://[::1"), client=http)

        text = await client.generate("Hi")

        assert "Backend request failed: InvalidURL" in text
        assert await client.get_provider() == "Backend Unavailable"

    async def test_undecodable_config_body(self):
        client = _client(
            lambda request: httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all"
            )
        )
        assert await client.is_configured() is False


@pytest.mark.direct
async def test_direct_failure_hints_point_at_user_key():
    client = _client(lambda request: httpx.Response(401, json={"error": {"message": "bad key"}}))
    client.set_user_api_keys(UserApiKeys(openai=VALID_KEY, provider="openai"))

    text = await client.generate("Hi")

    for i, hint in enumerate(DIRECT_REMEDIATION, start=1):
        assert f"{i}. {hint}" in text
    assert "Venmap server is running" not in text
