# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Client-side router.

Uses the end user's own credentials for a single backend when they are set,
and otherwise proxies through a Venmap server's ``POST /api/generate``. Every
failure path ends in the fallback text; callers always get a string back.

The user credentials are read once per call and are not locked: a call that
starts just before ``set_user_api_keys``/``clear_user_api_keys`` may use either
the old or the new keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from .core.exceptions import ValidationError
from .fallback import FallbackResponder
from .providers.base import ProviderConfig
from .providers.http_adapter import HTTPProviderAdapter
from .providers.registry import claude_config, openai_config
from .router import AIRouter
from .settings import ClientSettings

logger = structlog.get_logger(__name__)

CLIENT_CLAUDE_MODEL = "claude-3-haiku-20240307"
CLIENT_OPENAI_MODEL = "gpt-3.5-turbo"

BACKEND_DISABLED_REASON = "Backend API disabled. Please configure your API keys."
BACKEND_DOWN_REASON = "Backend server is not running. Please start the backend server."

DIRECT_REMEDIATION = (
    "Check that the API key you entered is correct and has not been revoked",
    "Check that the key belongs to the selected provider (Claude or OpenAI)",
    "Check that your account has available credit and is not rate limited",
)


@dataclass(frozen=True)
class UserApiKeys:
    """Credentials typed in by the end user; ``provider`` picks which one to use."""

    claude: str = ""
    openai: str = ""
    provider: str = ""


class AIClient:
    def __init__(
        self, settings: ClientSettings | None = None, client: httpx.AsyncClient | None = None
    ) -> None:
        self.settings = settings or ClientSettings()
        self.backend_url = self.settings.backend_url.rstrip("/")
        self.developer_mode = self.settings.developer_mode
        self._client = client or httpx.AsyncClient(timeout=30.0)
        self._user_api_keys: UserApiKeys | None = None
        self.fallback = FallbackResponder(
            remediation=(
                "The Venmap server is running (venmap-server)",
                "Your API keys are configured in the server's .env file",
                f"The backend URL is correct ({self.backend_url})",
            )
        )
        self.direct_fallback = FallbackResponder(remediation=DIRECT_REMEDIATION)

    def set_user_api_keys(self, keys: UserApiKeys) -> None:
        self._user_api_keys = keys

    def clear_user_api_keys(self) -> None:
        self._user_api_keys = None

    async def generate(self, prompt: str, context: str | None = None) -> str:
        if not isinstance(prompt, str) or not prompt:
            raise ValidationError("Prompt is required and must be a string", field="prompt")

        keys = self._user_api_keys
        logger.debug(
            "client_generate",
            has_user_api_keys=bool(keys and keys.provider),
            provider=keys.provider if keys else None,
            developer_mode=self.developer_mode,
        )

        if keys and keys.provider:
            return await self._generate_direct(prompt, context, keys)

        if not self.developer_mode:
            return self.fallback.respond(prompt, BACKEND_DISABLED_REASON)

        return await self._generate_via_backend(prompt, context)

    def _direct_config(self, keys: UserApiKeys) -> ProviderConfig | None:
        provider = keys.provider.lower()
        if provider == "claude":
            return claude_config(keys.claude, model=CLIENT_CLAUDE_MODEL, wrap_context=False)
        if provider == "openai":
            return openai_config(keys.openai, model=CLIENT_OPENAI_MODEL, wrap_context=False)
        return None

    async def _generate_direct(self, prompt: str, context: str | None, keys: UserApiKeys) -> str:
        config = self._direct_config(keys)
        if config is None:
            logger.warning("client_unknown_provider", provider=keys.provider)
            return self.direct_fallback.respond(prompt, f"Unknown provider: {keys.provider}")
        if not config.is_configured:
            return self.direct_fallback.respond(prompt, f"{config.label} API key not configured")

        # Single-backend router: direct mode never falls through to the proxy.
        router = AIRouter(
            [HTTPProviderAdapter(config, self._client)], fallback=self.direct_fallback
        )
        result = await router.generate(prompt, context)
        return result.text

    async def _generate_via_backend(self, prompt: str, context: str | None) -> str:
        payload: dict[str, Any] = {"prompt": prompt}
        if context is not None:
            payload["context"] = context

        try:
            response = await self._client.post(f"{self.backend_url}/api/generate", json=payload)
        except httpx.TransportError as e:
            logger.warning("backend_unreachable", url=self.backend_url, error=str(e))
            return self.fallback.respond(prompt, BACKEND_DOWN_REASON)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # Undecodable bodies and malformed backend URLs
            logger.warning("backend_request_failed", url=self.backend_url, error=str(e))
            return self.fallback.respond(prompt, f"Backend request failed: {type(e).__name__}")

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            message = data.get("message") if isinstance(data, dict) else None
            reason = message or f"HTTP {response.status_code}: {response.reason_phrase}"
            logger.warning("backend_error", status_code=response.status_code, message=reason)
            return self.fallback.respond(prompt, reason)

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text:
            return self.fallback.respond(prompt, "Invalid response from backend")
        logger.info("backend_response", provider=data.get("provider") or "Unknown Provider")
        return text

    async def _fetch_config(self) -> dict[str, Any] | None:
        if not self.developer_mode:
            return None
        try:
            response = await self._client.get(f"{self.backend_url}/api/config")
        except (httpx.HTTPError, httpx.InvalidURL):
            # Backend being down is an expected state for the client.
            return None
        if not response.is_success:
            return None
        try:
            data = response.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    async def is_configured(self) -> bool:
        data = await self._fetch_config()
        return bool(data and data.get("isConfigured"))

    async def get_provider(self) -> str:
        if not self.developer_mode:
            return "Backend Disabled"
        data = await self._fetch_config()
        if data is None:
            return "Backend Unavailable"
        return data.get("activeProvider") or "None"

    async def get_config_info(self) -> dict[str, Any]:
        backend: dict[str, Any] = {"configured": False, "url": self.backend_url}
        if not self.developer_mode:
            return {"backend": {**backend, "status": "disabled"}}
        data = await self._fetch_config()
        if data is None:
            return {"backend": {**backend, "status": "unreachable"}}
        return {
            "backend": {"configured": True, "url": self.backend_url, "status": "connected"},
            **(data.get("config") or {}),
        }

    async def aclose(self) -> None:
        await self._client.aclose()
