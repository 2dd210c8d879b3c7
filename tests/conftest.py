# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Shared test fixtures for the Venmap test suite.

This module provides fixtures for:
- Environment isolation (no real credentials or .env leak into tests)
- httpx clients backed by MockTransport
"""

from typing import Callable

import httpx
import pytest

VENMAP_ENV_VARS = [
    "CUSTOM_API_KEY",
    "CUSTOM_API_BASE_URL",
    "CUSTOM_API_ENDPOINT",
    "CUSTOM_API_MODEL",
    "CUSTOM_API_FORMAT",
    "CUSTOM_API_HEADER_PREFIX",
    "CUSTOM_API_MAX_TOKENS",
    "CUSTOM_API_TEMPERATURE",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "CLAUDE_API_KEY",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "USE_BACKEND_API_KEYS",
    "ROUTER_FALLBACK_ENABLED",
    "PROVIDER_TIMEOUT_MS",
    "TIMEOUT_MS",
    "DEBUG",
    "SERVER_DEBUG",
    "PORT",
    "SERVER_PORT",
    "PROMETHEUS_ENABLED",
    "LOG_LEVEL",
    "NODE_ENV",
    "VENMAP_BACKEND_URL",
    "BACKEND_URL",
    "VENMAP_DEVELOPER_MODE",
    "DEVELOPER_MODE",
]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Strip provider env vars and run from an empty directory so no .env is read."""
    for name in VENMAP_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for AsyncClients whose requests are answered by ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory
