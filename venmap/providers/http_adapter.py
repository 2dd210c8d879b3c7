# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
from __future__ import annotations

import time

import httpx

from .base import (
    FailureReason,
    GenerationRequest,
    LLMProviderAdapter,
    ProviderConfig,
    ProviderOutcome,
    classify_status,
)
from .formats import build_auth_headers, build_request, extract_error_message, parse_response
from ..telemetry.metrics import PROVIDER_LATENCY, PROVIDER_REQUESTS


class HTTPProviderAdapter(LLMProviderAdapter):
    """Calls one backend over HTTP using the format adapter for its wire format.

    The ``httpx.AsyncClient`` is shared across adapters and owned by the router.
    """

    def __init__(self, config: ProviderConfig, client: httpx.AsyncClient) -> None:
        self.config = config
        self._client = client

    async def invoke(self, request: GenerationRequest) -> ProviderOutcome:  # noqa: D401
        start = time.perf_counter()
        provider = self.config.label

        outcome = await self._post(request)

        outcome.latency_ms = int((time.perf_counter() - start) * 1000)
        PROVIDER_REQUESTS.labels(
            provider=provider, outcome="success" if outcome.ok else outcome.failure.value
        ).inc()
        PROVIDER_LATENCY.labels(provider=provider).observe(outcome.latency_ms)
        return outcome

    async def _post(self, request: GenerationRequest) -> ProviderOutcome:
        headers = build_auth_headers(self.config)
        payload = build_request(request, self.config)
        try:
            resp = await self._client.post(self.config.url, json=payload, headers=headers)
        except httpx.TransportError as e:
            # DNS failure, refused connection, timeouts
            return ProviderOutcome.failed(
                FailureReason.NETWORK_UNREACHABLE, error=f"{type(e).__name__}: {e}"
            )
        except httpx.InvalidURL as e:
            return ProviderOutcome.failed(FailureReason.OTHER, error=f"Invalid URL: {e}")

        if not resp.is_success:
            try:
                message = extract_error_message(resp.json())
            except ValueError:
                message = None
            return ProviderOutcome.failed(
                classify_status(resp.status_code),
                error=f"{resp.status_code} - {message or resp.reason_phrase or 'Unknown error'}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError:
            return ProviderOutcome.failed(
                FailureReason.MALFORMED_RESPONSE,
                error="Response body is not JSON",
                status_code=resp.status_code,
            )

        text = parse_response(data, self.config.request_format)
        if text is None:
            return ProviderOutcome.failed(
                FailureReason.MALFORMED_RESPONSE,
                error=f"No text found for {self.config.request_format.value} format",
                status_code=resp.status_code,
            )
        return ProviderOutcome.success(text, raw=data)
