# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Provider health reporting for Venmap.

The custom backend is probed with ``GET <base_url>/health``. Well-known
backends are reported as ``configured`` from their credentials alone; a valid
looking but wrong key shows up only when a real call fails.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Sequence

import httpx
import structlog

from ..providers.base import ProviderConfig, ProviderKind

logger = structlog.get_logger(__name__)


class HealthStatus:
    """Health status representation."""

    def __init__(self, status: str, details: dict[str, Any] | None = None):
        self.status = status  # "healthy", "unhealthy", "unavailable", "configured"
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {"status": self.status, **self.details}


class HealthChecker:
    """Reports per-backend reachability for ``GET /api/health``."""

    def __init__(
        self,
        configs: Sequence[ProviderConfig],
        client: httpx.AsyncClient,
        timeout_s: float = 5.0,
    ):
        self.configs = tuple(configs)
        self.client = client
        self.timeout_s = timeout_s

    async def check(self) -> dict[str, Any]:
        services: dict[str, Any] = {}
        for config in self.configs:
            if not config.is_configured:
                continue
            if config.kind is ProviderKind.CUSTOM:
                status = await self._probe(config)
            else:
                status = HealthStatus("configured", {"configured": True})
            services[config.kind.value] = status.to_dict()

        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": services,
        }

    async def _probe(self, config: ProviderConfig) -> HealthStatus:
        url = f"{(config.base_url or '').rstrip('/')}/health"
        start = time.perf_counter()
        try:
            response = await self.client.get(url, timeout=self.timeout_s)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("health_probe_failed", provider=config.label, error=str(e))
            return HealthStatus("unavailable", {"error": str(e) or type(e).__name__})

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        if response.is_success:
            return HealthStatus("healthy", {"responseTimeMs": elapsed_ms})
        return HealthStatus(
            "unhealthy", {"statusCode": response.status_code, "responseTimeMs": elapsed_ms}
        )
