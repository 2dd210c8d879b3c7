# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Prometheus metrics for Venmap telemetry.

This module provides metrics collection for provider attempts, router
fallbacks and the HTTP surface.
"""

from prometheus_client import Counter, Histogram

# Request metrics
HTTP_REQUESTS_TOTAL = Counter(
    "venmap_http_requests_total",
    "Total HTTP requests",
    ["route", "method", "status"],
)

HTTP_LATENCY = Histogram(
    "venmap_http_request_duration_milliseconds",
    "HTTP request duration in milliseconds",
    ["route", "method"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000],
)

# Provider metrics
PROVIDER_REQUESTS = Counter(
    "venmap_provider_requests_total",
    "Provider attempts by outcome",
    ["provider", "outcome"],
)

PROVIDER_LATENCY = Histogram(
    "venmap_provider_latency_milliseconds",
    "Provider attempt latency in milliseconds",
    ["provider"],
    buckets=[50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000, 60000],
)

# Router metrics
ROUTER_REQUESTS = Counter(
    "venmap_router_requests_total",
    "Router generate calls by answering provider",
    ["provider"],
)

ROUTER_FALLBACKS = Counter(
    "venmap_router_fallbacks_total",
    "Router calls answered by the templated fallback",
    ["reason"],
)
