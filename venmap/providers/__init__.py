# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Provider implementations for Venmap.

This package contains the provider value types, the per-format request and
response mapping, the HTTP adapter and the priority-ordered registry.
"""

from .base import (
    FALLBACK_PROVIDER,
    FailureReason,
    GenerationRequest,
    GenerationResult,
    LLMProviderAdapter,
    ProviderConfig,
    ProviderKind,
    ProviderOutcome,
    RequestFormat,
)
from .http_adapter import HTTPProviderAdapter
from .registry import build_adapters, build_provider_configs

__all__ = [
    "FALLBACK_PROVIDER",
    "FailureReason",
    "GenerationRequest",
    "GenerationResult",
    "LLMProviderAdapter",
    "ProviderConfig",
    "ProviderKind",
    "ProviderOutcome",
    "RequestFormat",
    "HTTPProviderAdapter",
    "build_adapters",
    "build_provider_configs",
]
