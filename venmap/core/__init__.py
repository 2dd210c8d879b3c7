# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Core utilities for Venmap.

Exceptions shared across the application and credential normalization.
"""

from .credentials import validate_api_key
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    MalformedResponseError,
    ModelNotFoundError,
    NoProvidersAvailableError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitError,
    ValidationError,
    VenmapError,
)

__all__ = [
    "validate_api_key",
    "VenmapError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "AuthenticationError",
    "RateLimitError",
    "ModelNotFoundError",
    "MalformedResponseError",
    "ProviderUnavailableError",
    "NoProvidersAvailableError",
]
