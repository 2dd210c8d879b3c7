# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Provider value types and the adapter interface.

This module contains the configuration record for one upstream backend, the
request/result types that flow through the router, the tagged per-attempt
outcome, and the abstract adapter every backend implements.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from ..core.credentials import validate_api_key
from ..core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    MalformedResponseError,
    ModelNotFoundError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitError,
)

# Standard User-Agent for all provider adapters
USER_AGENT = "Venmap/1.0.0"

# Provider label reported when no backend produced the answer.
FALLBACK_PROVIDER = "Fallback"


class ProviderKind(str, Enum):
    CUSTOM = "custom"
    GEMINI = "gemini"
    CLAUDE = "claude"
    OPENAI = "openai"


class RequestFormat(str, Enum):
    """JSON request/response convention spoken by a backend.

    ``GEMINI`` is used only by the well-known Gemini backend; the custom
    backend is limited to the other three.
    """

    OPENAI = "openai"
    CLAUDE = "claude"
    CUSTOM = "custom"
    GEMINI = "gemini"


class FailureReason(str, Enum):
    AUTHORIZATION = "authorization"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    MALFORMED_RESPONSE = "malformed_response"
    NETWORK_UNREACHABLE = "network_unreachable"
    OTHER = "other"


def classify_status(status_code: int) -> FailureReason:
    """Map a non-2xx HTTP status to a failure reason."""
    if status_code in (401, 403):
        return FailureReason.AUTHORIZATION
    if status_code == 429:
        return FailureReason.RATE_LIMITED
    if status_code == 404:
        return FailureReason.NOT_FOUND
    return FailureReason.OTHER


@dataclass(frozen=True)
class ProviderConfig:
    """One upstream backend.

    ``base_url`` + ``endpoint_path`` is the POST target. For well-known kinds the
    registry fills in the public host; the custom kind needs an operator-set
    ``base_url`` to count as configured.
    """

    kind: ProviderKind
    label: str
    credential: Optional[str]
    base_url: Optional[str]
    endpoint_path: str
    model: str
    request_format: RequestFormat
    header_prefix: str = "Bearer"
    max_tokens: int = 4000
    temperature: float = 0.7
    wrap_context: bool = True
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.max_tokens <= 0:
            raise ConfigurationError(
                f"max_tokens must be > 0 for {self.label}", config_key="max_tokens"
            )
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(
                f"temperature must be between 0.0 and 2.0 for {self.label}",
                config_key="temperature",
            )

    @property
    def api_key(self) -> Optional[str]:
        return validate_api_key(self.credential)

    @property
    def is_configured(self) -> bool:
        if self.api_key is None:
            return False
        if self.kind is ProviderKind.CUSTOM and not self.base_url:
            return False
        return True

    @property
    def url(self) -> str:
        return f"{(self.base_url or '').rstrip('/')}{self.endpoint_path}"


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    context: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    """Final router answer; ``provider`` is a backend label or FALLBACK_PROVIDER."""

    text: str
    provider: str

    @property
    def is_fallback(self) -> bool:
        return self.provider == FALLBACK_PROVIDER


@dataclass
class ProviderOutcome:
    """Result of a single provider attempt.

    - output_text: assistant text on success
    - failure: classified reason, None on success
    - status_code: upstream HTTP status when one was received
    - error: diagnostic message (upstream error text); never shown to end users
    - latency_ms: total latency in milliseconds
    - raw: raw provider payload (optional)
    """

    output_text: str = ""
    failure: Optional[FailureReason] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    latency_ms: int = 0
    raw: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, text: str, latency_ms: int = 0, raw: Any = None) -> "ProviderOutcome":
        return cls(output_text=text, latency_ms=latency_ms, raw=raw)

    @classmethod
    def failed(
        cls,
        failure: FailureReason,
        error: str | None = None,
        status_code: int | None = None,
        latency_ms: int = 0,
    ) -> "ProviderOutcome":
        return cls(failure=failure, error=error, status_code=status_code, latency_ms=latency_ms)


_FAILURE_ERRORS: dict[FailureReason, type[ProviderError]] = {
    FailureReason.AUTHORIZATION: AuthenticationError,
    FailureReason.RATE_LIMITED: RateLimitError,
    FailureReason.NOT_FOUND: ModelNotFoundError,
    FailureReason.MALFORMED_RESPONSE: MalformedResponseError,
    FailureReason.NETWORK_UNREACHABLE: ProviderUnavailableError,
}


def outcome_to_error(outcome: ProviderOutcome, provider: str) -> ProviderError:
    """Convert a failed outcome into the matching ProviderError subclass."""
    message = f"{provider} request failed ({outcome.failure.value if outcome.failure else 'unknown'})"
    error_cls = _FAILURE_ERRORS.get(outcome.failure) if outcome.failure else None
    if error_cls is None:
        return ProviderError(message, provider=provider, status_code=outcome.status_code)
    return error_cls(message, provider=provider, status_code=outcome.status_code)


class LLMProviderAdapter(ABC):
    """Abstract provider adapter with a unified invoke() method and lifecycle management."""

    config: ProviderConfig

    @property
    def name(self) -> str:
        return self.config.label

    @abstractmethod
    async def invoke(self, request: GenerationRequest) -> ProviderOutcome:
        """Make one attempt against the backend. Must not raise for provider failures."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release adapter-owned resources; the shared HTTP client is closed by the router."""
        return None
