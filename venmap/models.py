# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Pydantic models for request/response schemas and data validation.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, StrictStr


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class GenerateRequest(BaseModel):
    """Body of ``POST /api/generate``."""

    prompt: StrictStr = Field(..., min_length=1, description="User question or instruction")
    context: StrictStr | None = Field(
        None, description="Business-plan context prepended as system guidance"
    )


class GenerateResponse(BaseModel):
    response: str = Field(..., description="Generated or fallback text")
    provider: str = Field(..., description="Backend that answered, or 'Fallback'")
    timestamp: str = Field(default_factory=utc_timestamp)


class ErrorResponse(BaseModel):
    """Error envelope shared by every non-2xx response."""

    error: str = Field(..., description="Short error title")
    message: str | None = Field(None, description="Human-readable explanation")
    timestamp: str = Field(default_factory=utc_timestamp)

    @classmethod
    def create(cls, error: str, message: str | None = None, **extra: Any) -> dict[str, Any]:
        """Build the JSON body; ``extra`` keys are added next to the standard ones."""
        body = cls(error=error, message=message).model_dump()
        body.update(extra)
        return body


class ConfigResponse(BaseModel):
    config: dict[str, dict[str, Any]]
    activeProvider: str
    isConfigured: bool
    useBackendKeys: bool
    timestamp: str = Field(default_factory=utc_timestamp)


class HealthResponse(BaseModel):
    health: dict[str, Any]
    timestamp: str = Field(default_factory=utc_timestamp)


class LivenessResponse(BaseModel):
    status: str = "OK"
    env: str
    timestamp: str = Field(default_factory=utc_timestamp)
