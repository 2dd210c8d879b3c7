# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Per-format request building and response extraction.

Each supported ``RequestFormat`` has one body builder and one parser. Parsers
return ``None`` when the text is not at any location the format defines; the
caller treats that as a malformed response, never as an empty success.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from .base import GenerationRequest, ProviderConfig, RequestFormat, USER_AGENT

CONTEXT_PREAMBLE = "You are a helpful business consultant. Here's the current context: "
GEMINI_CONTEXT_ACK = "Okay, I understand the context."

# Header styles that carry the bare credential under their own name.
NAMED_KEY_HEADERS = {
    "x-api-key": "x-api-key",
    "api-key": "API-Key",
    "x-goog-api-key": "x-goog-api-key",
}


class AuthHeaderStyle(str, Enum):
    BEARER = "bearer"
    NAMED_HEADER = "named_header"
    CUSTOM_PREFIX = "custom_prefix"

    @classmethod
    def from_prefix(cls, prefix: str) -> "AuthHeaderStyle":
        normalized = prefix.strip().lower()
        if normalized == "bearer":
            return cls.BEARER
        if normalized in NAMED_KEY_HEADERS:
            return cls.NAMED_HEADER
        return cls.CUSTOM_PREFIX


def build_auth_headers(config: ProviderConfig) -> dict[str, str]:
    """Create headers for a provider request, auth header included."""
    headers = {
        "Content-Type": "application/json",
        "User-Agent": f"{USER_AGENT} ({config.label})",
    }
    credential = config.api_key or ""
    prefix = config.header_prefix.strip()
    style = AuthHeaderStyle.from_prefix(prefix)
    if style is AuthHeaderStyle.BEARER:
        headers["Authorization"] = f"Bearer {credential}"
    elif style is AuthHeaderStyle.NAMED_HEADER:
        headers[NAMED_KEY_HEADERS[prefix.lower()]] = credential
    else:
        headers["Authorization"] = f"{prefix} {credential}"
    headers.update(config.extra_headers)
    return headers


def build_messages(request: GenerationRequest, config: ProviderConfig) -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    if request.context:
        content = (
            f"{CONTEXT_PREAMBLE}{request.context}" if config.wrap_context else request.context
        )
        messages.append({"role": "system", "content": content})
    messages.append({"role": "user", "content": request.prompt})
    return messages


def _openai_body(request: GenerationRequest, config: ProviderConfig) -> dict[str, Any]:
    return {
        "model": config.model,
        "messages": build_messages(request, config),
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
    }


def _claude_body(request: GenerationRequest, config: ProviderConfig) -> dict[str, Any]:
    # Temperature is left to the backend default.
    return {
        "model": config.model,
        "max_tokens": config.max_tokens,
        "messages": build_messages(request, config),
    }


def _custom_body(request: GenerationRequest, config: ProviderConfig) -> dict[str, Any]:
    return {
        "model": config.model,
        "prompt": request.prompt,
        "context": request.context,
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
        "messages": build_messages(request, config),
    }


def _gemini_body(request: GenerationRequest, config: ProviderConfig) -> dict[str, Any]:
    contents: list[dict[str, Any]] = []
    if request.context:
        contents.append(
            {"role": "user", "parts": [{"text": f"{CONTEXT_PREAMBLE}{request.context}"}]}
        )
        contents.append({"role": "model", "parts": [{"text": GEMINI_CONTEXT_ACK}]})
    contents.append({"role": "user", "parts": [{"text": request.prompt}]})
    return {
        "contents": contents,
        "generationConfig": {
            "maxOutputTokens": config.max_tokens,
            "temperature": config.temperature,
        },
    }


_BODY_BUILDERS: dict[RequestFormat, Callable[[GenerationRequest, ProviderConfig], dict[str, Any]]] = {
    RequestFormat.OPENAI: _openai_body,
    RequestFormat.CLAUDE: _claude_body,
    RequestFormat.CUSTOM: _custom_body,
    RequestFormat.GEMINI: _gemini_body,
}


def build_request(request: GenerationRequest, config: ProviderConfig) -> dict[str, Any]:
    """Build the JSON body for ``config.request_format``."""
    return _BODY_BUILDERS[config.request_format](request, config)


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _first_item(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def _parse_openai(data: dict[str, Any]) -> str | None:
    choice = _first_item(data.get("choices"))
    if isinstance(choice, dict):
        message = choice.get("message")
        if isinstance(message, dict):
            text = _text(message.get("content"))
            if text is not None:
                return text
    return _text(data.get("response"))


def _parse_claude(data: dict[str, Any]) -> str | None:
    part = _first_item(data.get("content"))
    if isinstance(part, dict):
        text = _text(part.get("text"))
        if text is not None:
            return text
    return _text(data.get("response"))


def _parse_custom(data: dict[str, Any]) -> str | None:
    for key in ("response", "content", "text", "message"):
        text = _text(data.get(key))
        if text is not None:
            return text
    return None


def _parse_gemini(data: dict[str, Any]) -> str | None:
    candidate = _first_item(data.get("candidates"))
    if not isinstance(candidate, dict):
        return None
    content = candidate.get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts") or []
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    return _text("".join(texts))


_PARSERS: dict[RequestFormat, Callable[[dict[str, Any]], str | None]] = {
    RequestFormat.OPENAI: _parse_openai,
    RequestFormat.CLAUDE: _parse_claude,
    RequestFormat.CUSTOM: _parse_custom,
    RequestFormat.GEMINI: _parse_gemini,
}


def parse_response(data: Any, request_format: RequestFormat) -> str | None:
    """Extract the answer text, or None when ``data`` has none for this format."""
    if not isinstance(data, dict):
        return None
    return _PARSERS[request_format](data)


def extract_error_message(data: Any) -> str | None:
    """Pull a diagnostic message out of an upstream error body."""
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict):
        return _text(error.get("message"))
    return _text(error) or _text(data.get("message"))
