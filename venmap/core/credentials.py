# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""Credential normalization for provider API keys."""

MIN_API_KEY_LENGTH = 10

# Filler values shipped in .env templates and docs.
PLACEHOLDER_API_KEYS = frozenset(
    {
        "your-api-key-here",
        "your_api_key_here",
        "your api key here",
        "your-actual-api-key-here",
        "your-key-here",
        "insert-your-key-here",
        "add-your-key-here",
        "sk-placeholder",
        "example-key",
        "example_key",
        "example key",
    }
)


def validate_api_key(raw: str | None) -> str | None:
    """
    Return the trimmed credential, or None when it cannot be a real key.

    Absent, blank, placeholder (case-insensitive) and shorter-than-10-character
    values are rejected so an unfilled config template never counts as a
    configured provider.
    """
    if raw is None:
        return None
    key = raw.strip()
    if not key:
        return None
    if key.lower() in PLACEHOLDER_API_KEYS:
        return None
    if len(key) < MIN_API_KEY_LENGTH:
        return None
    return key


def mask_api_key(key: str | None) -> str:
    """Render a credential for logs without exposing it."""
    if not key:
        return "unset"
    return f"...{key[-4:]}" if len(key) > 8 else "***"
