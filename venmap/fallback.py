# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Deterministic offline answer used when no provider produced one.
"""

from __future__ import annotations

from typing import Sequence

HELP_TOPICS = (
    ("Compliance Research", "Industry-specific regulatory requirements"),
    ("Business Name Suggestions", "Available domain names and trademark considerations"),
    ("Market Analysis", "Competitive landscape and market sizing"),
    ("Financial Planning", "Revenue projections and funding strategies"),
    ("Technical Requirements", "Technology stack and infrastructure needs"),
)

SERVER_REMEDIATION = (
    "Check that your provider credentials are set (CUSTOM_API_KEY, GEMINI_API_KEY, "
    "CLAUDE_API_KEY or OPENAI_API_KEY) and are not placeholder values",
    "Check that CUSTOM_API_BASE_URL and CUSTOM_API_ENDPOINT point at a reachable service",
    "Check the server's network connectivity to the provider",
)


class FallbackResponder:
    """Builds the templated answer. Pure string formatting, never raises."""

    def __init__(self, remediation: Sequence[str] = SERVER_REMEDIATION) -> None:
        self.remediation = tuple(remediation)

    def respond(self, prompt: str, reason: str | None = None) -> str:
        base = f'Thanks for your question: "{prompt}". I\'m here to help with business planning!'
        if not reason:
            return f"{base} The AI service is currently unavailable. Please try again in a moment."

        topics = "\n".join(f"• **{title}**: {detail}" for title, detail in HELP_TOPICS)
        hints = "\n".join(f"{i}. {hint}" for i, hint in enumerate(self.remediation, start=1))
        return (
            f"{base} Unfortunately, I'm having trouble connecting to my AI service right now: "
            f"{reason}\n\n"
            "Here are some things I can help you with once the connection is restored:\n\n"
            f"{topics}\n\n"
            "Please check your configuration and try again:\n"
            f"{hints}\n\n"
            "Try rephrasing your question or check back in a moment once the service is restored."
        )
