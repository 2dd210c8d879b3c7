# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Venmap - AI provider router for the business-plan generator.

Routes generation requests across a custom backend, Gemini, Claude and OpenAI
in a fixed priority order and answers with a deterministic fallback when none
of them succeeds.
"""

__version__ = "1.0.0"
