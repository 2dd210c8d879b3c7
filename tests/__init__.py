# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""Tests for the Venmap router, its HTTP surface and the client library."""
