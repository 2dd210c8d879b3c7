# Venmap (c) 2025 Venmap contributors
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Monitoring components for Venmap.
"""

from .health_checker import HealthChecker, HealthStatus

__all__ = ["HealthChecker", "HealthStatus"]
