"""
Observability module for greenverse.

This module provides:
- Metrics collection with Prometheus
"""

__all__ = ["metrics"]
