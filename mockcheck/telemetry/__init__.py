"""
mockcheck — Observability

Structured logging setup.
"""

from mockcheck.telemetry.logging import setup_logging

__all__ = ["setup_logging"]
