"""
regioncache - Observability Module

Structured JSON logging for the runtime.

Usage:
    from regioncache.observability import configure_logging

    configure_logging("DEBUG")
"""

from .logging import JSONFormatter, configure_logging

__all__ = [
    "JSONFormatter",
    "configure_logging",
]
