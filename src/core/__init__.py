"""
Core module for cross-cutting concerns.

This module provides:
- Structured logging configuration
- Request tracing middleware
- Common utilities
"""

from core.logging import configure_logging, get_logger, LoggerMixin
from core.utils import clamp, first_present, normalize_token

__all__ = [
    "configure_logging",
    "get_logger",
    "LoggerMixin",
    "clamp",
    "normalize_token",
    "first_present",
]
