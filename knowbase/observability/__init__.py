"""
Observability module.

Provides logging configuration, structured logging helpers and request
logging middleware.
"""

from knowbase.observability.log_utils import (
    log_exception_with_context,
    log_with_context,
    safe_log_value,
)
from knowbase.observability.logger import configure_logging

__all__ = [
    "configure_logging",
    "log_with_context",
    "log_exception_with_context",
    "safe_log_value",
]
