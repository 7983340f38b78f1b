"""
Structured logging helpers.

Context values passed as ``extra`` become LogRecord attributes. Blobs, chunk
lists and vectors can be huge, so every value is reduced to a short string
first.

Dependencies: logging (stdlib), pydantic
System role: Logging helper functions
"""

import enum
import logging
from typing import Any

from pydantic import BaseModel

# Attributes LogRecord already owns; passing them in ``extra`` raises KeyError
_RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Reduce a value to a bounded, log-safe string.

    Sequences and mappings are summarized by size, blobs by byte count,
    enums by value and pydantic models by class name.

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    if value is None:
        return "None"
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, enum.Enum):
        val_str = str(value.value)
    elif isinstance(value, BaseModel):
        val_str = f"<{type(value).__name__}>"
    elif isinstance(value, (list, tuple, set)):
        val_str = f"{type(value).__name__}({len(value)} items)"
    elif isinstance(value, dict):
        val_str = f"dict({len(value)} keys)"
    else:
        try:
            val_str = str(value)
        except Exception as e:  # pylint: disable=broad-except
            return f"<unable to log: {type(e).__name__}>"

    if len(val_str) > max_length:
        return val_str[:max_length] + f"... (truncated, {len(val_str)} total)"
    return val_str


def _to_extra(context: dict[str, Any]) -> dict[str, str]:
    # Reserved names are prefixed instead of crashing the log call
    return {
        (f"ctx_{key}" if key in _RESERVED else key): safe_log_value(value)
        for key, value in context.items()
    }


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context,
) -> None:
    """
    Log a message with structured context.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Key-value pairs attached to the record
    """
    logger.log(level, message, extra=_to_extra(context))


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context,
) -> None:
    """
    Log an exception at ERROR with traceback, its type and message, and context.

    ``details`` of a KnowbaseException are attached as ``error_details``.
    """
    extra = _to_extra(context)
    extra["error_type"] = type(exc).__name__
    extra["error_msg"] = safe_log_value(str(exc))
    details = getattr(exc, "details", None)
    if details:
        extra["error_details"] = safe_log_value(repr(details))
    logger.error(message, exc_info=exc, extra=extra)
