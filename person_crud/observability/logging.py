"""
Logging utilities for person_crud.

Provides a contextual logger that stamps every record with the current run's
correlation ID and operation context, plus a helper for structured
operation logs.
"""

import contextvars
import logging
import os
import uuid
from datetime import datetime
from typing import Any

DEFAULT_LOG_FORMAT = (
    "%(asctime)s %(levelname)-8s [%(correlation_id)s] %(name)s: %(message)s%(operation_context)s"
)

# Context variable for correlation ID
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Context variable for operation context (collection, person_id, ...)
_operation_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "operation_context", default=None
)


def configure_logging(level: str | int | None = None) -> None:
    """
    Configure the root logger for the command line entry points.

    Args:
        level: Log level name or number (defaults to LOG_LEVEL env var, then INFO)
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=DEFAULT_LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, ContextFilter) for f in handler.filters):
            handler.addFilter(ContextFilter())
    # Heartbeat chatter from the driver is only interesting when debugging
    logging.getLogger("pymongo").setLevel(max(level, logging.WARNING))


def get_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set a correlation ID in the current context.

    Args:
        correlation_id: Optional correlation ID (generates new one if None)

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    """Clear the correlation ID from context."""
    _correlation_id.set(None)


def set_operation_context(**kwargs: Any) -> None:
    """Set operation context (collection_name, person_id, ...) for logging."""
    _operation_context.set(dict(kwargs))


def clear_operation_context() -> None:
    """Clear operation context."""
    _operation_context.set(None)


class ContextFilter(logging.Filter):
    """
    Fill in the fields DEFAULT_LOG_FORMAT expects on every record.

    ``correlation_id`` comes from the record when a ContextualLoggerAdapter
    set it, else from the current context ("-" when unset).
    ``operation_context`` renders the operation context as `` (key=value)``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id() or "-"
        operation_context = _operation_context.get()
        if operation_context:
            pairs = ", ".join(f"{k}={v}" for k, v in operation_context.items())
            record.operation_context = f" ({pairs})"
        else:
            record.operation_context = ""
        return True


def get_logging_context() -> dict[str, Any]:
    """
    Get current logging context (correlation ID and operation context).

    Returns:
        Dictionary with context information
    """
    context: dict[str, Any] = {
        "timestamp": datetime.now().isoformat(),
    }

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    operation_context = _operation_context.get()
    if operation_context:
        context.update(operation_context)

    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that automatically adds context to log records.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        """Add context to log records."""
        context = get_logging_context()

        extra = kwargs.get("extra", {})
        if extra:
            context.update(extra)

        kwargs["extra"] = context
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """
    Get a contextual logger that automatically adds correlation ID and context.

    Args:
        name: Logger name (typically __name__)

    Returns:
        ContextualLoggerAdapter instance
    """
    return ContextualLoggerAdapter(logging.getLogger(name), {})


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    level: int = logging.INFO,
    success: bool = True,
    duration_ms: float | None = None,
    **context: Any,
) -> None:
    """
    Log an operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name
        level: Log level
        success: Whether operation succeeded
        duration_ms: Operation duration in milliseconds
        **context: Additional context
    """
    log_context = get_logging_context()
    log_context.update(
        {
            "operation": operation,
            "success": success,
        }
    )

    if duration_ms is not None:
        log_context["duration_ms"] = round(duration_ms, 2)

    if context:
        log_context.update(context)

    message = f"Operation: {operation}"
    if not success:
        message = f"Operation failed: {operation}"
    if duration_ms is not None:
        message += f" (duration: {duration_ms:.2f}ms)"

    logger.log(level, message, extra=log_context)
