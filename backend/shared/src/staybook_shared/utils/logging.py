"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helper functions for refund operation and webhook logging

Usage:
    from staybook_shared.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    log_refund_operation(logger, "approve_refund", refund_id="RFD-123", status="approved")
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID, or None outside a request."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter that prefixes every line with the correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; the handler is only added the first time.

    Args:
        level: Root log level name or number
    """
    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers:
        if isinstance(handler.formatter, StructuredFormatter):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def _log_with_context(
    logger: logging.Logger,
    level: int,
    headline: str,
    context: dict[str, Any],
    **identity: Any,
) -> None:
    """Emit ``headline`` followed by ``key=value`` pairs, skipping empty values.

    ``identity`` fields are already named in the headline, so they go to the
    record only.
    """
    fields = {key: value for key, value in context.items() if value is not None and value != ""}
    message = " | ".join([headline, *(f"{key}={value}" for key, value in fields.items())])
    logger.log(level, message, extra={**identity, **fields})


def log_refund_operation(
    logger: logging.Logger,
    operation: str,
    *,
    refund_id: str | None = None,
    booking_id: str | None = None,
    status: str | None = None,
    amount_cents: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a refund operation with structured context.

    Failed operations (``error`` set) are logged at ERROR, others at INFO.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "request_refund", "confirm_refund_intent")
        refund_id: Refund request ID if available
        booking_id: Booking ID if available
        status: Refund status after the operation
        amount_cents: Amount in cents if relevant
        error: Error message if operation failed
        **extra: Additional context fields
    """
    _log_with_context(
        logger,
        logging.ERROR if error else logging.INFO,
        f"Refund operation: {operation}",
        {
            "refund_id": refund_id,
            "booking_id": booking_id,
            "status": status,
            "amount_cents": amount_cents,
            "error": error,
            **extra,
        },
        operation=operation,
    )


_WEBHOOK_RESULT_LEVELS = {
    "error": logging.ERROR,
    "duplicate": logging.WARNING,
    "skipped": logging.WARNING,
}


def log_webhook_event(
    logger: logging.Logger,
    event_type: str,
    event_id: str,
    *,
    refund_id: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a Stripe webhook event.

    ``result`` is one of received, success, duplicate, skipped or error and
    selects the level: errors at ERROR, duplicates and skips at WARNING.
    """
    _log_with_context(
        logger,
        _WEBHOOK_RESULT_LEVELS.get(result or "", logging.INFO),
        f"Webhook event: {event_type} ({event_id})",
        {
            "result": result,
            "refund_id": refund_id,
            "error": error,
            **extra,
        },
        event_type=event_type,
        event_id=event_id,
    )
