"""
Logging filters for structured log output.

Provides correlation ID tracking across HTTP requests and socket connections.
"""
import contextvars
import logging

_correlation_id = contextvars.ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Get the current correlation ID (empty string if not set)."""
    return _correlation_id.get()


def set_correlation_id(cid: str) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id.set(cid)


class CorrelationIdFilter(logging.Filter):
    """Attach correlation_id to every log record."""

    def filter(self, record):
        record.correlation_id = get_correlation_id()
        return True
