"""Request-scoped context variables for request tracing."""
from contextvars import ContextVar
from typing import Optional

# Correlation ID for tracing a request through apply/match/proxy calls.
# Set by the correlation-id middleware on each incoming request.
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

CORRELATION_ID_HEADER = "X-Correlation-ID"


def get_correlation_id() -> Optional[str]:
    """Return the current request's correlation ID, or None if outside a request."""
    return correlation_id_var.get()
