"""
Request correlation IDs.

Each request gets a short ID that is echoed in the `X-Correlation-ID`
response header, attached to every log line and included in error bodies,
so a visitor's report can be matched to the server logs.
"""

import uuid
from contextvars import ContextVar

CORRELATION_HEADER = "X-Correlation-ID"

# Request-scoped; empty outside a request
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        8 lowercase hex characters, e.g. "3f9a0c1b".
    """
    return uuid.uuid4().hex[:8]


def get_correlation_id() -> str:
    """Return the current request's correlation ID, or "" if none is set."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current context."""
    correlation_id_var.set(correlation_id)
