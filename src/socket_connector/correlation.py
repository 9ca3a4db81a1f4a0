"""
Request correlation IDs carried through contextvars.

Every logical request gets its own ID so that log lines from all of its
attempts (including the retries scheduled on the event loop) can be grouped.
"""

from __future__ import annotations

import contextvars
import uuid

__all__ = [
    "generate_correlation_id",
    "get_correlation_id",
    "new_request_context",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "socket_connector_correlation_id",
    default=None,
)


def generate_correlation_id() -> str:
    """Return a new correlation ID (UUID4 hex, no dashes)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current context, if any."""
    return _correlation_id.get()


def new_request_context(correlation_id: str | None = None) -> tuple[contextvars.Context, str]:
    """
    Build a detached context holding a correlation ID for one logical request.

    Callbacks and tasks scheduled with ``context=`` run inside it, so the ID
    follows the request across event-loop hops without leaking to the caller.

    Returns:
        (context, correlation_id)
    """
    if correlation_id is None:
        correlation_id = generate_correlation_id()
    ctx = contextvars.copy_context()
    ctx.run(_correlation_id.set, correlation_id)
    return ctx, correlation_id
