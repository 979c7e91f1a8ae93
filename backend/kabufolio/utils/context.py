# backend/kabufolio/utils/context.py
"""
Request context.

The correlation ID of the request being served lives in a ContextVar, so it
follows the request through await points and into the threadpool that runs
sync endpoints. Timer threads started by the exchange-rate poller never see
it; their records fall back to the thread name.
"""

from contextvars import ContextVar

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Correlation ID of the current request, or None outside a request."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id.set(None)
