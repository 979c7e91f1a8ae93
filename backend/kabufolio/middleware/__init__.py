# backend/kabufolio/middleware/__init__.py
"""
ASGI middleware.

Usage:
    from kabufolio.middleware import CorrelationIdMiddleware

    app.add_middleware(CorrelationIdMiddleware)
"""

from kabufolio.middleware.correlation import CorrelationIdMiddleware

__all__ = [
    "CorrelationIdMiddleware",
]
