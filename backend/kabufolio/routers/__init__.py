# backend/kabufolio/routers/__init__.py
"""
API routers for the valuation engine.

Each router handles a specific domain:
- exchange_rate: Current USD/JPY snapshot and manual refresh
- quotes: Latest stock and fund prices
- valuation: Holding valuation and portfolio summary
"""

from kabufolio.routers.exchange_rate import router as exchange_rate_router
from kabufolio.routers.quotes import router as quotes_router
from kabufolio.routers.valuation import router as valuation_router

__all__ = [
    "exchange_rate_router",
    "quotes_router",
    "valuation_router",
]
