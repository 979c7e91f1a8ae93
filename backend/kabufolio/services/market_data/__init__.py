# backend/kabufolio/services/market_data/__init__.py
"""
Market data providers.

This package contains:
- Abstract interfaces for price and rate providers (base.py)
- Yahoo Finance implementation for equities and USD/JPY (yahoo.py)
- Yahoo! Finance Japan fund NAV scraper (fund.py)
- Rate cache with stale fallback (cache.py)
- Holding-aware routing between providers (composite.py)

Architecture:
    PriceProvider (ABC)
    ├── YahooFinanceProvider
    └── YahooJapanFundProvider

    RateProvider (ABC)
    ├── YahooFinanceProvider
    └── CachedRateProvider (wraps another RateProvider)

    CompositePriceProvider
    └── FUND -> fund provider, EQUITY -> equity provider
"""

from kabufolio.services.market_data.base import (
    BatchQuoteResult,
    PriceProvider,
    RateProvider,
)
from kabufolio.services.market_data.cache import CachedRateProvider
from kabufolio.services.market_data.composite import CompositePriceProvider
from kabufolio.services.market_data.fund import YahooJapanFundProvider, parse_fund_page
from kabufolio.services.market_data.yahoo import YahooFinanceProvider

__all__ = [
    # Abstract interfaces
    "PriceProvider",
    "RateProvider",
    "BatchQuoteResult",
    # Concrete implementations
    "YahooFinanceProvider",
    "YahooJapanFundProvider",
    "parse_fund_page",
    "CachedRateProvider",
    "CompositePriceProvider",
]
