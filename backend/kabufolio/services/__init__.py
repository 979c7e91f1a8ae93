# backend/kabufolio/services/__init__.py
"""
Service layer for the valuation engine.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive their collaborators (providers, snapshots) as parameters
- Are easily testable via dependency injection

Usage:
    from kabufolio.services import ValuationService
    from kabufolio.services import ExchangeRateStateHolder
    from kabufolio.services import suggest_rebalance, investment_return
    from kabufolio.services import round_to_tenth, format_currency

Architecture:
    services/
    ├── __init__.py              # This file - main exports
    ├── exceptions.py            # Domain exceptions
    ├── constants.py             # Business constants
    ├── protocols.py             # HoldingsProvider interface
    ├── money.py                 # Rounding and currency formatting
    ├── rebalance.py             # Rebalance advisor (threshold and yen-gap)
    ├── returns.py               # Investment return and dividend yield
    ├── holdings.py              # In-memory HoldingsProvider
    ├── exchange_rate_state.py   # USD/JPY state holder (polling + manual)
    ├── market_data/             # Price and rate providers
    └── valuation/               # Calculators and ValuationService
"""

from kabufolio.services.exceptions import (
    ServiceError,
    ValidationError,
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    FXRateError,
    FXProviderError,
)
from kabufolio.services.exchange_rate_state import (
    ExchangeRateStateHolder,
    ExchangeRateStats,
    RefreshState,
    ThreadingScheduler,
)
from kabufolio.services.holdings import InMemoryHoldingsStore
from kabufolio.services.money import (
    RoundingPrecision,
    format_currency,
    format_percent,
    round_to_integer,
    round_to_tenth,
    to_decimal,
)
from kabufolio.services.rebalance import suggest_rebalance, suggest_rebalance_by_yen_gap
from kabufolio.services.returns import dividend_yield, investment_return
from kabufolio.services.valuation import ValuationService

__all__ = [
    # Services
    "ValuationService",
    "ExchangeRateStateHolder",
    "ExchangeRateStats",
    "RefreshState",
    "ThreadingScheduler",
    "InMemoryHoldingsStore",

    # Pure functions
    "round_to_tenth",
    "round_to_integer",
    "to_decimal",
    "RoundingPrecision",
    "format_currency",
    "format_percent",
    "suggest_rebalance",
    "suggest_rebalance_by_yen_gap",
    "investment_return",
    "dividend_yield",

    # Exceptions
    "ServiceError",
    "ValidationError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "FXRateError",
    "FXProviderError",
]
