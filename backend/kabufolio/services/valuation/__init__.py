# backend/kabufolio/services/valuation/__init__.py
"""
Valuation engine.

Architecture:
    valuation/
    ├── __init__.py      # This file - package exports
    ├── types.py         # Result dataclasses
    ├── calculators.py   # Value, country aggregation and investment calculators
    └── service.py       # ValuationService (orchestrator)

Data Flow:
    Holdings + Quotes + Rate -> ValueCalculator -> ValuationResult
    ValuationResults         -> CountryAggregationCalculator -> CountryAggregate
    CountryAggregate         -> suggest_rebalance / suggest_rebalance_by_yen_gap
    Purchases, Dividends, Fund flows -> InvestmentCalculator -> InvestmentTotals
    All Above                -> PortfolioSummary
"""

from kabufolio.services.valuation.calculators import (
    CountryAggregationCalculator,
    InvestmentCalculator,
    ValueCalculator,
    ZeroQuantityPolicy,
)
from kabufolio.services.valuation.service import QuoteSource, ValuationService
from kabufolio.services.valuation.types import (
    CountryAggregate,
    HoldingValuation,
    InvestmentTotals,
    PortfolioSummary,
    RebalanceSuggestion,
    ValuationResult,
    YenGapSuggestion,
)

__all__ = [
    # Main service
    "ValuationService",
    "QuoteSource",

    # Data types
    "ValuationResult",
    "HoldingValuation",
    "CountryAggregate",
    "RebalanceSuggestion",
    "YenGapSuggestion",
    "InvestmentTotals",
    "PortfolioSummary",

    # Calculators
    "ValueCalculator",
    "CountryAggregationCalculator",
    "InvestmentCalculator",
    "ZeroQuantityPolicy",
]
