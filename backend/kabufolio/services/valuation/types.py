# backend/kabufolio/services/valuation/types.py
"""
Internal data types for the valuation engine.

These dataclasses are returned by the calculators and the rebalance/return
functions. They are NOT Pydantic schemas - those live in
kabufolio/schemas/valuation.py for API serialization.

Design Principles:
- Immutable value objects (frozen=True) for pure computation results
- Decimal for ALL monetary values (never float)
- None means "unknown" (no price); zero means "priced at nothing"
- Warnings accumulate for data quality tracking

Type Hierarchy:
    ValuationResult     - JPY value of one holding
    HoldingValuation    - ValuationResult plus the inputs that produced it
    CountryAggregate    - Japan / US / total sums
    RebalanceSuggestion - Percentage-threshold advice
    YenGapSuggestion    - Absolute yen-gap advice
    InvestmentTotals    - Invested amount, fees, dividends, cash
    PortfolioSummary    - Everything the dashboard shows
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from kabufolio.models import Country, Holding, PriceQuote
from kabufolio.services.money import RoundingPrecision


# =============================================================================
# SINGLE HOLDING
# =============================================================================

@dataclass(frozen=True)
class ValuationResult:
    """
    Value of one holding, converted to yen.

    Attributes:
        value: Rounded JPY value (None if the holding has no quote)
        currency: Always "JPY"
        fx_rate_used: USD/JPY rate applied (None when no conversion happened)
        warnings: Data quality warnings
    """

    value: Decimal | None
    currency: str = "JPY"
    fx_rate_used: Decimal | None = None
    warnings: tuple[str, ...] = ()

    @property
    def is_priced(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class HoldingValuation:
    """Complete valuation for one holding (display path)."""

    holding: Holding
    quantity: Decimal
    quote: PriceQuote | None
    result: ValuationResult
    precision: RoundingPrecision

    @property
    def value(self) -> Decimal | None:
        return self.result.value


# =============================================================================
# AGGREGATION
# =============================================================================

@dataclass(frozen=True)
class CountryAggregate:
    """
    Per-country sums in JPY.

    Invariant: total == japan_total + us_total.

    Attributes:
        japan_total: Sum over Japanese holdings
        us_total: Sum over US holdings
        total: Sum over all holdings
        priced_count: Holdings that had a quote
        unpriced_symbols: Symbols that contributed nothing for lack of a quote
    """

    japan_total: Decimal
    us_total: Decimal
    total: Decimal
    priced_count: int = 0
    unpriced_symbols: tuple[str, ...] = ()

    def total_for(self, country: Country) -> Decimal:
        return self.japan_total if country == Country.JAPAN else self.us_total


# =============================================================================
# REBALANCE
# =============================================================================

@dataclass(frozen=True)
class RebalanceSuggestion:
    """
    Percentage-threshold rebalance advice.

    Attributes:
        difference: |jp_percent - us_percent| as a fraction (0.1 = 10 points)
        target_country: Underweighted country, or None when within tolerance
        jp_percent: Japan's share of the total (0..1)
        us_percent: US share of the total (0..1)
    """

    difference: Decimal
    target_country: Country | None
    jp_percent: Decimal
    us_percent: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.target_country is None


@dataclass(frozen=True)
class YenGapSuggestion:
    """
    Absolute-gap rebalance advice; always names a target.

    Attributes:
        difference: |japan_total - us_total| in yen
        target_country: Country with the smaller total (US on a tie)
    """

    difference: Decimal
    target_country: Country


# =============================================================================
# PORTFOLIO
# =============================================================================

@dataclass(frozen=True)
class InvestmentTotals:
    """
    Cash-side totals of a portfolio.

    Attributes:
        total_investment: Sum of purchase costs (fund purchases rounded per record)
        total_fees: Sum of purchase fees
        total_dividends: Sum of dividends received
        total_funds: Deposits minus withdrawals
        available_cash: total_funds - total_investment + total_dividends
    """

    total_investment: Decimal
    total_fees: Decimal
    total_dividends: Decimal
    total_funds: Decimal
    available_cash: Decimal


@dataclass
class PortfolioSummary:
    """
    Dashboard view of one portfolio scope.

    Attributes:
        portfolio_id: Scope of the summary (None = all portfolios)
        exchange_rate: USD/JPY rate the values were computed with
        aggregate: Country sums (one-decimal yen)
        rebalance: Percentage-threshold advice
        yen_gap: Absolute-gap advice
        totals: Invested amount, fees, dividends and cash
        investment_return: (total value - investment) / investment
        dividend_yield: dividends / investment
        holdings: Per-holding valuations (whole yen)
        registered_count: Holdings in scope
        priced_count: Holdings with a quote
        warnings: Data quality warnings
    """

    portfolio_id: int | None
    exchange_rate: Decimal
    aggregate: CountryAggregate
    rebalance: RebalanceSuggestion
    yen_gap: YenGapSuggestion
    totals: InvestmentTotals
    investment_return: Decimal
    dividend_yield: Decimal
    holdings: list[HoldingValuation] = field(default_factory=list)
    registered_count: int = 0
    priced_count: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def has_complete_data(self) -> bool:
        """True if every holding in scope had a quote."""
        return self.priced_count == self.registered_count
