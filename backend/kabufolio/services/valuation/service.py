# backend/kabufolio/services/valuation/service.py
"""
Valuation Service - orchestrator for portfolio valuation.

Single entry point for the dashboard figures:
- get_quotes(): resolve quotes for a holding set (failures become gaps)
- get_holding_valuations(): per-holding values in whole yen
- get_summary(): country totals, rebalance advice, returns and cash

Design Principles:
- Dependency Injection: price source and holdings provider are passed in
- Explicit scope: portfolio_id is a parameter of every call
- No HTTP Knowledge: raises domain exceptions, not HTTPException
- Composable: the calculators do the arithmetic; this class only wires them

Usage:
    from kabufolio.services.valuation import ValuationService

    service = ValuationService(price_provider=composite_provider)
    summary = service.get_summary(
        provider=store,
        exchange_rate=holder.snapshot,
        portfolio_id=1,
    )
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Mapping, Protocol

from kabufolio.models import ExchangeRate, Holding, PriceQuote
from kabufolio.services.exceptions import ValidationError
from kabufolio.services.market_data.base import BatchQuoteResult
from kabufolio.services.money import RoundingPrecision, to_decimal
from kabufolio.services.protocols import HoldingsProvider
from kabufolio.services.rebalance import suggest_rebalance, suggest_rebalance_by_yen_gap
from kabufolio.services.returns import dividend_yield, investment_return
from kabufolio.services.valuation.calculators import (
    CountryAggregationCalculator,
    InvestmentCalculator,
    ValueCalculator,
    ZeroQuantityPolicy,
)
from kabufolio.services.valuation.types import HoldingValuation, PortfolioSummary

logger = logging.getLogger(__name__)


class QuoteSource(Protocol):
    """Anything that can price a set of holdings (see CompositePriceProvider)."""

    def quotes_for(self, holdings: Iterable[Holding]) -> BatchQuoteResult:
        ...


class ValuationService:
    """
    Main service for valuation operations.

    Attributes:
        _price_provider: Source of quotes for holdings the caller did not price
        _value_calc: Single-holding calculator
        _aggregation_calc: Country aggregation calculator
        _investment_calc: Cash-side totals calculator
    """

    def __init__(
            self,
            price_provider: QuoteSource | None = None,
            zero_quantity_policy: ZeroQuantityPolicy = ZeroQuantityPolicy.ZERO,
    ) -> None:
        """
        Initialize the valuation service.

        Args:
            price_provider: Quote source. If None, only caller-supplied
                            quotes are used.
            zero_quantity_policy: Value of a priced holding with no units
        """
        self._price_provider = price_provider
        self._value_calc = ValueCalculator(zero_quantity_policy)
        self._aggregation_calc = CountryAggregationCalculator(self._value_calc)
        self._investment_calc = InvestmentCalculator()

        logger.info("ValuationService initialized")

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_quotes(
            self,
            holdings: list[Holding],
            quotes: Mapping[str, PriceQuote] | None = None,
    ) -> tuple[dict[str, PriceQuote], list[str]]:
        """
        Resolve quotes for holdings.

        Caller-supplied quotes win; the rest are looked up through the price
        provider. A failed lookup leaves the symbol unpriced.

        Args:
            holdings: Holdings to price
            quotes: Quotes the caller already has, keyed by symbol

        Returns:
            Tuple of (quotes by symbol, warnings)
        """
        resolved: dict[str, PriceQuote] = dict(quotes or {})
        warnings: list[str] = []

        to_fetch = [h for h in holdings if h.symbol not in resolved]
        if not to_fetch:
            return resolved, warnings

        if self._price_provider is None:
            logger.debug(f"No price provider configured; {len(to_fetch)} holding(s) left unpriced")
            return resolved, warnings

        result = self._price_provider.quotes_for(to_fetch)
        resolved.update(result.quotes)
        for symbol, error in result.failed.items():
            warnings.append(f"Price lookup failed for {symbol}: {error}")

        return resolved, warnings

    def get_holding_valuation(
            self,
            holding: Holding,
            quantity: Decimal | int | float,
            exchange_rate: ExchangeRate,
            quote: PriceQuote | None = None,
            precision: RoundingPrecision = RoundingPrecision.INTEGER,
    ) -> HoldingValuation:
        """
        Value a single holding, fetching its quote when none is given.

        A failed lookup leaves the holding unpriced; the failure is reported
        in the result's warnings.
        """
        self._validate_rate(exchange_rate)

        lookup_warnings: list[str] = []
        if quote is None:
            resolved, lookup_warnings = self.get_quotes([holding])
            quote = resolved.get(holding.symbol)

        quantity = to_decimal(quantity)
        result = self._value_calc.valuate(holding, quote, quantity, exchange_rate, precision)
        if lookup_warnings:
            result = replace(result, warnings=tuple(lookup_warnings) + result.warnings)

        return HoldingValuation(
            holding=holding,
            quantity=quantity,
            quote=quote,
            result=result,
            precision=precision,
        )

    def get_holding_valuations(
            self,
            provider: HoldingsProvider,
            exchange_rate: ExchangeRate,
            portfolio_id: int | None = None,
            quotes: Mapping[str, PriceQuote] | None = None,
            precision: RoundingPrecision = RoundingPrecision.INTEGER,
    ) -> list[HoldingValuation]:
        """
        Value every holding in scope (display path, whole yen by default).

        Args:
            provider: Holdings provider
            exchange_rate: USD/JPY snapshot
            portfolio_id: Portfolio scope (None = all portfolios)
            quotes: Pre-resolved quotes; missing ones are fetched
            precision: Rounding of each value

        Returns:
            One HoldingValuation per holding that has an id
        """
        self._validate_rate(exchange_rate)
        holdings = provider.list_holdings(portfolio_id)
        resolved, _ = self.get_quotes(holdings, quotes)
        return self._valuate_all(provider, holdings, resolved, exchange_rate, portfolio_id, precision)

    def get_summary(
            self,
            provider: HoldingsProvider,
            exchange_rate: ExchangeRate,
            portfolio_id: int | None = None,
            quotes: Mapping[str, PriceQuote] | None = None,
    ) -> PortfolioSummary:
        """
        Full dashboard summary for one portfolio scope.

        Country totals use one-decimal rounding; the per-holding list uses
        whole yen. Both rebalance modes are reported.

        Raises:
            ValidationError: If the exchange rate is not positive
        """
        self._validate_rate(exchange_rate)

        holdings = provider.list_holdings(portfolio_id)
        resolved, warnings = self.get_quotes(holdings, quotes)

        valuations = self._valuate_all(
            provider, holdings, resolved, exchange_rate, portfolio_id, RoundingPrecision.INTEGER
        )
        quantities = {v.holding.id: v.quantity for v in valuations}

        aggregate = self._aggregation_calc.aggregate_by_country(
            holdings=holdings,
            quotes_by_symbol=resolved,
            quantities_by_id=quantities,
            exchange_rate=exchange_rate,
            precision=RoundingPrecision.TENTH,
        )

        holdings_by_id = {h.id: h for h in holdings if h.id is not None}
        totals = self._investment_calc.calculate(
            purchases=provider.list_purchases(portfolio_id),
            dividends=provider.list_dividends(portfolio_id),
            fund_flows=provider.list_fund_flows(portfolio_id),
            holdings_by_id=holdings_by_id,
        )

        for symbol in aggregate.unpriced_symbols:
            warnings.append(f"No price data available for {symbol}")

        summary = PortfolioSummary(
            portfolio_id=portfolio_id,
            exchange_rate=exchange_rate.rate,
            aggregate=aggregate,
            rebalance=suggest_rebalance(aggregate),
            yen_gap=suggest_rebalance_by_yen_gap(aggregate),
            totals=totals,
            investment_return=investment_return(aggregate.total, totals.total_investment),
            dividend_yield=dividend_yield(totals.total_dividends, totals.total_investment),
            holdings=valuations,
            registered_count=len(valuations),
            priced_count=aggregate.priced_count,
            warnings=warnings,
        )

        logger.info(
            f"Portfolio {portfolio_id if portfolio_id is not None else 'ALL'}: "
            f"total={aggregate.total} JPY, {summary.priced_count}/{summary.registered_count} priced"
        )
        return summary

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _valuate_all(
            self,
            provider: HoldingsProvider,
            holdings: list[Holding],
            quotes: Mapping[str, PriceQuote],
            exchange_rate: ExchangeRate,
            portfolio_id: int | None,
            precision: RoundingPrecision,
    ) -> list[HoldingValuation]:
        valuations: list[HoldingValuation] = []
        for holding in holdings:
            if holding.id is None:
                continue
            quantity = to_decimal(provider.quantity_for(holding.id, portfolio_id))
            quote = quotes.get(holding.symbol)
            valuations.append(HoldingValuation(
                holding=holding,
                quantity=quantity,
                quote=quote,
                result=self._value_calc.valuate(holding, quote, quantity, exchange_rate, precision),
                precision=precision,
            ))
        return valuations

    @staticmethod
    def _validate_rate(exchange_rate: ExchangeRate) -> None:
        if exchange_rate.rate <= 0:
            raise ValidationError(
                f"Exchange rate must be positive, got {exchange_rate.rate}",
                field="exchange_rate",
            )
