# backend/kabufolio/services/valuation/calculators.py
"""
Point-in-time valuation calculators.

Each calculator does one thing:
- ValueCalculator: JPY value of one holding (unit system + FX conversion)
- CountryAggregationCalculator: Japan / US / total sums over a holding set
- InvestmentCalculator: invested amount, fees, dividends, cash and quantities

Design Principles:
- Stateless, pure functions of their inputs
- Receive already-resolved data (quotes, quantities, exchange rate)
- Decimal for ALL financial calculations
- Rounding precision is chosen by the caller and applied once

Usage:
    calc = CountryAggregationCalculator()
    aggregate = calc.aggregate_by_country(
        holdings=holdings,
        quotes_by_symbol={"7203": quote},
        quantities_by_id={1: Decimal("100")},
        exchange_rate=rate,
    )
"""

from __future__ import annotations

import enum
import logging
from decimal import Decimal
from typing import Iterable, Mapping

from kabufolio.models import (
    AssetType,
    Country,
    Dividend,
    ExchangeRate,
    FundFlow,
    FundFlowType,
    Holding,
    PriceQuote,
    Purchase,
)
from kabufolio.services.constants import BASE_CURRENCY, FUND_UNIT_DIVISOR, USD
from kabufolio.services.money import RoundingPrecision, round_to_integer, to_decimal
from kabufolio.services.valuation.types import (
    CountryAggregate,
    InvestmentTotals,
    ValuationResult,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _rate_of(exchange_rate: ExchangeRate | Decimal | int | float) -> Decimal:
    if isinstance(exchange_rate, ExchangeRate):
        return exchange_rate.rate
    return to_decimal(exchange_rate)


class ZeroQuantityPolicy(str, enum.Enum):
    """
    What a priced holding with zero quantity is worth.

    ZERO: value 0 (None stays reserved for "no price available")
    NULL: value None, the behaviour of the old stock list page
    """

    ZERO = "ZERO"
    NULL = "NULL"


# =============================================================================
# VALUE CALCULATOR
# =============================================================================

class ValueCalculator:
    """
    Calculates the JPY value of a single holding.

    Formulas:
        Equity: price × quantity            (× rate when the quote is in USD)
        Fund:   price × quantity ÷ 10,000   (× rate first when in USD)

    Fund prices are quoted per 10,000 units, so the divisor turns a unit
    count into a number of quoted lots.

    Note:
        Only "USD" quotes are converted. Any other currency, including an
        unknown one, is taken to be yen already.
    """

    def __init__(self, zero_quantity_policy: ZeroQuantityPolicy = ZeroQuantityPolicy.ZERO) -> None:
        self._zero_quantity_policy = zero_quantity_policy

    def raw_value(
            self,
            holding: Holding,
            quote: PriceQuote | None,
            quantity: Decimal | int | float,
            exchange_rate: ExchangeRate | Decimal,
    ) -> Decimal | None:
        """
        Unrounded JPY value, for reductions that round once at the end.

        Returns:
            The value, or None if there is no quote (or the zero-quantity
            policy is NULL and quantity is 0)

        A net quantity below zero (more sold than bought) holds nothing and
        is valued like 0, so it never subtracts from a total.
        """
        if quote is None:
            return None

        quantity = to_decimal(quantity)
        if quantity <= ZERO:
            if self._zero_quantity_policy == ZeroQuantityPolicy.NULL:
                return None
            return ZERO

        value = quote.price * quantity
        if self._converts(quote):
            value = value * _rate_of(exchange_rate)
        if holding.asset_type == AssetType.FUND:
            value = value / FUND_UNIT_DIVISOR

        return value

    def valuate(
            self,
            holding: Holding,
            quote: PriceQuote | None,
            quantity: Decimal | int | float,
            exchange_rate: ExchangeRate | Decimal,
            precision: RoundingPrecision = RoundingPrecision.TENTH,
    ) -> ValuationResult:
        """
        Calculate the value of one holding.

        Args:
            holding: The holding (asset type decides the formula)
            quote: Latest quote, or None if the price is unknown
            quantity: Units held; below zero is valued as 0
            exchange_rate: Current USD/JPY rate
            precision: TENTH for aggregate paths, INTEGER for display

        Returns:
            ValuationResult with value None when unpriced
        """
        warnings: list[str] = []

        if quote is None:
            warnings.append(f"No price data available for {holding.symbol}")
            return ValuationResult(value=None, currency=BASE_CURRENCY, warnings=tuple(warnings))

        quantity = to_decimal(quantity)
        if quantity < ZERO:
            warnings.append(f"Negative quantity {quantity} for {holding.symbol}, valued as 0")

        raw = self.raw_value(holding, quote, quantity, exchange_rate)
        fx_rate_used = _rate_of(exchange_rate) if self._converts(quote) else None

        return ValuationResult(
            value=precision.apply(raw) if raw is not None else None,
            currency=BASE_CURRENCY,
            fx_rate_used=fx_rate_used,
            warnings=tuple(warnings),
        )

    @staticmethod
    def _converts(quote: PriceQuote) -> bool:
        return (quote.currency or "").upper() == USD


# =============================================================================
# COUNTRY AGGREGATION CALCULATOR
# =============================================================================

class CountryAggregationCalculator:
    """
    Sums holding values per country.

    Raw (unrounded) values are accumulated and each sum is rounded once at
    the end. Unpriced holdings contribute nothing; holdings without an id
    are skipped entirely.

    The grand total is reduced independently over the same holdings and then
    checked against japan_total + us_total. Rounding each sum separately can
    put them 0.1 apart at a half boundary; the subtotal sum wins so that
    total == japan_total + us_total always holds.
    """

    def __init__(self, value_calculator: ValueCalculator | None = None) -> None:
        self._value_calculator = value_calculator or ValueCalculator()

    def aggregate_by_country(
            self,
            holdings: Iterable[Holding],
            quotes_by_symbol: Mapping[str, PriceQuote],
            quantities_by_id: Mapping[int, Decimal],
            exchange_rate: ExchangeRate | Decimal,
            precision: RoundingPrecision = RoundingPrecision.TENTH,
    ) -> CountryAggregate:
        """
        Aggregate holding values by country.

        Args:
            holdings: Holdings to sum
            quotes_by_symbol: Resolved quotes keyed by symbol
            quantities_by_id: Quantities keyed by holding id (missing = 0)
            exchange_rate: USD/JPY rate applied to USD quotes
            precision: Rounding applied to all three sums

        Returns:
            CountryAggregate in JPY
        """
        japan_raw = ZERO
        us_raw = ZERO
        total_raw = ZERO
        priced_count = 0
        unpriced: list[str] = []

        for holding in holdings:
            if holding.id is None:
                logger.debug(f"Skipping unsaved holding {holding.symbol}")
                continue

            quantity = quantities_by_id.get(holding.id, ZERO)
            raw = self._value_calculator.raw_value(
                holding,
                quotes_by_symbol.get(holding.symbol),
                quantity,
                exchange_rate,
            )

            if raw is None:
                if holding.symbol not in quotes_by_symbol:
                    unpriced.append(holding.symbol)
                continue

            priced_count += 1
            total_raw += raw
            if holding.country == Country.JAPAN:
                japan_raw += raw
            elif holding.country == Country.US:
                us_raw += raw

        japan_total = precision.apply(japan_raw)
        us_total = precision.apply(us_raw)
        total = precision.apply(total_raw)

        if total != japan_total + us_total:
            logger.debug(
                f"Grand total {total} differs from subtotal sum "
                f"{japan_total + us_total} after rounding; using subtotal sum"
            )
            total = japan_total + us_total

        if unpriced:
            logger.info(f"{len(unpriced)} holding(s) without price data: {', '.join(unpriced)}")

        return CountryAggregate(
            japan_total=japan_total,
            us_total=us_total,
            total=total,
            priced_count=priced_count,
            unpriced_symbols=tuple(unpriced),
        )


# =============================================================================
# INVESTMENT CALCULATOR
# =============================================================================

class InvestmentCalculator:
    """
    Cash-side figures derived from purchase, dividend and fund-flow records.

    Fund purchases are rounded to whole yen per record before summing
    (price × quantity ÷ 10,000, rounded); equity purchases are summed as is.
    """

    def quantity_for(
            self,
            purchases: Iterable[Purchase],
            holding_id: int,
            portfolio_id: int | None = None,
    ) -> Decimal:
        """
        Units held: sum of signed purchase quantities in the portfolio scope.

        Args:
            purchases: Purchase records
            holding_id: Holding to count
            portfolio_id: Portfolio scope (None = all portfolios)

        Returns:
            Quantity (0 if there are no purchases)
        """
        return sum(
            (
                p.quantity
                for p in _in_scope(purchases, portfolio_id)
                if p.holding_id == holding_id
            ),
            ZERO,
        )

    def quantities_by_id(
            self,
            purchases: Iterable[Purchase],
            portfolio_id: int | None = None,
    ) -> dict[int, Decimal]:
        quantities: dict[int, Decimal] = {}
        for purchase in _in_scope(purchases, portfolio_id):
            quantities[purchase.holding_id] = (
                quantities.get(purchase.holding_id, ZERO) + purchase.quantity
            )
        return quantities

    def total_investment(
            self,
            purchases: Iterable[Purchase],
            holdings_by_id: Mapping[int, Holding],
    ) -> Decimal:
        """
        Sum of purchase costs in yen.

        A purchase whose holding is unknown is costed as an equity.
        """
        total = ZERO
        for purchase in purchases:
            cost = purchase.price * purchase.quantity
            holding = holdings_by_id.get(purchase.holding_id)
            if holding is not None and holding.asset_type == AssetType.FUND:
                cost = round_to_integer(cost / FUND_UNIT_DIVISOR)
            total += cost
        return total

    def total_fees(self, purchases: Iterable[Purchase]) -> Decimal:
        return sum((p.fee for p in purchases), ZERO)

    def total_dividends(self, dividends: Iterable[Dividend]) -> Decimal:
        return sum((d.amount for d in dividends), ZERO)

    def total_funds(self, fund_flows: Iterable[FundFlow]) -> Decimal:
        """Deposits minus withdrawals."""
        total = ZERO
        for flow in fund_flows:
            if flow.flow_type == FundFlowType.DEPOSIT:
                total += flow.amount
            else:
                total -= flow.amount
        return total

    def calculate(
            self,
            purchases: list[Purchase],
            dividends: list[Dividend],
            fund_flows: list[FundFlow],
            holdings_by_id: Mapping[int, Holding],
    ) -> InvestmentTotals:
        """
        All cash-side totals for one set of records.

        available_cash = total_funds - total_investment + total_dividends
        """
        total_investment = self.total_investment(purchases, holdings_by_id)
        total_dividends = self.total_dividends(dividends)
        total_funds = self.total_funds(fund_flows)

        return InvestmentTotals(
            total_investment=total_investment,
            total_fees=self.total_fees(purchases),
            total_dividends=total_dividends,
            total_funds=total_funds,
            available_cash=total_funds - total_investment + total_dividends,
        )


def _in_scope(records: Iterable, portfolio_id: int | None) -> Iterable:
    if portfolio_id is None:
        return records
    return (r for r in records if r.portfolio_id == portfolio_id)
