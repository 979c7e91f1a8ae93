# backend/kabufolio/services/holdings.py
"""
In-memory HoldingsProvider.

The browser owns the real record store and posts a snapshot of it; this
class serves that snapshot to ValuationService. Holdings are shared by all
portfolios; purchases, dividends and fund flows belong to one portfolio
each (or none, for records created before portfolios existed).
"""

import logging
from decimal import Decimal

from kabufolio.models import Dividend, FundFlow, Holding, Purchase
from kabufolio.services.exceptions import ValidationError
from kabufolio.services.valuation.calculators import InvestmentCalculator

logger = logging.getLogger(__name__)


class InMemoryHoldingsStore:
    """
    Snapshot of the record store.

    Raises:
        ValidationError: If two holdings share an id or a symbol
    """

    def __init__(
            self,
            holdings: list[Holding] | None = None,
            purchases: list[Purchase] | None = None,
            dividends: list[Dividend] | None = None,
            fund_flows: list[FundFlow] | None = None,
    ) -> None:
        self._holdings = list(holdings or [])
        self._purchases = list(purchases or [])
        self._dividends = list(dividends or [])
        self._fund_flows = list(fund_flows or [])
        self._investment_calculator = InvestmentCalculator()

        self._validate_unique()
        logger.debug(
            f"Loaded snapshot: {len(self._holdings)} holdings, "
            f"{len(self._purchases)} purchases, {len(self._dividends)} dividends, "
            f"{len(self._fund_flows)} fund flows"
        )

    def _validate_unique(self) -> None:
        seen_ids: set[int] = set()
        seen_symbols: set[str] = set()
        for holding in self._holdings:
            if holding.id is not None:
                if holding.id in seen_ids:
                    raise ValidationError(f"Duplicate holding id {holding.id}", field="holdings")
                seen_ids.add(holding.id)
            if holding.symbol in seen_symbols:
                raise ValidationError(f"Duplicate symbol {holding.symbol}", field="holdings")
            seen_symbols.add(holding.symbol)

    def list_holdings(self, portfolio_id: int | None = None) -> list[Holding]:
        return list(self._holdings)

    def quantity_for(self, holding_id: int, portfolio_id: int | None = None) -> Decimal:
        return self._investment_calculator.quantity_for(self._purchases, holding_id, portfolio_id)

    def list_purchases(self, portfolio_id: int | None = None) -> list[Purchase]:
        return [p for p in self._purchases if portfolio_id is None or p.portfolio_id == portfolio_id]

    def list_dividends(self, portfolio_id: int | None = None) -> list[Dividend]:
        return [d for d in self._dividends if portfolio_id is None or d.portfolio_id == portfolio_id]

    def list_fund_flows(self, portfolio_id: int | None = None) -> list[FundFlow]:
        return [f for f in self._fund_flows if portfolio_id is None or f.portfolio_id == portfolio_id]
