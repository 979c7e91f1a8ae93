# backend/kabufolio/services/protocols.py
"""
Protocol interfaces for service dependency injection.

The record store lives in the browser. The services only need to read from
it, through HoldingsProvider; portfolio scope is always an explicit
parameter (None = all portfolios).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from kabufolio.models import Dividend, FundFlow, Holding, Purchase


class HoldingsProvider(Protocol):
    """Interface required by ValuationService."""

    def list_holdings(self, portfolio_id: int | None = None) -> list[Holding]:
        ...

    def quantity_for(self, holding_id: int, portfolio_id: int | None = None) -> Decimal:
        ...

    def list_purchases(self, portfolio_id: int | None = None) -> list[Purchase]:
        ...

    def list_dividends(self, portfolio_id: int | None = None) -> list[Dividend]:
        ...

    def list_fund_flows(self, portfolio_id: int | None = None) -> list[FundFlow]:
        ...
