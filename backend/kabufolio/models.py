# backend/kabufolio/models.py
"""
Record types consumed by the valuation engine.

Persistence belongs to the browser-local record store; these dataclasses are
the shape in which holdings, purchases, dividends and cash movements reach
the services (from the HTTP snapshot or from a HoldingsProvider).
"""
import enum
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal


# Enums carry the store's string values so snapshots round-trip unchanged
class Country(str, enum.Enum):
    JAPAN = "JAPAN"
    US = "US"


class AssetType(str, enum.Enum):
    EQUITY = "EQUITY"
    FUND = "FUND"


class FundFlowType(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"


@dataclass(frozen=True)
class Holding:
    """
    A tracked stock or fund.

    id is None for holdings that were never saved by the store; those are
    excluded from quantity lookup and contribute nothing to aggregates.
    """
    id: int | None
    symbol: str
    country: Country
    asset_type: AssetType = AssetType.EQUITY
    name: str | None = None

    @property
    def is_fund(self) -> bool:
        return self.asset_type == AssetType.FUND


@dataclass(frozen=True)
class Purchase:
    holding_id: int
    quantity: Decimal
    price: Decimal
    fee: Decimal = Decimal("0")
    portfolio_id: int | None = None
    purchase_date: date | None = None


@dataclass(frozen=True)
class Dividend:
    holding_id: int
    amount: Decimal
    portfolio_id: int | None = None
    tax_amount: Decimal | None = None
    received_date: date | None = None


@dataclass(frozen=True)
class FundFlow:
    """A cash deposit into, or withdrawal from, a portfolio."""
    amount: Decimal
    flow_type: FundFlowType
    portfolio_id: int | None = None
    flow_date: date | None = None


@dataclass(frozen=True)
class PriceQuote:
    """
    A point-in-time market price.

    Fund prices are quoted per 10,000 units. The currency is whatever the
    provider reported; nothing downstream assumes funds are in JPY.
    net_assets is the fund size in millions of yen, when the source shows it.
    """
    symbol: str
    price: Decimal
    currency: str = "JPY"
    last_updated: datetime | None = None
    name: str | None = None
    net_assets: Decimal | None = None


@dataclass(frozen=True)
class ExchangeRate:
    """USD -> JPY conversion rate and the time it was observed."""
    rate: Decimal
    last_updated: datetime

