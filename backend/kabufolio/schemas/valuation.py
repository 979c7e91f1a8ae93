# backend/kabufolio/schemas/valuation.py
"""
Pydantic schemas for valuation.

These schemas handle:
- Record snapshots posted by the browser (holdings, purchases, dividends,
  fund flows, quotes)
- Single-holding valuation
- Portfolio summary (country totals, rebalance advice, returns, cash)
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kabufolio.models import AssetType, Country, FundFlowType
from kabufolio.services.money import RoundingPrecision


# =============================================================================
# RECORD SNAPSHOT SCHEMAS (request side)
# =============================================================================

class HoldingIn(BaseModel):
    """A stock or fund as stored by the client."""

    id: int | None = Field(default=None, description="Store id (None if never saved)")
    symbol: str = Field(..., min_length=1, max_length=32, description="Ticker, TSE code or fund code")
    country: Country
    asset_type: AssetType = AssetType.EQUITY
    name: str | None = None

    @field_validator("symbol")
    @classmethod
    def strip_symbol(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("symbol cannot be blank")
        return v


class PurchaseIn(BaseModel):
    """A purchase record. Negative quantities record disposals."""

    holding_id: int
    quantity: Decimal
    price: Decimal = Field(..., ge=0)
    fee: Decimal = Field(default=Decimal("0"), ge=0)
    portfolio_id: int | None = None
    purchase_date: dt.date | None = None


class DividendIn(BaseModel):
    holding_id: int
    amount: Decimal
    portfolio_id: int | None = None
    tax_amount: Decimal | None = None
    received_date: dt.date | None = None


class FundFlowIn(BaseModel):
    """A cash deposit or withdrawal."""

    amount: Decimal = Field(..., ge=0)
    flow_type: FundFlowType
    portfolio_id: int | None = None
    flow_date: dt.date | None = None


class QuoteIn(BaseModel):
    """A price the client already has."""

    price: Decimal = Field(..., gt=0)
    currency: str = Field(default="JPY", min_length=3, max_length=8)
    last_updated: dt.datetime | None = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.strip().upper()


class HoldingValuationRequest(BaseModel):
    """Value one holding."""

    holding: HoldingIn
    quantity: Decimal = Field(..., ge=0)
    quote: QuoteIn | None = Field(
        default=None,
        description="Price to use; fetched from the providers when omitted"
    )
    exchange_rate: Decimal | None = Field(
        default=None,
        gt=0,
        description="USD/JPY override; the current snapshot is used when omitted"
    )
    precision: RoundingPrecision = RoundingPrecision.INTEGER


class PortfolioValuationRequest(BaseModel):
    """Snapshot of the client's records for one valuation."""

    portfolio_id: int | None = Field(
        default=None,
        description="Portfolio scope; None values all portfolios together"
    )
    holdings: list[HoldingIn] = Field(default_factory=list)
    purchases: list[PurchaseIn] = Field(default_factory=list)
    dividends: list[DividendIn] = Field(default_factory=list)
    fund_flows: list[FundFlowIn] = Field(default_factory=list)
    quotes: dict[str, QuoteIn] = Field(
        default_factory=dict,
        description="Known prices keyed by symbol; missing ones are fetched"
    )
    exchange_rate: Decimal | None = Field(
        default=None,
        gt=0,
        description="USD/JPY override; the current snapshot is used when omitted"
    )


# =============================================================================
# VALUATION RESPONSE SCHEMAS
# =============================================================================

class ValuationResultResponse(BaseModel):
    """Value of one holding in yen."""

    model_config = ConfigDict(from_attributes=True)

    value: Decimal | None = Field(..., description="JPY value (None if unpriced)")
    currency: str = "JPY"
    formatted_value: str | None = Field(default=None, description="Display string, e.g. '¥300,000'")
    fx_rate_used: Decimal | None = None
    warnings: list[str] = Field(default_factory=list)


class HoldingValuationResponse(BaseModel):
    """Valuation of one holding with its inputs."""

    holding_id: int | None
    symbol: str
    name: str | None = None
    country: Country
    asset_type: AssetType
    quantity: Decimal
    price: Decimal | None = None
    price_currency: str | None = None
    precision: RoundingPrecision
    valuation: ValuationResultResponse


class CountryAggregateResponse(BaseModel):
    japan_total: Decimal
    us_total: Decimal
    total: Decimal
    priced_count: int
    unpriced_symbols: list[str] = Field(default_factory=list)


class RebalanceResponse(BaseModel):
    """Percentage-threshold rebalance advice."""

    difference: Decimal = Field(..., description="|jp_percent - us_percent| (0.1 = 10 points)")
    target_country: Country | None = Field(..., description="Where to add next (None = balanced)")
    jp_percent: Decimal
    us_percent: Decimal
    jp_percent_display: str
    us_percent_display: str


class YenGapResponse(BaseModel):
    """Absolute yen-gap rebalance advice."""

    difference: Decimal
    target_country: Country


class InvestmentTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_investment: Decimal
    total_fees: Decimal
    total_dividends: Decimal
    total_funds: Decimal
    available_cash: Decimal


class PortfolioSummaryResponse(BaseModel):
    """Dashboard summary for one portfolio scope."""

    portfolio_id: int | None
    exchange_rate: Decimal
    aggregate: CountryAggregateResponse
    rebalance: RebalanceResponse
    yen_gap: YenGapResponse
    totals: InvestmentTotalsResponse
    investment_return: Decimal
    dividend_yield: Decimal
    investment_return_display: str
    dividend_yield_display: str
    formatted_total: str
    holdings: list[HoldingValuationResponse]
    registered_count: int
    priced_count: int
    has_complete_data: bool
    warnings: list[str] = Field(default_factory=list)
