# backend/kabufolio/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

- errors: Error response formats
- exchange_rates: USD/JPY snapshot and refresh results
- quotes: Stock and fund price lookups
- valuation: Record snapshots, holding valuation, portfolio summary

Usage:
    from kabufolio.schemas import PortfolioValuationRequest, PortfolioSummaryResponse
    from kabufolio.schemas import ExchangeRateResponse
"""

from kabufolio.schemas.errors import ErrorDetail, ValidationErrorDetail
from kabufolio.schemas.exchange_rates import (
    ExchangeRateRefreshResponse,
    ExchangeRateResponse,
)
from kabufolio.schemas.quotes import QuoteResponse
from kabufolio.schemas.valuation import (
    CountryAggregateResponse,
    DividendIn,
    FundFlowIn,
    HoldingIn,
    HoldingValuationRequest,
    HoldingValuationResponse,
    InvestmentTotalsResponse,
    PortfolioSummaryResponse,
    PortfolioValuationRequest,
    PurchaseIn,
    QuoteIn,
    RebalanceResponse,
    ValuationResultResponse,
    YenGapResponse,
)

__all__ = [
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Exchange rate
    "ExchangeRateResponse",
    "ExchangeRateRefreshResponse",
    # Quotes
    "QuoteResponse",
    # Valuation requests
    "HoldingIn",
    "PurchaseIn",
    "DividendIn",
    "FundFlowIn",
    "QuoteIn",
    "HoldingValuationRequest",
    "PortfolioValuationRequest",
    # Valuation responses
    "ValuationResultResponse",
    "HoldingValuationResponse",
    "CountryAggregateResponse",
    "RebalanceResponse",
    "YenGapResponse",
    "InvestmentTotalsResponse",
    "PortfolioSummaryResponse",
]
