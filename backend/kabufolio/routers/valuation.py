# backend/kabufolio/routers/valuation.py
"""
Valuation endpoints.

- POST /valuation/holding   - Value one holding in yen
- POST /valuation/portfolio - Country totals, rebalance advice, returns, cash

The client posts a snapshot of its records; nothing is stored server-side.
Values use the exchange-rate holder's current snapshot unless the request
carries its own rate.
"""

from datetime import datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends

from kabufolio.dependencies import get_exchange_rate_holder, get_valuation_service
from kabufolio.models import Dividend, ExchangeRate, FundFlow, Holding, PriceQuote, Purchase
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
from kabufolio.services.exchange_rate_state import ExchangeRateStateHolder
from kabufolio.services.holdings import InMemoryHoldingsStore
from kabufolio.services.money import format_currency, format_percent
from kabufolio.services.valuation import ValuationService
from kabufolio.services.valuation.types import HoldingValuation, PortfolioSummary

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/valuation",
    tags=["Valuation"],
)


# =============================================================================
# MAPPER FUNCTIONS (Pydantic Schemas -> Records)
# =============================================================================

def _to_holding(h: HoldingIn) -> Holding:
    return Holding(id=h.id, symbol=h.symbol, country=h.country, asset_type=h.asset_type, name=h.name)


def _to_purchase(p: PurchaseIn) -> Purchase:
    return Purchase(
        holding_id=p.holding_id,
        quantity=p.quantity,
        price=p.price,
        fee=p.fee,
        portfolio_id=p.portfolio_id,
        purchase_date=p.purchase_date,
    )


def _to_dividend(d: DividendIn) -> Dividend:
    return Dividend(
        holding_id=d.holding_id,
        amount=d.amount,
        portfolio_id=d.portfolio_id,
        tax_amount=d.tax_amount,
        received_date=d.received_date,
    )


def _to_fund_flow(f: FundFlowIn) -> FundFlow:
    return FundFlow(
        amount=f.amount,
        flow_type=f.flow_type,
        portfolio_id=f.portfolio_id,
        flow_date=f.flow_date,
    )


def _to_quote(symbol: str, q: QuoteIn) -> PriceQuote:
    return PriceQuote(symbol=symbol, price=q.price, currency=q.currency, last_updated=q.last_updated)


def _resolve_rate(override: Decimal | None, holder: ExchangeRateStateHolder) -> ExchangeRate:
    """Request override if given, otherwise the holder's snapshot."""
    if override is not None:
        return ExchangeRate(rate=override, last_updated=datetime.now(timezone.utc))
    return holder.snapshot


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _map_holding_valuation(valuation: HoldingValuation) -> HoldingValuationResponse:
    """Map internal HoldingValuation to Pydantic schema."""
    holding = valuation.holding
    result = valuation.result
    return HoldingValuationResponse(
        holding_id=holding.id,
        symbol=holding.symbol,
        name=holding.name or (valuation.quote.name if valuation.quote else None),
        country=holding.country,
        asset_type=holding.asset_type,
        quantity=valuation.quantity,
        price=valuation.quote.price if valuation.quote else None,
        price_currency=valuation.quote.currency if valuation.quote else None,
        precision=valuation.precision,
        valuation=ValuationResultResponse(
            value=result.value,
            currency=result.currency,
            formatted_value=format_currency(result.value) if result.is_priced else None,
            fx_rate_used=result.fx_rate_used,
            warnings=list(result.warnings),
        ),
    )


def _map_summary(summary: PortfolioSummary) -> PortfolioSummaryResponse:
    """Map internal PortfolioSummary to Pydantic schema."""
    aggregate = summary.aggregate
    rebalance = summary.rebalance
    totals = summary.totals
    return PortfolioSummaryResponse(
        portfolio_id=summary.portfolio_id,
        exchange_rate=summary.exchange_rate,
        aggregate=CountryAggregateResponse(
            japan_total=aggregate.japan_total,
            us_total=aggregate.us_total,
            total=aggregate.total,
            priced_count=aggregate.priced_count,
            unpriced_symbols=list(aggregate.unpriced_symbols),
        ),
        rebalance=RebalanceResponse(
            difference=rebalance.difference,
            target_country=rebalance.target_country,
            jp_percent=rebalance.jp_percent,
            us_percent=rebalance.us_percent,
            jp_percent_display=format_percent(rebalance.jp_percent),
            us_percent_display=format_percent(rebalance.us_percent),
        ),
        yen_gap=YenGapResponse(
            difference=summary.yen_gap.difference,
            target_country=summary.yen_gap.target_country,
        ),
        totals=InvestmentTotalsResponse.model_validate(totals),
        investment_return=summary.investment_return,
        dividend_yield=summary.dividend_yield,
        investment_return_display=format_percent(summary.investment_return, digits=2),
        dividend_yield_display=format_percent(summary.dividend_yield, digits=2),
        formatted_total=format_currency(aggregate.total),
        holdings=[_map_holding_valuation(v) for v in summary.holdings],
        registered_count=summary.registered_count,
        priced_count=summary.priced_count,
        has_complete_data=summary.has_complete_data,
        warnings=summary.warnings,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "/holding",
    response_model=HoldingValuationResponse,
    summary="Value a single holding",
)
def value_holding(
        request: HoldingValuationRequest,
        service: ValuationService = Depends(get_valuation_service),
        holder: ExchangeRateStateHolder = Depends(get_exchange_rate_holder),
) -> HoldingValuationResponse:
    """
    Value one holding in yen.

    - USD-quoted prices are converted at the current USD/JPY rate
    - Fund prices are per 10,000 units
    - `valuation.value` is null when no price could be found
    """
    holding = _to_holding(request.holding)
    quote = _to_quote(holding.symbol, request.quote) if request.quote else None

    valuation = service.get_holding_valuation(
        holding=holding,
        quantity=request.quantity,
        exchange_rate=_resolve_rate(request.exchange_rate, holder),
        quote=quote,
        precision=request.precision,
    )
    return _map_holding_valuation(valuation)


@router.post(
    "/portfolio",
    response_model=PortfolioSummaryResponse,
    summary="Value a portfolio",
    response_description="Country totals, rebalance advice, returns and cash",
)
def value_portfolio(
        request: PortfolioValuationRequest,
        service: ValuationService = Depends(get_valuation_service),
        holder: ExchangeRateStateHolder = Depends(get_exchange_rate_holder),
) -> PortfolioSummaryResponse:
    """
    Summarise one portfolio (or all of them when `portfolio_id` is null).

    Returns:
    - **aggregate**: Japan / US / total in yen (one decimal)
    - **rebalance**: Country to buy next when the shares differ by 10 points or more
    - **yen_gap**: Country with the smaller yen total and the gap
    - **totals**: Invested amount, fees, dividends, deposits and available cash
    - **holdings**: Per-holding values in whole yen

    Holdings without a price contribute nothing; `has_complete_data` is then
    false and the symbols are listed in `aggregate.unpriced_symbols`.

    Raises **400** if two holdings share an id or a symbol.
    """
    # Domain exceptions (ValidationError) propagate to global handlers
    store = InMemoryHoldingsStore(
        holdings=[_to_holding(h) for h in request.holdings],
        purchases=[_to_purchase(p) for p in request.purchases],
        dividends=[_to_dividend(d) for d in request.dividends],
        fund_flows=[_to_fund_flow(f) for f in request.fund_flows],
    )
    quotes = {symbol.strip(): _to_quote(symbol.strip(), q) for symbol, q in request.quotes.items()}

    summary = service.get_summary(
        provider=store,
        exchange_rate=_resolve_rate(request.exchange_rate, holder),
        portfolio_id=request.portfolio_id,
        quotes=quotes,
    )
    return _map_summary(summary)
