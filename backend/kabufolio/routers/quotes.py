# backend/kabufolio/routers/quotes.py
"""
Price lookup endpoints.

- GET /quotes/stock?symbol=AAPL - Latest equity price (TSE codes are
  resolved with the .T suffix)
- GET /quotes/fund?code=0331418A - Latest fund NAV per 10,000 units

Unknown symbols surface as 404 and provider outages as 503 through the
global handlers.
"""

from fastapi import APIRouter, Depends, Query

from kabufolio.dependencies import get_equity_provider, get_fund_provider
from kabufolio.models import PriceQuote
from kabufolio.schemas.quotes import QuoteResponse
from kabufolio.services.exceptions import TickerNotFoundError
from kabufolio.services.market_data.base import PriceProvider

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/quotes",
    tags=["Quotes"],
)


def _map_quote(quote: PriceQuote, provider: PriceProvider) -> QuoteResponse:
    return QuoteResponse(
        symbol=quote.symbol,
        price=quote.price,
        currency=quote.currency,
        last_updated=quote.last_updated,
        name=quote.name,
        net_assets=quote.net_assets,
        provider=provider.name,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/stock",
    response_model=QuoteResponse,
    summary="Get latest stock price",
)
def get_stock_quote(
        symbol: str = Query(..., min_length=1, max_length=32, description="Ticker or TSE code"),
        provider: PriceProvider = Depends(get_equity_provider),
) -> QuoteResponse:
    """Raises **404** if the provider has no price for the symbol."""
    quote = provider.latest_quote(symbol.strip())
    if quote is None:
        raise TickerNotFoundError(ticker=symbol, provider=provider.name)
    return _map_quote(quote, provider)


@router.get(
    "/fund",
    response_model=QuoteResponse,
    summary="Get latest fund NAV",
)
def get_fund_quote(
        code: str = Query(..., min_length=1, max_length=32, description="Fund code"),
        provider: PriceProvider = Depends(get_fund_provider),
) -> QuoteResponse:
    """
    Latest NAV in JPY per 10,000 units.

    Raises **404** if the fund page has no recognisable price.
    """
    quote = provider.latest_quote(code.strip())
    if quote is None:
        raise TickerNotFoundError(ticker=code, provider=provider.name)
    return _map_quote(quote, provider)
