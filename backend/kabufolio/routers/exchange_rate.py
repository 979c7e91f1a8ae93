# backend/kabufolio/routers/exchange_rate.py
"""
USD/JPY exchange-rate endpoints.

- GET  /exchange-rate         - Current snapshot and refresh flags
- POST /exchange-rate/refresh - Manual refresh (bypasses the rate cache)

The snapshot is always present: until the first successful fetch it holds
the default rate.
"""

from fastapi import APIRouter, Depends

from kabufolio.dependencies import get_exchange_rate_holder
from kabufolio.schemas.exchange_rates import (
    ExchangeRateRefreshResponse,
    ExchangeRateResponse,
)
from kabufolio.services.exchange_rate_state import ExchangeRateStateHolder

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/exchange-rate",
    tags=["Exchange Rate"],
)


def _map_snapshot(holder: ExchangeRateStateHolder) -> ExchangeRateResponse:
    """Map the holder's snapshot and state to the response schema."""
    snapshot = holder.snapshot
    state = holder.state
    return ExchangeRateResponse(
        rate=snapshot.rate,
        last_updated=snapshot.last_updated,
        state=state.value,
        is_refreshing=holder.is_refreshing,
        just_updated=holder.just_updated,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "",
    response_model=ExchangeRateResponse,
    summary="Get current USD/JPY rate",
)
def get_exchange_rate(
        holder: ExchangeRateStateHolder = Depends(get_exchange_rate_holder),
) -> ExchangeRateResponse:
    """
    Current best-known rate.

    `state` is `just_updated` for a few seconds after a successful refresh,
    which clients use to flash the "updated" indicator.
    """
    return _map_snapshot(holder)


@router.post(
    "/refresh",
    response_model=ExchangeRateRefreshResponse,
    summary="Refresh USD/JPY rate now",
)
def refresh_exchange_rate(
        holder: ExchangeRateStateHolder = Depends(get_exchange_rate_holder),
) -> ExchangeRateRefreshResponse:
    """
    Fetch a fresh rate, bypassing the five-minute cache.

    `updated` is false when the fetch failed or another refresh was already
    in flight; the previous rate stays in place either way.
    """
    rate = holder.manual_refresh()
    return ExchangeRateRefreshResponse(
        updated=rate is not None,
        exchange_rate=_map_snapshot(holder),
        last_error=None if rate is not None else holder.stats.last_error,
    )
