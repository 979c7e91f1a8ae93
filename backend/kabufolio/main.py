# backend/kabufolio/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Starts and stops the exchange-rate polling with the application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from kabufolio.config import settings
from kabufolio.dependencies import get_exchange_rate_holder, get_fund_provider
from kabufolio.middleware import CorrelationIdMiddleware
from kabufolio.routers import exchange_rate_router, quotes_router, valuation_router
from kabufolio.schemas.errors import ErrorDetail, ValidationErrorDetail
from kabufolio.services.exceptions import (
    FXRateError,
    MarketDataError,
    ProviderUnavailableError,
    ServiceError,
    TickerNotFoundError,
    ValidationError,
)
from kabufolio.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


# =============================================================================
# LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    holder = get_exchange_rate_holder()
    holder.start()
    try:
        yield
    finally:
        holder.stop()
        get_fund_provider().close()


# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Japan / US portfolio valuation and rebalance advice",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================
# Origins are configured via CORS_ORIGINS environment variable

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Services raise plain exceptions; these turn them into ErrorDetail bodies.
# Starlette picks the handler registered for the most specific class.
# =============================================================================

def _error_response(
        status_code: int,
        exc: Exception,
        details: dict | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details=details,
        ).model_dump(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Rejected record snapshot or input (400)."""
    logger.warning(f"Rejected {request.url.path}: {exc}")
    return _error_response(400, exc, {"field": exc.field} if exc.field else None)


@app.exception_handler(TickerNotFoundError)
async def ticker_not_found_handler(request: Request, exc: TickerNotFoundError) -> JSONResponse:
    """No price for the symbol (404)."""
    logger.info(f"No quote for {exc.ticker} from {exc.provider}")
    return _error_response(404, exc, {"ticker": exc.ticker, "provider": exc.provider})


@app.exception_handler(ProviderUnavailableError)
async def provider_unavailable_handler(request: Request, exc: ProviderUnavailableError) -> JSONResponse:
    """Quote source unreachable (503)."""
    logger.error(f"Quote source down: {exc}")
    return _error_response(503, exc, {"provider": exc.provider})


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    logger.error(f"Quote lookup failed: {exc}")
    return _error_response(503, exc)


@app.exception_handler(FXRateError)
async def fx_rate_error_handler(request: Request, exc: FXRateError) -> JSONResponse:
    """USD/JPY unavailable (503)."""
    logger.error(f"USD/JPY lookup failed: {exc}")
    return _error_response(
        503,
        exc,
        {"base_currency": exc.base_currency, "quote_currency": exc.quote_currency},
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.error(f"Unhandled service error on {request.url.path}: {exc}")
    return _error_response(500, exc)


# Routing 404/405 are raised as starlette's HTTPException, FastAPI's is a subclass
_HTTP_ERROR_NAMES = {
    400: "BadRequestError",
    404: "NotFoundError",
    405: "MethodNotAllowedError",
    422: "ValidationError",
    500: "InternalServerError",
    503: "ServiceUnavailableError",
}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Replace FastAPI's {"detail": ...} body with ErrorDetail."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=_HTTP_ERROR_NAMES.get(exc.status_code, "HTTPError"),
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """One entry per invalid field, located as e.g. "body.holdings.0.country" (422)."""
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            error="ValidationError",
            message="Request validation failed",
            details=details,
        ).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(exchange_rate_router)  # /exchange-rate/*
app.include_router(quotes_router)  # /quotes/*
app.include_router(valuation_router)  # /valuation/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
def root():
    """API root - returns basic application info."""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Always 200 while the process is alive. The exchange-rate holder is
    reported for information only: a failed refresh leaves the last good
    rate in service, so it degrades the status rather than failing it.
    """
    holder = get_exchange_rate_holder()
    stats = holder.stats
    snapshot = holder.snapshot

    exchange_rate = {
        "status": "healthy",
        "polling": holder.is_running,
        "state": holder.state.value,
        "rate": str(snapshot.rate),
        "last_updated": snapshot.last_updated.isoformat(),
        "successful_refreshes": stats.successful_refreshes,
        "failed_refreshes": stats.failed_refreshes,
    }
    overall_status = "healthy"
    if stats.last_error is not None:
        exchange_rate["status"] = "degraded"
        exchange_rate["last_error"] = stats.last_error
        overall_status = "degraded"

    return {
        "status": overall_status,
        "checks": {"exchange_rate": exchange_rate},
    }
