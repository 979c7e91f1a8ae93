# backend/kabufolio/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The exception handlers in main.py map them to HTTP responses.

Missing prices are never exceptions (they are a None valuation), and a failed
exchange-rate refresh stops at ExchangeRateStateHolder. What remains here are
the failures that callers of the providers and the API have to see.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── MarketDataError
    │   ├── ProviderUnavailableError
    │   └── TickerNotFoundError
    └── FXRateError
        └── FXProviderError
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when programmatic validation fails.

    Request bodies are validated by Pydantic; this covers values that only
    the service layer can judge (a non-positive exchange rate, a holding that
    references an unknown country, ...).

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for price provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a price provider cannot be reached or returns garbage.

    Examples:
    - Network timeout
    - HTTP 5xx from the quote page
    - yfinance raising on a malformed response
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """
    Raised when a symbol has no price data at the provider.

    Attributes:
        ticker: The symbol (or fund code) that was looked up
    """

    def __init__(self, ticker: str, provider: str) -> None:
        message = f"No price data for '{ticker}' from {provider}"
        super().__init__(message, provider=provider)
        self.ticker = ticker


# =============================================================================
# FX RATE ERRORS
# =============================================================================


class FXRateError(ServiceError):
    """
    Base exception for USD/JPY rate errors.

    Attributes:
        base_currency: The base currency code
        quote_currency: The quote currency code
    """

    def __init__(
            self,
            message: str,
            base_currency: str | None = "USD",
            quote_currency: str | None = "JPY",
    ) -> None:
        self.base_currency = base_currency
        self.quote_currency = quote_currency
        super().__init__(message)


class FXProviderError(FXRateError):
    """
    Raised when the exchange-rate provider fails.

    Attributes:
        provider: Name of the rate provider
        reason: Specific reason for failure
    """

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"FX provider '{provider}' error: {reason}")
