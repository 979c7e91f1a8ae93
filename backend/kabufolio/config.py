# backend/kabufolio/config.py
"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables with validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- LOG_LEVEL / LOG_FORMAT: Logging behaviour
- EXCHANGE_RATE_*: USD/JPY refresh protocol (polling, display window, cache)
- PROVIDER_*: Market data provider settings

Configuration is validated on application startup. Invalid configuration
will raise a ValueError with a descriptive message.

Usage:
    from kabufolio.config import settings

    holder = ExchangeRateStateHolder(
        fetcher=provider,
        refresh_interval=settings.exchange_rate_refresh_interval_seconds,
    )
"""
from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Find the .env file in project root (parent of backend/)
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables:
        - ENVIRONMENT: Runtime environment (development, test, production)
        - APP_NAME: Application name (default: "Kabufolio")
        - LOG_LEVEL: Logging level (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")

    Exchange rate settings (optional, with defaults matching the web client):
        - DEFAULT_EXCHANGE_RATE: USD/JPY used before the first fetch (default: 150)
        - EXCHANGE_RATE_REFRESH_INTERVAL_SECONDS: Polling interval (default: 600)
        - EXCHANGE_RATE_AUTO_UPDATE_ON_LOAD: Refresh on startup (default: True)
        - EXCHANGE_RATE_UPDATE_DISPLAY_SECONDS: "Just updated" window (default: 3)
        - EXCHANGE_RATE_CACHE_MINUTES: Reuse window for automatic refreshes (default: 5)
    """

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    app_name: str = "Kabufolio"
    debug: bool = False

    # =========================================================================
    # EXCHANGE RATE (USD -> JPY)
    # =========================================================================
    default_exchange_rate: Decimal = Field(
        default=Decimal("150"),
        gt=0,
        description="USD/JPY rate used until the first successful fetch"
    )
    exchange_rate_refresh_interval_seconds: float = Field(
        default=600.0,
        ge=0,
        description="Polling interval in seconds (0 disables polling)"
    )
    exchange_rate_auto_update_on_load: bool = Field(
        default=True,
        description="Fetch the rate once when the application starts"
    )
    exchange_rate_update_display_seconds: float = Field(
        default=3.0,
        ge=0,
        description="How long the 'just updated' flag stays raised"
    )
    exchange_rate_cache_minutes: float = Field(
        default=5.0,
        ge=0,
        description="Automatic refreshes reuse a cached rate younger than this"
    )

    # =========================================================================
    # MARKET DATA PROVIDERS
    # =========================================================================
    provider_timeout_seconds: int = Field(
        default=10,
        ge=1,
        le=60,
        description="Timeout for outbound provider requests"
    )
    fund_quote_base_url: str = Field(
        default="https://finance.yahoo.co.jp/quote",
        description="Base URL of the fund NAV page"
    )
    fund_price_cache_seconds: int = Field(
        default=3600,
        ge=0,
        description="In-memory cache lifetime for fund NAV lookups"
    )

    # =========================================================================
    # CORS
    # =========================================================================
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Allowed CORS origins (comma-separated in env var)"
    )
    cors_allow_credentials: bool = Field(
        default=True,
        description="Allow credentials in CORS requests"
    )
    cors_allow_methods: list[str] = Field(
        default=["*"],
        description="Allowed HTTP methods for CORS"
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        description="Allowed HTTP headers for CORS"
    )

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_exchange_rate_config(self) -> "Settings":
        """
        Validate the exchange rate refresh protocol.

        Rules:
        - test: polling and auto-update are switched off so that tests drive
          refreshes explicitly
        - the "just updated" window must be shorter than the polling interval
        """
        if self.environment == "test":
            object.__setattr__(self, "exchange_rate_refresh_interval_seconds", 0.0)
            object.__setattr__(self, "exchange_rate_auto_update_on_load", False)
            return self

        interval = self.exchange_rate_refresh_interval_seconds
        if interval > 0 and self.exchange_rate_update_display_seconds >= interval:
            raise ValueError(
                "EXCHANGE_RATE_UPDATE_DISPLAY_SECONDS must be shorter than "
                f"EXCHANGE_RATE_REFRESH_INTERVAL_SECONDS ({interval}s)."
            )

        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


# Create single instance
settings = Settings()
