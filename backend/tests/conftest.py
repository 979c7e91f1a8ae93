# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Mock price and rate providers
- A manually driven scheduler for the exchange-rate state holder
- Sample data factories
"""

import os

# Test mode switches off polling and the load-time refresh; it must be set
# BEFORE any kabufolio module creates the settings singleton.
os.environ["ENVIRONMENT"] = "test"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable

import pytest

from kabufolio.models import (
    AssetType,
    Country,
    Dividend,
    ExchangeRate,
    FundFlow,
    FundFlowType,
    Holding,
    PriceQuote,
    Purchase,
)
from kabufolio.services.exceptions import FXProviderError
from kabufolio.services.market_data.base import PriceProvider, RateProvider


# =============================================================================
# MOCK PRICE PROVIDER
# =============================================================================

class MockPriceProvider(PriceProvider):
    """
    Mock implementation of PriceProvider for testing.

    Allows configuring quotes for specific symbols and simulating errors.
    Unknown symbols have no price (None).
    """

    def __init__(self, name: str = "mock"):
        self._name = name
        self._quotes: dict[str, PriceQuote] = {}
        self._errors: dict[str, Exception] = {}
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def add_quote(self, symbol: str, price, currency: str = "JPY", name: str | None = None) -> None:
        """Configure a successful response for a symbol."""
        self._quotes[symbol] = create_quote(symbol, price, currency, name=name)

    def add_error(self, symbol: str, error: Exception) -> None:
        """Configure an error response for a symbol."""
        self._errors[symbol] = error

    def latest_quote(self, symbol: str) -> PriceQuote | None:
        self.calls.append(symbol)
        if symbol in self._errors:
            raise self._errors[symbol]
        return self._quotes.get(symbol)


@pytest.fixture
def mock_provider() -> MockPriceProvider:
    """Create a fresh mock price provider for each test."""
    return MockPriceProvider()


# =============================================================================
# MOCK RATE PROVIDER
# =============================================================================

class MockRateProvider(RateProvider):
    """
    Mock RateProvider returning queued results.

    Each fetch pops the next configured rate or exception; with nothing
    queued it raises FXProviderError.
    """

    def __init__(self, *results):
        self._results: list = list(results)
        self.calls: list[bool] = []
        self.before_return: Callable[[], None] | None = None

    @property
    def name(self) -> str:
        return "mock_fx"

    def queue(self, *results) -> None:
        self._results.extend(results)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def fetch_rate(self, manual: bool = False) -> ExchangeRate:
        self.calls.append(manual)
        if self.before_return is not None:
            self.before_return()
        if not self._results:
            raise FXProviderError(provider=self.name, reason="no rate configured")
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, ExchangeRate):
            return result
        return create_rate(result)


@pytest.fixture
def mock_rate_provider() -> MockRateProvider:
    return MockRateProvider()


# =============================================================================
# MANUAL SCHEDULER AND CLOCK
# =============================================================================

class FakeTimer:
    def __init__(self, scheduler: "FakeScheduler", due: float, callback: Callable[[], None]):
        self._scheduler = scheduler
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """
    Scheduler whose timers only fire when the test advances time.

    advance(seconds) runs every timer due within the window, in due order,
    including timers armed by callbacks that fire during the advance.
    """

    def __init__(self):
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self, self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float = 0.0) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.pending if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.timers.remove(timer)
            self.now = max(self.now, timer.due)
            timer.callback()
        self.now = target


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


class FakeClock:
    """Callable clock that moves only when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_holding(
        id: int | None = 1,
        symbol: str = "7203",
        country: Country = Country.JAPAN,
        asset_type: AssetType = AssetType.EQUITY,
        name: str | None = None,
) -> Holding:
    """Factory function for creating Holding test data."""
    return Holding(id=id, symbol=symbol, country=country, asset_type=asset_type, name=name)


def create_quote(
        symbol: str = "7203",
        price="1000",
        currency: str = "JPY",
        name: str | None = None,
) -> PriceQuote:
    """Factory function for creating PriceQuote test data."""
    return PriceQuote(symbol=symbol, price=Decimal(str(price)), currency=currency, name=name)


def create_purchase(
        holding_id: int = 1,
        quantity="100",
        price="1000",
        fee="0",
        portfolio_id: int | None = None,
) -> Purchase:
    """Factory function for creating Purchase test data."""
    return Purchase(
        holding_id=holding_id,
        quantity=Decimal(str(quantity)),
        price=Decimal(str(price)),
        fee=Decimal(str(fee)),
        portfolio_id=portfolio_id,
    )


def create_dividend(holding_id: int = 1, amount="1000", portfolio_id: int | None = None) -> Dividend:
    return Dividend(holding_id=holding_id, amount=Decimal(str(amount)), portfolio_id=portfolio_id)


def create_fund_flow(
        amount="100000",
        flow_type: FundFlowType = FundFlowType.DEPOSIT,
        portfolio_id: int | None = None,
) -> FundFlow:
    return FundFlow(amount=Decimal(str(amount)), flow_type=flow_type, portfolio_id=portfolio_id)


def create_rate(rate="150", last_updated: datetime | None = None) -> ExchangeRate:
    """Factory function for creating ExchangeRate test data."""
    return ExchangeRate(
        rate=Decimal(str(rate)),
        last_updated=last_updated or datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc),
    )


# =============================================================================
# FIXTURE EXPORTS (for convenience imports in tests)
# =============================================================================

@pytest.fixture
def rate_150() -> ExchangeRate:
    return create_rate("150")


@pytest.fixture
def toyota() -> Holding:
    return create_holding(id=1, symbol="7203", country=Country.JAPAN)


@pytest.fixture
def apple() -> Holding:
    return create_holding(id=2, symbol="AAPL", country=Country.US)


@pytest.fixture
def emaxis_fund() -> Holding:
    return create_holding(id=3, symbol="0331418A", country=Country.US, asset_type=AssetType.FUND)
