# backend/tests/routers/test_quotes_api.py
"""API layer tests for the quote lookup endpoints."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from kabufolio.dependencies import get_equity_provider, get_fund_provider
from kabufolio.main import app
from kabufolio.services.exceptions import ProviderUnavailableError
from tests.conftest import MockPriceProvider


@pytest.fixture
def equity_provider() -> MockPriceProvider:
    provider = MockPriceProvider("mock_equity")
    provider.add_quote("AAPL", "189.5", "USD", name="Apple Inc.")
    return provider


@pytest.fixture
def fund_provider() -> MockPriceProvider:
    provider = MockPriceProvider("mock_fund")
    provider.add_quote("0331418A", "24512", name="eMAXIS Slim 全世界株式")
    return provider


@pytest.fixture
def client(equity_provider, fund_provider):
    app.dependency_overrides[get_equity_provider] = lambda: equity_provider
    app.dependency_overrides[get_fund_provider] = lambda: fund_provider

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


class TestStockQuote:

    def test_found(self, client):
        response = client.get("/quotes/stock", params={"symbol": "AAPL"})

        assert response.status_code == 200
        data = response.json()
        assert data["symbol"] == "AAPL"
        assert Decimal(data["price"]) == Decimal("189.5")
        assert data["currency"] == "USD"
        assert data["name"] == "Apple Inc."
        assert data["provider"] == "mock_equity"

    def test_not_found_is_404(self, client):
        response = client.get("/quotes/stock", params={"symbol": "NOPE"})

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "TickerNotFoundError"
        assert data["details"] == {"ticker": "NOPE", "provider": "mock_equity"}

    def test_provider_outage_is_503(self, client, equity_provider):
        equity_provider.add_error("AAPL", ProviderUnavailableError("mock_equity", "timeout"))

        response = client.get("/quotes/stock", params={"symbol": "AAPL"})

        assert response.status_code == 503
        assert response.json()["error"] == "ProviderUnavailableError"

    def test_symbol_required(self, client):
        assert client.get("/quotes/stock").status_code == 422


class TestFundQuote:

    def test_found(self, client):
        response = client.get("/quotes/fund", params={"code": "0331418A"})

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["price"]) == Decimal("24512")
        assert data["currency"] == "JPY"
        assert data["provider"] == "mock_fund"

    def test_not_found_is_404(self, client):
        response = client.get("/quotes/fund", params={"code": "UNKNOWN"})
        assert response.status_code == 404
