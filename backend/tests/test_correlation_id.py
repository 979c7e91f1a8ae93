# backend/tests/test_correlation_id.py
"""
Tests for correlation ID middleware and context management.
"""

import pytest
from fastapi.testclient import TestClient

from kabufolio.main import app
from kabufolio.utils.context import get_correlation_id, set_correlation_id, clear_correlation_id


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_get_returns_none_when_not_set(self):
        """Should return None when correlation ID is not set."""
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        """Should set and retrieve correlation ID."""
        set_correlation_id("test-correlation-123")
        assert get_correlation_id() == "test-correlation-123"
        clear_correlation_id()

    def test_clear_correlation_id(self):
        """Should clear correlation ID."""
        set_correlation_id("test-correlation-456")
        clear_correlation_id()
        assert get_correlation_id() is None


class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    @pytest.fixture
    def client(self):
        with TestClient(app) as c:
            yield c

    def test_generates_correlation_id_when_not_provided(self, client):
        """Should generate a UUID when no ID is provided."""
        response = client.get("/health")

        assert response.status_code == 200
        correlation_id = response.headers["X-Correlation-ID"]
        assert len(correlation_id) == 36
        assert correlation_id.count("-") == 4

    def test_uses_provided_correlation_id(self, client):
        custom_id = "my-custom-trace-id-123"
        response = client.get("/health", headers={"X-Correlation-ID": custom_id})

        assert response.headers["X-Correlation-ID"] == custom_id

    def test_uses_request_id_header_as_fallback(self, client):
        custom_id = "my-request-id-456"
        response = client.get("/health", headers={"X-Request-ID": custom_id})

        assert response.headers["X-Correlation-ID"] == custom_id

    def test_prefers_correlation_id_over_request_id(self, client):
        response = client.get(
            "/health",
            headers={"X-Correlation-ID": "correlation-123", "X-Request-ID": "request-456"},
        )

        assert response.headers["X-Correlation-ID"] == "correlation-123"

    def test_malformed_id_replaced(self, client):
        """IDs with unsafe characters are not echoed back."""
        response = client.get("/health", headers={"X-Correlation-ID": "bad id<script>"})

        assert response.headers["X-Correlation-ID"] != "bad id<script>"
        assert len(response.headers["X-Correlation-ID"]) == 36

    def test_overlong_id_replaced(self, client):
        response = client.get("/health", headers={"X-Correlation-ID": "a" * 200})
        assert len(response.headers["X-Correlation-ID"]) == 36

    def test_different_requests_get_different_ids(self, client):
        id1 = client.get("/health").headers["X-Correlation-ID"]
        id2 = client.get("/health").headers["X-Correlation-ID"]

        assert id1 != id2

    def test_header_present_on_error_responses(self, client):
        response = client.get("/quotes/stock")

        assert response.status_code == 422
        assert "X-Correlation-ID" in response.headers


class TestGlobalEndpoints:

    @pytest.fixture
    def client(self):
        with TestClient(app) as c:
            yield c

    def test_root(self, client):
        data = client.get("/").json()
        assert data["docs"] == "/docs"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] in ("healthy", "degraded")
        assert data["checks"]["exchange_rate"]["rate"]
