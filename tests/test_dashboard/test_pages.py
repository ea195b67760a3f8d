"""Tests for the server-rendered dashboard page."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from marketcorr.dashboard.app import _format_coefficient, _format_datetime, _format_decimal, create_dashboard_app
from marketcorr.exceptions import RetrievalFailure
from marketcorr.models import Asset, PricePoint
from marketcorr.orchestrator import AnalysisOrchestrator
from marketcorr.policy import QueryPolicyGuard
from marketcorr.sources.catalog import AssetCatalog

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)

SERIES = {
    "Bitcoin": [PricePoint(T0 + timedelta(hours=i), Decimal(c)) for i, c in enumerate(["100", "110", "120"])],
    # No close at 01:00; the aligned row carries 50 forward
    "Apple": [PricePoint(T0 + timedelta(hours=h), Decimal(c)) for h, c in [(0, "50"), (2, "60")]],
    "Gold": [PricePoint(T0 + timedelta(hours=i), Decimal("30")) for i in range(3)],
}


@pytest.fixture
def client(price_source: AsyncMock, guard: QueryPolicyGuard) -> TestClient:
    price_source.fetch_assets.return_value = [
        Asset(id=1, symbol="BTC/USD", name="Bitcoin", type="Crypto"),
        Asset(id=2, symbol="AAPL", name="Apple", type="Stock"),
    ]
    price_source.fetch_prices.side_effect = lambda i, t, v: SERIES[i]

    app = create_dashboard_app(title="Test Correlation Dashboard")
    app.state.guard = guard
    app.state.catalog = AssetCatalog(price_source)
    app.state.orchestrator = AnalysisOrchestrator(source=price_source, guard=guard)
    return TestClient(app)


class TestIndexPage:
    def test_renders_asset_options(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        assert "Test Correlation Dashboard" in response.text
        assert "Apple (AAPL)" in response.text
        assert "Bitcoin (BTC/USD)" in response.text
        assert "No price data loaded yet." in response.text
        assert "No second asset selected." in response.text

    def test_catalog_failure_still_renders(self, client: TestClient, price_source: AsyncMock) -> None:
        price_source.fetch_assets.side_effect = RetrievalFailure("Failed to load assets (status 500)")

        response = client.get("/")

        assert response.status_code == 200
        assert "Failed to load assets (status 500)" in response.text


class TestSubmit:
    def test_shows_correlation_and_tables(self, client: TestClient) -> None:
        response = client.post(
            "/",
            data={"asset_a": "Bitcoin", "asset_b": "Apple", "timeframe": "30d", "interval": "1h"},
        )

        assert response.status_code == 200
        assert "0.87" in response.text
        assert "Strong positive correlation" in response.text
        assert "01-01-2024 02:00:00" in response.text
        assert "120.00" in response.text

    def test_rejection_message(self, client: TestClient, price_source: AsyncMock) -> None:
        response = client.post(
            "/",
            data={"asset_a": "Bitcoin", "asset_b": "Apple", "timeframe": "365d", "interval": "1h"},
        )

        assert response.status_code == 200
        assert "too many (5000+) records" in response.text
        price_source.fetch_prices.assert_not_awaited()

    def test_fetch_failure_message(self, client: TestClient, price_source: AsyncMock) -> None:
        price_source.fetch_prices.side_effect = RetrievalFailure("Failed to load prices (status 502)")

        response = client.post("/", data={"asset_a": "Bitcoin", "timeframe": "30d", "interval": "1h"})

        assert "Failed to load prices (status 502)" in response.text
        assert "Strong positive correlation" not in response.text

    def test_invalid_form_value(self, client: TestClient) -> None:
        response = client.post("/", data={"asset_a": "Bitcoin", "timeframe": "7d", "interval": "1h"})

        assert response.status_code == 200
        assert "Invalid value" in response.text

    def test_flat_series_explains_missing_coefficient(self, client: TestClient) -> None:
        response = client.post(
            "/", data={"asset_a": "Bitcoin", "asset_b": "Gold", "timeframe": "30d", "interval": "1h"}
        )

        assert "one of the series did not move" in response.text
        assert "not enough overlapping price data" not in response.text

    def test_index_shows_last_result(self, client: TestClient) -> None:
        client.post("/", data={"asset_a": "Bitcoin", "asset_b": "Apple", "timeframe": "30d", "interval": "1h"})

        response = client.get("/")

        assert "Strong positive correlation" in response.text


class TestFilters:
    def test_format_decimal(self) -> None:
        assert _format_decimal(Decimal("42000.456")) == "42000.46"
        assert _format_decimal(None) == "-"

    def test_format_coefficient(self) -> None:
        assert _format_coefficient(0.86602) == "0.87"
        assert _format_coefficient(None) == "n/a"

    def test_format_datetime(self) -> None:
        assert _format_datetime(datetime(2024, 3, 5, 7, 8, 9, tzinfo=timezone.utc)) == "05-03-2024 07:08:09"
        assert _format_datetime(None) == "N/A"

    def test_format_datetime_converts_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))

        assert _format_datetime(datetime(2024, 3, 5, 9, 8, 9, tzinfo=plus_two)) == "05-03-2024 07:08:09"
