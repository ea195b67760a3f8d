"""Shared test fixtures for the market correlation dashboard."""

from unittest.mock import AsyncMock

import pytest

from marketcorr.config import (
    AppSettings,
    DashboardSettings,
    ExchangeSettings,
    PriceApiSettings,
)
from marketcorr.policy import QueryPolicyGuard
from marketcorr.sources.client import PriceSource


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (HTTP source on a dummy base URL)."""
    return AppSettings(
        log_level="DEBUG",
        source="http",
        price_api=PriceApiSettings(base_url="http://prices.test/api", timeout_seconds=5.0),
        exchange=ExchangeSettings(exchange_id="bybit", quote_currency="USDT", page_limit=3),
        dashboard=DashboardSettings(title="Test Correlation Dashboard"),
    )


@pytest.fixture
def guard() -> QueryPolicyGuard:
    """Policy guard with the fixed 5000 sample ceiling."""
    return QueryPolicyGuard()


@pytest.fixture
def price_source() -> AsyncMock:
    """Mock PriceSource; tests set fetch_assets/fetch_prices behaviour."""
    source = AsyncMock(spec=PriceSource)
    source.fetch_assets.return_value = []
    source.fetch_prices.return_value = []
    return source
