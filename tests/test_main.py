"""Tests for the FastAPI lifespan in marketcorr.main.

The lifespan opens the price source on startup and closes it on shutdown.
A source that cannot connect at startup must not stop the dashboard from
serving; the exchange source loads its markets again on first use.
"""

from unittest.mock import AsyncMock, MagicMock

import ccxt.async_support as ccxt_async
import pytest
from fastapi.testclient import TestClient

from marketcorr.config import AppSettings
from marketcorr.dashboard.app import create_dashboard_app
from marketcorr.main import lifespan
from marketcorr.orchestrator import AnalysisOrchestrator
from marketcorr.policy import QueryPolicyGuard
from marketcorr.sources import AssetCatalog, ExchangePriceSource

MARKETS = {
    "BTC/USDT": {"symbol": "BTC/USDT", "base": "BTC", "quote": "USDT", "spot": True},
    "ETH/USDT": {"symbol": "ETH/USDT", "base": "ETH", "quote": "USDT", "spot": True},
    "ETH/BTC": {"symbol": "ETH/BTC", "base": "ETH", "quote": "BTC", "spot": True},
}


@pytest.fixture
def mock_exchange() -> MagicMock:
    """Exchange whose first load_markets call fails and second succeeds."""
    exchange = MagicMock()
    exchange.load_markets = AsyncMock(side_effect=[ccxt_async.NetworkError("down"), MARKETS])
    exchange.fetch_ohlcv = AsyncMock(return_value=[])
    exchange.close = AsyncMock()
    return exchange


def _app(settings: AppSettings, mock_exchange: MagicMock):
    source = ExchangePriceSource(settings.exchange, exchange=mock_exchange)
    guard = QueryPolicyGuard()

    app = create_dashboard_app(title=settings.dashboard.title, lifespan=lifespan)
    app.state.settings = settings
    app.state.components = {
        "source": source,
        "guard": guard,
        "catalog": AssetCatalog(source),
        "orchestrator": AnalysisOrchestrator(source=source, guard=guard),
    }
    return app


class TestLifespan:
    def test_startup_survives_connect_failure(
        self, mock_settings: AppSettings, mock_exchange: MagicMock
    ) -> None:
        settings = mock_settings.model_copy(update={"source": "exchange"})
        app = _app(settings, mock_exchange)

        with TestClient(app) as client:
            response = client.get("/api/assets")

            assert response.status_code == 200
            assert [a["symbol"] for a in response.json()] == ["BTC/USDT", "ETH/USDT"]
            assert mock_exchange.load_markets.await_count == 2

        mock_exchange.close.assert_awaited_once()

    def test_components_published_on_state(
        self, mock_settings: AppSettings, mock_exchange: MagicMock
    ) -> None:
        settings = mock_settings.model_copy(update={"source": "exchange"})
        app = _app(settings, mock_exchange)

        with TestClient(app):
            assert app.state.guard is app.state.components["guard"]
            assert app.state.catalog is app.state.components["catalog"]
            assert app.state.orchestrator is app.state.components["orchestrator"]
