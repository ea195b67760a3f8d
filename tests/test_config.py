"""Tests for settings loading and component wiring."""

import pytest

from marketcorr.config import AppSettings
from marketcorr.main import _build_components
from marketcorr.policy import QueryPolicyGuard
from marketcorr.sources import ExchangePriceSource, HttpPriceSource


class TestSettings:
    def test_defaults(self) -> None:
        settings = AppSettings(_env_file=None)

        assert settings.source == "http"
        assert settings.price_api.base_url == "http://localhost:8080/api"

    def test_prefixed_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRICE_API_BASE_URL", "http://upstream.test/api")

        settings = AppSettings(_env_file=None)

        assert settings.price_api.base_url == "http://upstream.test/api"

    def test_source_selection_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOURCE", "exchange")

        assert AppSettings(_env_file=None).source == "exchange"


class TestBuildComponents:
    def test_http_source(self, mock_settings: AppSettings) -> None:
        components = _build_components(mock_settings)

        assert isinstance(components["source"], HttpPriceSource)
        assert isinstance(components["guard"], QueryPolicyGuard)
        assert set(components) == {"source", "guard", "catalog", "orchestrator"}

    @pytest.mark.asyncio
    async def test_exchange_source(self, mock_settings: AppSettings) -> None:
        settings = mock_settings.model_copy(update={"source": "exchange"})

        components = _build_components(settings)

        assert isinstance(components["source"], ExchangePriceSource)
        await components["source"].close()
