"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PriceApiSettings(BaseSettings):
    """Upstream price API connection settings."""

    model_config = SettingsConfigDict(env_prefix="PRICE_API_")

    base_url: str = "http://localhost:8080/api"
    timeout_seconds: float = 30.0


class ExchangeSettings(BaseSettings):
    """ccxt exchange settings, used when prices come straight from an exchange."""

    model_config = SettingsConfigDict(env_prefix="EXCHANGE_")

    exchange_id: str = "bybit"
    quote_currency: str = "USDT"
    page_limit: int = 1000  # candles per fetch_ohlcv call


class DashboardSettings(BaseSettings):
    """Dashboard server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8000
    title: str = "Market Correlation Dashboard"


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    source: Literal["http", "exchange"] = "http"
    # Sub-settings read their prefixed env vars when AppSettings is constructed
    price_api: PriceApiSettings = Field(default_factory=PriceApiSettings)
    exchange: ExchangeSettings = Field(default_factory=ExchangeSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
