"""Price source layer: asset catalog and price history retrieval.

HttpPriceSource talks to the upstream REST API via httpx; ExchangePriceSource
reads a crypto exchange's public market data via ccxt.
"""

from marketcorr.sources.catalog import AssetCatalog, sort_by_name
from marketcorr.sources.client import PriceSource, parse_price_point
from marketcorr.sources.exchange_client import ExchangePriceSource
from marketcorr.sources.http_client import HttpPriceSource

__all__ = [
    "AssetCatalog",
    "ExchangePriceSource",
    "HttpPriceSource",
    "PriceSource",
    "parse_price_point",
    "sort_by_name",
]
