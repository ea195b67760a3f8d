"""Upstream REST price API client via httpx async.

Endpoints consumed:
  GET {base}/assets                                      -> [{id, symbol, name, type}]
  GET {base}/assets/prices/{symbolOrName}?timeframe=&interval=
                                                         -> [{datetime, close}]

Only success vs failure of a call matters here; HTTP status codes are
reported in the failure message, never interpreted further.
"""

from urllib.parse import quote

import httpx

from marketcorr.config import PriceApiSettings
from marketcorr.exceptions import RetrievalFailure
from marketcorr.logging import get_logger
from marketcorr.models import Asset, Interval, PriceSeries, Timeframe
from marketcorr.sources.client import PriceSource, parse_price_point

logger = get_logger(__name__)


class HttpPriceSource(PriceSource):
    """Concrete price source backed by the upstream REST API.

    Args:
        settings: Base URL and request timeout.
        transport: Optional httpx transport, used by tests to stub the API.
    """

    def __init__(
        self,
        settings: PriceApiSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the shared AsyncClient."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._settings.base_url.rstrip("/"),
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        )
        logger.info("price_api_client_opened", base_url=self._settings.base_url)

    async def close(self) -> None:
        """Close the AsyncClient and its connection pool."""
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        logger.info("price_api_client_closed")

    async def _get_json(self, path: str, params: dict | None, failure: str) -> object:
        if self._client is None:
            await self.connect()
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("price_api_request_failed", path=path, error=str(e))
            raise RetrievalFailure(f"{failure} ({e.__class__.__name__}: {e})") from e

        if not response.is_success:
            logger.warning(
                "price_api_bad_status", path=path, status=response.status_code
            )
            raise RetrievalFailure(f"{failure} (status {response.status_code})")

        try:
            return response.json()
        except ValueError as e:
            raise RetrievalFailure(f"{failure} (invalid JSON)") from e

    async def fetch_assets(self) -> list[Asset]:
        """Fetch the asset catalog."""
        payload = await self._get_json("/assets", None, "Failed to load assets")
        if not isinstance(payload, list):
            raise RetrievalFailure("Failed to load assets (unexpected payload)")
        try:
            assets = [
                Asset(
                    id=int(item["id"]),
                    symbol=str(item["symbol"]),
                    name=str(item["name"]),
                    type=str(item.get("type", "")),
                )
                for item in payload
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise RetrievalFailure(f"Failed to load assets (malformed entry: {e})") from e
        logger.debug("assets_fetched", count=len(assets))
        return assets

    async def fetch_prices(
        self, identifier: str, timeframe: Timeframe, interval: Interval
    ) -> PriceSeries:
        """Fetch one asset's closes. The identifier may be a symbol like "BTC/USD"."""
        path = f"/assets/prices/{quote(identifier, safe='')}"
        params = {"timeframe": timeframe.value, "interval": interval.value}
        payload = await self._get_json(path, params, "Failed to load prices")
        if not isinstance(payload, list):
            raise RetrievalFailure("Failed to load prices (unexpected payload)")
        series = [parse_price_point(item) for item in payload]
        logger.debug(
            "prices_fetched",
            identifier=identifier,
            timeframe=timeframe.value,
            interval=interval.value,
            points=len(series),
        )
        return series
