"""Exchange-backed price source via ccxt async.

Serves the catalog from the exchange's spot markets in one quote currency
and price histories from OHLCV candle closes. Useful when no upstream price
API is running; crypto assets only.

ccxt notes:
- fetch_ohlcv returns [timestamp_ms, open, high, low, close, volume] rows
- one call returns at most ``limit`` candles, so long windows are paged
  forward from ``since``
"""

import time

import ccxt.async_support as ccxt_async

from marketcorr.config import ExchangeSettings
from marketcorr.exceptions import RetrievalFailure
from marketcorr.logging import get_logger
from marketcorr.models import Asset, Interval, PricePoint, PriceSeries, Timeframe
from marketcorr.sources.client import PriceSource, parse_close, parse_timestamp

logger = get_logger(__name__)

_CCXT_TIMEFRAMES: dict[Interval, str] = {
    Interval.ONE_HOUR: "1h",
    Interval.FOUR_HOURS: "4h",
    Interval.ONE_DAY: "1d",
}

_HOUR_MS = 3_600_000


class ExchangePriceSource(PriceSource):
    """Concrete price source reading a ccxt exchange's public market data.

    Args:
        settings: Exchange id, quote currency and page size.
        exchange: Optional pre-built ccxt exchange, used by tests.
    """

    def __init__(self, settings: ExchangeSettings, exchange=None) -> None:
        self._settings = settings
        if exchange is None:
            exchange_class = getattr(ccxt_async, settings.exchange_id)
            exchange = exchange_class({"enableRateLimit": True})
        self._exchange = exchange
        self._markets: dict = {}

    async def connect(self) -> None:
        """Load markets once; they back both the catalog and symbol lookup."""
        logger.info("connecting_to_exchange", exchange=self._settings.exchange_id)
        try:
            self._markets = await self._exchange.load_markets()
        except ccxt_async.BaseError as e:
            raise RetrievalFailure(f"Failed to load markets: {e}") from e
        logger.info("exchange_connected", market_count=len(self._markets))

    async def close(self) -> None:
        """Clean up ccxt async resources. Must be called to avoid leaking the aiohttp session."""
        await self._exchange.close()
        logger.info("exchange_connection_closed")

    async def _ensure_markets(self) -> None:
        if not self._markets:
            await self.connect()

    def _spot_markets(self) -> list[dict]:
        quote = self._settings.quote_currency.upper()
        return sorted(
            (
                market
                for market in self._markets.values()
                if market.get("spot") and str(market.get("quote", "")).upper() == quote
            ),
            key=lambda market: market["symbol"],
        )

    def resolve_symbol(self, identifier: str) -> str:
        """Match an identifier against market symbol or base currency, case-insensitively.

        Raises:
            RetrievalFailure: no spot market matches.
        """
        wanted = identifier.strip().lower()
        for market in self._spot_markets():
            if wanted in (str(market["symbol"]).lower(), str(market.get("base", "")).lower()):
                return market["symbol"]
        raise RetrievalFailure(f"Unknown asset: {identifier}")

    async def fetch_assets(self) -> list[Asset]:
        """List spot markets in the quote currency as crypto assets."""
        await self._ensure_markets()
        return [
            Asset(id=i, symbol=market["symbol"], name=market.get("base", market["symbol"]), type="Crypto")
            for i, market in enumerate(self._spot_markets(), 1)
        ]

    async def fetch_prices(
        self, identifier: str, timeframe: Timeframe, interval: Interval
    ) -> PriceSeries:
        """Page through OHLCV candles covering the timeframe and keep the closes."""
        await self._ensure_markets()
        symbol = self.resolve_symbol(identifier)
        ccxt_timeframe = _CCXT_TIMEFRAMES[interval]
        step_ms = interval.hours * _HOUR_MS
        now_ms = int(time.time() * 1000)
        since = now_ms - timeframe.hours * _HOUR_MS
        limit = self._settings.page_limit

        candles: list[list] = []
        while since < now_ms:
            try:
                batch = await self._exchange.fetch_ohlcv(
                    symbol, timeframe=ccxt_timeframe, since=since, limit=limit
                )
            except ccxt_async.BaseError as e:
                logger.warning("ohlcv_fetch_failed", symbol=symbol, error=str(e))
                raise RetrievalFailure(f"Failed to load prices for {identifier}: {e}") from e
            if not batch:
                break
            candles.extend(batch)
            last_ms = batch[-1][0]
            if len(batch) < limit or last_ms + step_ms <= since:
                break
            since = last_ms + step_ms

        try:
            series = [
                PricePoint(timestamp=parse_timestamp(c[0]), close=parse_close(c[4]))
                for c in candles
                if c[4] is not None
            ]
        except (IndexError, TypeError, ValueError, ArithmeticError) as e:
            raise RetrievalFailure(f"Malformed candle data for {identifier}: {e}") from e

        logger.debug(
            "prices_fetched",
            identifier=identifier,
            symbol=symbol,
            timeframe=timeframe.value,
            interval=interval.value,
            points=len(series),
        )
        return series
