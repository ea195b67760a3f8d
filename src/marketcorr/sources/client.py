"""Abstract price source interface.

Defines the contract for the asset catalog and price history collaborators.
The orchestrator and routes depend only on this interface, keeping HTTP and
exchange specifics isolated in the concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from marketcorr.exceptions import RetrievalFailure
from marketcorr.models import Asset, Interval, PricePoint, PriceSeries, Timeframe


class PriceSource(ABC):
    """Abstract base class for asset catalog and price history providers."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying client."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying client."""
        ...

    @abstractmethod
    async def fetch_assets(self) -> list[Asset]:
        """Return the full asset catalog, in source order.

        Raises:
            RetrievalFailure: the catalog could not be fetched.
        """
        ...

    @abstractmethod
    async def fetch_prices(
        self, identifier: str, timeframe: Timeframe, interval: Interval
    ) -> PriceSeries:
        """Return the closing prices of an asset over a timeframe.

        The identifier is matched loosely: symbol or display name.
        Ordering of the returned points is not guaranteed.

        Raises:
            RetrievalFailure: the history could not be fetched or parsed.
        """
        ...


def parse_timestamp(value: str | int | float) -> datetime:
    """Parse an ISO-8601 string or a Unix millisecond timestamp into an aware datetime.

    Naive ISO strings are taken as UTC.
    """
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_close(value: str | int | float) -> Decimal:
    """Convert a close price to Decimal, refusing NaN and infinities."""
    close = Decimal(str(value))
    if not close.is_finite():
        raise InvalidOperation(f"non-finite close {value!r}")
    return close


def parse_price_point(raw: dict) -> PricePoint:
    """Build a PricePoint from a ``{"datetime": ..., "close": ...}`` record.

    Raises:
        RetrievalFailure: the record is missing a field or holds an
            unparseable value.
    """
    try:
        return PricePoint(
            timestamp=parse_timestamp(raw["datetime"]),
            close=parse_close(raw["close"]),
        )
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise RetrievalFailure(f"Malformed price record {raw!r}: {e}") from e
