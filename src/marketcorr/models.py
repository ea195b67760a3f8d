"""Shared data models for the market correlation dashboard.

Prices use Decimal as delivered by the upstream API. Correlation
coefficients are plain floats: they are statistics, not money.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class Timeframe(str, Enum):
    """Lookback window of a price history request."""

    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    LAST_365_DAYS = "365d"

    @property
    def days(self) -> int:
        return int(self.value[:-1])

    @property
    def hours(self) -> int:
        return self.days * 24

    @property
    def label(self) -> str:
        return f"Last {self.days} days"


class Interval(str, Enum):
    """Sampling granularity of a price history request."""

    ONE_HOUR = "1h"
    FOUR_HOURS = "4h"
    ONE_DAY = "1day"

    @property
    def hours(self) -> int:
        return {"1h": 1, "4h": 4, "1day": 24}[self.value]

    @property
    def label(self) -> str:
        return {"1h": "1 hour", "4h": "4 hours", "1day": "1 day"}[self.value]


class CorrelationLabel(str, Enum):
    """Qualitative strength/direction bucket of a correlation coefficient."""

    STRONG_POSITIVE = "strong_positive"
    MODERATE_POSITIVE = "moderate_positive"
    WEAK = "weak"
    MODERATE_NEGATIVE = "moderate_negative"
    STRONG_NEGATIVE = "strong_negative"
    NONE = "none"


@dataclass(frozen=True)
class Asset:
    """A catalog entry as listed by the price source."""

    id: int
    symbol: str  # e.g. "BTC/USD" or "AAPL"
    name: str  # e.g. "Bitcoin" or "Apple"
    type: str  # e.g. "Crypto" or "Stock"


@dataclass(frozen=True)
class PricePoint:
    """One observed closing price of an asset."""

    timestamp: datetime  # timezone-aware
    close: Decimal


PriceSeries = list[PricePoint]


@dataclass(frozen=True)
class MergedRow:
    """One row of two series aligned on a shared timeline.

    A value is None only before the first observation of its series.
    """

    timestamp: datetime
    value_a: Decimal | None
    value_b: Decimal | None


@dataclass(frozen=True)
class CorrelationResult:
    """Pearson coefficient over the valid pairs of an alignment.

    coefficient is None when fewer than 2 valid pairs exist or when either
    series is constant across them.
    """

    coefficient: float | None
    sample_count: int


@dataclass(frozen=True)
class QueryRequest:
    """A user's analysis selection. asset_b is optional."""

    asset_a: str | None
    asset_b: str | None
    timeframe: Timeframe
    interval: Interval

    @property
    def has_primary(self) -> bool:
        return bool(self.asset_a and self.asset_a.strip())

    @property
    def has_secondary(self) -> bool:
        return bool(self.asset_b and self.asset_b.strip())
