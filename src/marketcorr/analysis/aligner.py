"""Series alignment with last-known-value carry-forward.

Two assets are rarely sampled on the same clock: crypto trades around the
clock while stocks only print during market hours. Aligning on the union of
both timelines and carrying each series' last close forward lets the
correlation use every observation instead of only the exact-timestamp
matches.
"""

from datetime import datetime
from decimal import Decimal

from marketcorr.models import MergedRow, PriceSeries


def _close_by_timestamp(series: PriceSeries) -> dict[datetime, Decimal]:
    """Map timestamp to close. Later points overwrite earlier duplicates."""
    closes: dict[datetime, Decimal] = {}
    for point in series:
        closes[point.timestamp] = point.close
    return closes


def align(series_a: PriceSeries, series_b: PriceSeries) -> list[MergedRow]:
    """Merge two price series onto one ascending timeline with forward-fill.

    Emits one row per distinct timestamp across both series. Each row holds
    the most recent close of each series at or before that timestamp, or
    None when the series has not produced its first observation yet.

    Duplicate timestamps within a series resolve last-write-wins in input
    order. Timestamps are compared as instants, so the same moment given
    with two different UTC offsets is one row.

    Args:
        series_a: Price points of the first asset, in any order.
        series_b: Price points of the second asset, in any order.

    Returns:
        Merged rows sorted by timestamp. Empty if both inputs are empty.
    """
    closes_a = _close_by_timestamp(series_a)
    closes_b = _close_by_timestamp(series_b)

    timeline = sorted(closes_a.keys() | closes_b.keys())

    last_a: Decimal | None = None
    last_b: Decimal | None = None
    rows: list[MergedRow] = []

    for timestamp in timeline:
        if timestamp in closes_a:
            last_a = closes_a[timestamp]
        if timestamp in closes_b:
            last_b = closes_b[timestamp]
        rows.append(MergedRow(timestamp=timestamp, value_a=last_a, value_b=last_b))

    return rows
