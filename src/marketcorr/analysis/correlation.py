"""Pearson correlation over aligned price rows.

Computed in float (double precision) with the single-pass sum-of-products
formula. Prices arrive as Decimal and are converted once per valid pair.
No rounding happens here; display rounding belongs to the dashboard.
"""

import math

from marketcorr.models import CorrelationResult, MergedRow


def valid_pairs(rows: list[MergedRow]) -> list[tuple[float, float]]:
    """Return (a, b) float pairs for rows where both series have a value, in row order."""
    return [
        (float(row.value_a), float(row.value_b))
        for row in rows
        if row.value_a is not None and row.value_b is not None
    ]


def pearson(xs: list[float], ys: list[float]) -> float | None:
    """Pearson's r via the sum-of-products formula.

        r = (n*Sxy - Sx*Sy) / sqrt((n*Sxx - Sx^2) * (n*Syy - Sy^2))

    Returns:
        r clamped to [-1, 1], or None when n < 2, the lengths differ, or
        the denominator is zero (a constant series) or not finite.
    """
    n = len(xs)
    if n < 2 or len(ys) != n:
        return None

    # Exact check: float sums of a repeated value need not cancel to zero
    if min(xs) == max(xs) or min(ys) == max(ys):
        return None

    sum_x = sum_y = sum_xy = sum_x2 = sum_y2 = 0.0
    for x, y in zip(xs, ys):
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_x2 += x * x
        sum_y2 += y * y

    numerator = n * sum_xy - sum_x * sum_y
    variance_term = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)

    # Cancellation can leave a tiny negative product for constant series
    if not math.isfinite(variance_term) or variance_term <= 0.0:
        return None

    denominator = math.sqrt(variance_term)
    if denominator == 0.0:
        return None

    r = numerator / denominator
    if not math.isfinite(r):
        return None
    return max(-1.0, min(1.0, r))


def correlate(rows: list[MergedRow]) -> CorrelationResult:
    """Correlate the two series of an alignment.

    Only rows where both values are present count. The sample count is the
    number of such valid pairs, reported even when no coefficient exists.

    Args:
        rows: Output of ``align``.

    Returns:
        CorrelationResult with coefficient None for fewer than 2 valid
        pairs or zero variance in either series.
    """
    pairs = valid_pairs(rows)
    n = len(pairs)
    if n < 2:
        return CorrelationResult(coefficient=None, sample_count=n)

    xs = [x for x, _ in pairs]
    ys = [y for _, y in pairs]
    return CorrelationResult(coefficient=pearson(xs, ys), sample_count=n)
