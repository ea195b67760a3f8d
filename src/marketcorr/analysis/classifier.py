"""Correlation strength classification and display description.

Buckets use strict ``>`` comparisons, so a coefficient sitting exactly on a
boundary falls into the weaker bucket (0.8 is moderate, 0.4 is weak,
-0.4 is moderate negative, -0.8 is strong negative).
"""

import math
from dataclasses import dataclass

from marketcorr.models import CorrelationLabel

STRONG_THRESHOLD = 0.8
MODERATE_THRESHOLD = 0.4

_DESCRIPTIONS: dict[CorrelationLabel, tuple[str, str]] = {
    CorrelationLabel.STRONG_POSITIVE: ("Strong positive correlation", "text-green-600"),
    CorrelationLabel.MODERATE_POSITIVE: ("Moderate positive correlation", "text-green-500"),
    CorrelationLabel.WEAK: ("Weak or no correlation", "text-gray-500"),
    CorrelationLabel.MODERATE_NEGATIVE: ("Moderate negative correlation", "text-red-500"),
    CorrelationLabel.STRONG_NEGATIVE: ("Strong negative correlation", "text-red-600"),
    CorrelationLabel.NONE: ("No correlation", ""),
}


@dataclass(frozen=True)
class CorrelationDescription:
    """How the dashboard presents a coefficient."""

    label: CorrelationLabel
    text: str
    css_class: str
    bar_percent: float  # |r| * 100, width of the strength bar
    positive: bool


def classify(coefficient: float | None) -> CorrelationLabel:
    """Map a correlation coefficient to its strength/direction bucket.

    Total over floats and None: None and NaN map to CorrelationLabel.NONE,
    values outside [-1, 1] land in the outermost buckets.
    """
    if coefficient is None or math.isnan(coefficient):
        return CorrelationLabel.NONE
    if coefficient > STRONG_THRESHOLD:
        return CorrelationLabel.STRONG_POSITIVE
    if coefficient > MODERATE_THRESHOLD:
        return CorrelationLabel.MODERATE_POSITIVE
    if coefficient > -MODERATE_THRESHOLD:
        return CorrelationLabel.WEAK
    if coefficient > -STRONG_THRESHOLD:
        return CorrelationLabel.MODERATE_NEGATIVE
    return CorrelationLabel.STRONG_NEGATIVE


def describe(coefficient: float | None) -> CorrelationDescription:
    """Build the display description (text, tone and strength bar) for a coefficient."""
    label = classify(coefficient)
    text, css_class = _DESCRIPTIONS[label]
    if label is CorrelationLabel.NONE:
        return CorrelationDescription(label, text, css_class, bar_percent=0.0, positive=False)
    return CorrelationDescription(
        label=label,
        text=text,
        css_class=css_class,
        bar_percent=min(abs(coefficient), 1.0) * 100,
        positive=coefficient > 0,
    )
