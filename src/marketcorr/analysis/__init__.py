"""Time-series alignment and correlation analysis.

Pure functions: align two price series with forward-fill, compute Pearson's
coefficient over the valid pairs, and classify the result.
"""

from marketcorr.analysis.aligner import align
from marketcorr.analysis.classifier import CorrelationDescription, classify, describe
from marketcorr.analysis.correlation import correlate, pearson, valid_pairs

__all__ = [
    "CorrelationDescription",
    "align",
    "classify",
    "correlate",
    "describe",
    "pearson",
    "valid_pairs",
]
