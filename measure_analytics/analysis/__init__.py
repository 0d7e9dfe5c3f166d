"""
Pure trend calculators.

Every function here is stateless and never raises on empty, degenerate or
mismatched input; it returns its neutral result instead.
"""

from .correlation import classify_correlation, compute_correlation
from .descriptive import compute_statistics
from .moving_average import DEFAULT_WINDOWS, compute_moving_averages
from .normalization import normalize_multiple_measures
from .regression import compute_trend_line, fit_least_squares
from .trend_metrics import compute_trend_metrics

__all__ = [
    "DEFAULT_WINDOWS",
    "classify_correlation",
    "compute_correlation",
    "compute_moving_averages",
    "compute_statistics",
    "compute_trend_line",
    "compute_trend_metrics",
    "fit_least_squares",
    "normalize_multiple_measures",
]
