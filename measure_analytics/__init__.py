"""Trend analysis for patient measurement charts.

The calculators in ``measure_analytics.analysis`` are pure functions over
ordered ``(date, value)`` series; ``measure_analytics.services`` composes them
into chart-ready reports on top of an external measure store.
"""

from .analysis import (
    DEFAULT_WINDOWS,
    classify_correlation,
    compute_correlation,
    compute_moving_averages,
    compute_statistics,
    compute_trend_line,
    compute_trend_metrics,
    normalize_multiple_measures,
)

__all__ = [
    "DEFAULT_WINDOWS",
    "classify_correlation",
    "compute_correlation",
    "compute_moving_averages",
    "compute_statistics",
    "compute_trend_line",
    "compute_trend_metrics",
    "normalize_multiple_measures",
]
