"""Headline trend figures for a measure chart."""

from collections.abc import Sequence

from measure_analytics.analysis.regression import fit_series
from measure_analytics.domain.models import Timestamp, TrendDirection, TrendMetrics
from measure_analytics.domain.series import Series, to_series

# Net changes smaller than this many percent read as stable
STABLE_THRESHOLD_PERCENT = 1.0


def _direction(percentage_change: float) -> TrendDirection:
    if abs(percentage_change) < STABLE_THRESHOLD_PERCENT:
        return TrendDirection.STABLE
    if percentage_change > 0:
        return TrendDirection.INCREASING
    return TrendDirection.DECREASING


def compute_trend_metrics(values: Sequence[float], dates: Sequence[Timestamp]) -> TrendMetrics:
    """
    Direction, percentage change and velocity between the first and last points.

    Velocity is the two-point rate per day, not the regression slope, so the
    direction matches the endpoints shown on the chart. ``r_squared`` comes from
    the same fit as ``compute_trend_line``.
    """
    series = to_series(values, dates)
    if not isinstance(series, Series):
        return TrendMetrics()

    fit = fit_series(series)
    if fit is None:
        return TrendMetrics()

    first, last = series.values[0], series.values[-1]
    change = last - first
    percentage_change = change / first * 100 if first != 0 else 0.0
    velocity = change / max(1, series.days[-1])

    return TrendMetrics(
        direction=_direction(percentage_change),
        percentage_change=percentage_change,
        velocity=velocity,
        r_squared=fit.r_squared,
    )
