"""
Ordinary least-squares trend lines.

``fit_least_squares`` is the single regression routine of the package; both
``compute_trend_line`` and the trend metrics calculator go through it.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

from measure_analytics.domain.models import Timestamp, TrendLine
from measure_analytics.domain.series import Series, to_series, total


@dataclass(frozen=True)
class LinearFit:
    slope: float
    intercept: float
    predictions: tuple[float, ...]
    r_squared: float


def fit_least_squares(x: Sequence[float], y: Sequence[float]) -> LinearFit:
    """Fit ``y = intercept + slope * x``. Expects at least two paired points."""
    n = len(x)
    mean_x = total(x) / n
    mean_y = total(y) / n

    sxx = total((xi - mean_x) * (xi - mean_x) for xi in x)
    sxy = total((xi - mean_x) * (yi - mean_y) for xi, yi in zip(x, y, strict=True))
    # All readings on the same day: no slope to speak of
    slope = sxy / sxx if sxx != 0 else 0.0
    intercept = mean_y - slope * mean_x

    predictions = tuple(intercept + slope * xi for xi in x)
    ss_res = total((yi - pi) * (yi - pi) for yi, pi in zip(y, predictions, strict=True))
    ss_tot = total((yi - mean_y) * (yi - mean_y) for yi in y)

    if ss_tot == 0:
        # A flat series fitted by a flat line is a perfect fit
        r_squared = 1.0 if ss_res == 0 else 0.0
    else:
        r_squared = 1 - ss_res / ss_tot
        # Sums that overflowed to inf/nan carry no fit information
        r_squared = min(1.0, max(0.0, r_squared)) if math.isfinite(r_squared) else 0.0

    return LinearFit(
        slope=slope, intercept=intercept, predictions=predictions, r_squared=r_squared
    )


def fit_series(series: Series) -> LinearFit | None:
    """Regress a validated series on elapsed days; ``None`` below two points."""
    if len(series) < 2:
        return None
    return fit_least_squares([float(d) for d in series.days], series.values)


def compute_trend_line(values: Sequence[float], dates: Sequence[Timestamp]) -> TrendLine:
    """
    Least-squares trend line of ``values`` against elapsed days since ``dates[0]``.

    ``predictions[i]`` is the fitted value at ``dates[i]``. Fewer than two
    valid points yield a zero line with no predictions.
    """
    series = to_series(values, dates)
    if not isinstance(series, Series):
        return TrendLine()

    fit = fit_series(series)
    if fit is None:
        return TrendLine()

    return TrendLine(
        slope=fit.slope,
        intercept=fit.intercept,
        predictions=list(fit.predictions),
        r_squared=fit.r_squared,
    )
