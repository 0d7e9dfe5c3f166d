"""
Descriptive statistics for a single measure series.

Conventions (applied consistently across the package):
- Population variance: divide by ``n``, not ``n - 1``.
- Quartiles are Tukey's hinges: the median of the lower and upper halves of
  the sorted series, with the median itself excluded when ``n`` is odd.
- Outliers are values more than ``OUTLIER_Z_THRESHOLD`` standard deviations
  from the mean.
"""

import math
from collections.abc import Sequence

from measure_analytics.domain.models import Outlier, Statistics
from measure_analytics.domain.series import to_values, total

OUTLIER_Z_THRESHOLD = 2.0


def _median(ordered: Sequence[float]) -> float:
    n = len(ordered)
    middle = n // 2
    if n % 2:
        return ordered[middle]
    return (ordered[middle - 1] + ordered[middle]) / 2


def _hinges(ordered: Sequence[float]) -> tuple[float, float]:
    n = len(ordered)
    if n < 2:
        return ordered[0], ordered[0]
    lower = ordered[: n // 2]
    upper = ordered[(n + 1) // 2 :]
    return _median(lower), _median(upper)


def compute_statistics(values: Sequence[float]) -> Statistics:
    """
    Summary statistics and z-score outliers for ``values``.

    Empty or non-numeric input yields an all-zero ``Statistics``. The input is
    never mutated; sorting happens on a copy.
    """
    series = to_values(values)
    if not series:
        return Statistics()

    n = len(series)
    mean = total(series) / n
    variance = total((v - mean) * (v - mean) for v in series) / n
    std_dev = math.sqrt(variance)

    ordered = sorted(series)
    median = _median(ordered)
    q1, q3 = _hinges(ordered)

    outliers = []
    for index, value in enumerate(series):
        z_score = 0.0 if std_dev == 0 else (value - mean) / std_dev
        if abs(z_score) > OUTLIER_Z_THRESHOLD:
            outliers.append(Outlier(value=value, index=index, z_score=z_score))

    return Statistics(
        mean=mean,
        median=median,
        std_dev=std_dev,
        variance=variance,
        q1=q1,
        q3=q3,
        iqr=q3 - q1,
        outliers=outliers,
    )
