"""Pearson correlation between two measure series."""

import math
from collections.abc import Sequence

from measure_analytics.domain.models import CorrelationDirection, CorrelationStrength
from measure_analytics.domain.series import to_values, total


def compute_correlation(x: Sequence[float] | None, y: Sequence[float] | None) -> float:
    """
    Pearson product-moment correlation of ``x`` and ``y``, in ``[-1, 1]``.

    Returns ``0.0`` for missing, mismatched, non-numeric or shorter-than-two
    inputs, and when either series is constant.
    """
    xs = to_values(x)
    ys = to_values(y)
    if xs is None or ys is None or len(xs) != len(ys) or len(xs) < 2:
        return 0.0

    n = len(xs)
    mean_x = total(xs) / n
    mean_y = total(ys) / n
    dx = [v - mean_x for v in xs]
    dy = [v - mean_y for v in ys]

    covariance = total(a * b for a, b in zip(dx, dy, strict=True))
    spread = math.sqrt(total(a * a for a in dx) * total(b * b for b in dy))
    if spread == 0:
        return 0.0

    coefficient = covariance / spread
    if not math.isfinite(coefficient):
        return 0.0
    # Rounding can push |r| a hair past 1 for perfectly linear series
    return max(-1.0, min(1.0, coefficient))


def classify_correlation(
    coefficient: float, strong: float = 0.7, moderate: float = 0.4
) -> tuple[CorrelationStrength, CorrelationDirection]:
    """Label a coefficient for display: strength by magnitude, direction by sign."""
    magnitude = abs(coefficient)
    if magnitude > strong:
        strength = CorrelationStrength.STRONG
    elif magnitude > moderate:
        strength = CorrelationStrength.MODERATE
    else:
        strength = CorrelationStrength.WEAK

    if coefficient > 0:
        direction = CorrelationDirection.POSITIVE
    elif coefficient < 0:
        direction = CorrelationDirection.NEGATIVE
    else:
        direction = CorrelationDirection.NONE
    return strength, direction
