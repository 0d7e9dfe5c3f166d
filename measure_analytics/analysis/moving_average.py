"""Sliding-window averages over a dated series."""

import math
from collections.abc import Sequence
from numbers import Real

from measure_analytics.domain.models import MovingAveragePoint, Timestamp
from measure_analytics.domain.series import Series, to_series, total

# One week, one month, one quarter of daily readings
DEFAULT_WINDOWS: tuple[int, ...] = (7, 30, 90)


def _window_size(window: object) -> int | None:
    """A usable window is a positive whole number; ``7.0`` counts as ``7``."""
    if isinstance(window, bool) or not isinstance(window, Real):
        return None
    if not math.isfinite(window) or window <= 0 or window != int(window):
        return None
    return int(window)


def _window_key(window: object, size: int | None) -> str:
    return f"ma{size if size is not None else window}"


def _window_average(series: Series, window: int | None) -> list[MovingAveragePoint]:
    if window is None or len(series) < window:
        return []
    return [
        MovingAveragePoint(
            date=series.dates[end],
            value=total(series.values[end - window + 1 : end + 1]) / window,
        )
        for end in range(window - 1, len(series))
    ]


def compute_moving_averages(
    values: Sequence[float],
    dates: Sequence[Timestamp],
    windows: Sequence[float] | None = DEFAULT_WINDOWS,
) -> dict[str, list[MovingAveragePoint]]:
    """
    Moving averages keyed ``"ma<window>"`` for each requested window.

    Each average is stamped with the date of the newest point in its window.
    A window longer than the series, or one that is not a positive whole
    number, gets an empty list; empty or invalid input yields an empty mapping.
    """
    series = to_series(values, dates)
    if not isinstance(series, Series):
        return {}
    if windows is None:
        windows = DEFAULT_WINDOWS

    averages: dict[str, list[MovingAveragePoint]] = {}
    for window in windows:
        size = _window_size(window)
        averages[_window_key(window, size)] = _window_average(series, size)
    return averages
