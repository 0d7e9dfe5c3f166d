"""Rescale differently-unitted measures onto a shared 0-100 axis for overlay charts."""

import math
from collections.abc import Iterable, Mapping
from typing import Any

from measure_analytics.domain.models import (
    MeasureSeries,
    NormalizedMeasure,
    NormalizedPoint,
    ValueRange,
)
from measure_analytics.domain.series import to_values

# Where a constant series sits on the shared axis
MIDPOINT = 50.0


def _scale(value: float, low: float, high: float) -> float:
    if high == low:
        return MIDPOINT
    span = high - low
    if math.isfinite(span):
        fraction = (value - low) / span
    else:
        # Range wider than the float max: halve everything first
        fraction = (value / 2 - low / 2) / (high / 2 - low / 2)
    return min(100.0, max(0.0, fraction * 100))


def _normalize(measure: MeasureSeries) -> NormalizedMeasure:
    values = to_values(point.value for point in measure.data)
    if not values:
        return NormalizedMeasure(name=measure.name)

    low, high = min(values), max(values)
    normalized = [
        NormalizedPoint(
            date=point.date,
            value=value,
            normalized_value=_scale(value, low, high),
        )
        for point, value in zip(measure.data, values, strict=True)
    ]
    return NormalizedMeasure(
        name=measure.name,
        normalized_data=normalized,
        original_range=ValueRange(min=low, max=high),
    )


def normalize_multiple_measures(
    measures: Iterable[MeasureSeries | Mapping[str, Any]] | None,
) -> list[NormalizedMeasure]:
    """
    Min-max normalize each measure onto ``[0, 100]`` independently.

    Each result keeps the measure's true ``original_range`` so the chart can
    label real units next to the overlay.
    """
    if not measures:
        return []
    return [_normalize(MeasureSeries.model_validate(measure)) for measure in measures]
