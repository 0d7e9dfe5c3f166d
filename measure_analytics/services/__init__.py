"""
Services that compose the trend calculators with a measure store.
"""

from .measure_source import MeasureSource, Result
from .trend_service import (
    InvalidComparisonError,
    MeasureAnalyticsError,
    MeasureNotFoundError,
    MeasureSourceError,
    NonNumericMeasureError,
    PatientNotFoundError,
    TrendAnalysisService,
)

__all__ = [
    "MeasureSource",
    "Result",
    "TrendAnalysisService",
    "MeasureAnalyticsError",
    "PatientNotFoundError",
    "MeasureNotFoundError",
    "NonNumericMeasureError",
    "InvalidComparisonError",
    "MeasureSourceError",
]
