"""
Domain models for patient measure trend analysis.

Results are immutable pydantic models. Attributes are snake_case; dumping with
``by_alias=True`` yields the camelCase keys chart clients expect
(``stdDev``, ``percentageChange``, ``normalizedData``...).
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Measurement instants may be calendar dates or full timestamps
Timestamp = datetime | date


class AnalyticsModel(BaseModel):
    """Base for all analytics models: frozen, camelCase on the wire."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class TrendDirection(str, Enum):
    """Coarse classification of a series' net movement."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class CorrelationStrength(str, Enum):
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"


class CorrelationDirection(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NONE = "none"


class MeasureType(str, Enum):
    """Kinds of measure definitions kept by the measure store."""

    NUMERIC = "numeric"
    CALCULATED = "calculated"
    TEXT = "text"
    BOOLEAN = "boolean"


# Calculator results


class TrendMetrics(AnalyticsModel):
    direction: TrendDirection = TrendDirection.STABLE
    percentage_change: float = 0.0
    velocity: float = Field(default=0.0, description="Signed change per day, first to last point")
    r_squared: float = Field(default=0.0, ge=0.0, le=1.0)


class MovingAveragePoint(AnalyticsModel):
    date: Timestamp
    value: float


class TrendLine(AnalyticsModel):
    slope: float = 0.0
    intercept: float = 0.0
    predictions: list[float] = Field(default_factory=list)
    r_squared: float = Field(default=0.0, ge=0.0, le=1.0)


class Outlier(AnalyticsModel):
    value: float
    index: int = Field(ge=0, description="Position in the caller's (unsorted) series")
    z_score: float


class Statistics(AnalyticsModel):
    mean: float = 0.0
    median: float = 0.0
    std_dev: float = 0.0
    variance: float = 0.0
    q1: float = 0.0
    q3: float = 0.0
    iqr: float = 0.0
    outliers: list[Outlier] = Field(default_factory=list)


class DataPoint(AnalyticsModel):
    date: Timestamp
    value: float


class MeasureSeries(AnalyticsModel):
    """A named measure's chronologically ordered readings."""

    name: str
    data: list[DataPoint] = Field(default_factory=list)
    measure_id: str | None = None
    display_name: str | None = None
    unit: str | None = None


class NormalizedPoint(AnalyticsModel):
    date: Timestamp
    value: float
    normalized_value: float = Field(ge=0.0, le=100.0)


class ValueRange(AnalyticsModel):
    min: float = 0.0
    max: float = 0.0


class NormalizedMeasure(AnalyticsModel):
    name: str
    normalized_data: list[NormalizedPoint] = Field(default_factory=list)
    original_range: ValueRange = Field(default_factory=ValueRange)


# Measure store records


class MeasureDefinition(AnalyticsModel):
    id: str
    name: str
    display_name: str
    unit: str | None = None
    measure_type: MeasureType = MeasureType.NUMERIC

    @property
    def is_numeric(self) -> bool:
        """Only numeric and calculated measures can be charted as trends."""
        return self.measure_type in (MeasureType.NUMERIC, MeasureType.CALCULATED)


class MeasureReading(AnalyticsModel):
    id: str
    measured_at: datetime
    value: float
    notes: str | None = None


# Service reports


class ReadingPoint(AnalyticsModel):
    """A reading as returned to the chart, flagged when it is a statistical outlier."""

    id: str
    measured_at: datetime
    value: float
    notes: str | None = None
    is_outlier: bool = False


class TrendReport(AnalyticsModel):
    data: list[ReadingPoint] = Field(default_factory=list)
    trend: TrendMetrics | None = None
    moving_averages: dict[str, list[MovingAveragePoint]] = Field(default_factory=dict)
    trend_line: TrendLine | None = None
    statistics: Statistics | None = None
    measure_definition: MeasureDefinition | None = None
    message: str | None = None


class MeasureCorrelation(AnalyticsModel):
    measure1: str
    measure2: str
    correlation: float = Field(ge=-1.0, le=1.0)
    data_points: int = Field(ge=0)
    strength: CorrelationStrength
    direction: CorrelationDirection


class DateRange(AnalyticsModel):
    start: datetime
    end: datetime


class ComparisonReport(AnalyticsModel):
    measures: list[MeasureSeries] = Field(default_factory=list)
    normalized: list[NormalizedMeasure] | None = None
    correlations: list[MeasureCorrelation] = Field(default_factory=list)
    date_range: DateRange | None = None
    message: str | None = None
