"""
Trend reports and measure comparisons for patient charts.

This service sits between the measure store and the HTTP layer:
1. Check the patient and measure definitions exist and are chartable
2. Fetch readings for the requested window
3. Run the pure calculators and assemble a chart-ready report

Errors a caller must act on (unknown patient, bad request) are raised as
``MeasureAnalyticsError`` subclasses; a measure that cannot be loaded during a
comparison is logged and skipped.
"""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from itertools import combinations

import structlog

from measure_analytics.analysis import (
    classify_correlation,
    compute_correlation,
    compute_moving_averages,
    compute_statistics,
    compute_trend_line,
    compute_trend_metrics,
    normalize_multiple_measures,
)
from measure_analytics.config import AnalyticsConfig
from measure_analytics.domain.models import (
    ComparisonReport,
    DataPoint,
    DateRange,
    MeasureCorrelation,
    MeasureDefinition,
    MeasureSeries,
    ReadingPoint,
    Timestamp,
    TrendReport,
)
from measure_analytics.services.measure_source import MeasureSource

logger = structlog.get_logger(__name__)

NO_DATA_MESSAGE = "No data available for the selected period"
INSUFFICIENT_COMPARISON_MESSAGE = (
    "Insufficient data for comparison (need at least 2 measures with data)"
)


class MeasureAnalyticsError(Exception):
    """Base class for errors the trend service reports to its caller."""


class PatientNotFoundError(MeasureAnalyticsError):
    def __init__(self, patient_id: str) -> None:
        super().__init__(f"Patient not found: {patient_id}")
        self.patient_id = patient_id


class MeasureNotFoundError(MeasureAnalyticsError):
    def __init__(self, measure_id: str) -> None:
        super().__init__(f"Measure definition not found: {measure_id}")
        self.measure_id = measure_id


class NonNumericMeasureError(MeasureAnalyticsError):
    def __init__(self, definition: MeasureDefinition) -> None:
        super().__init__(
            f"Trend analysis is only available for numeric measures "
            f"({definition.name} is {definition.measure_type.value})"
        )
        self.measure_id = definition.id


class InvalidComparisonError(MeasureAnalyticsError, ValueError):
    """The comparison request names too few or too many measures."""


class MeasureSourceError(MeasureAnalyticsError):
    """The measure store failed while loading readings."""


class TrendAnalysisService:
    """
    Builds trend reports and multi-measure comparisons from a ``MeasureSource``.

    Holds no state between calls beyond its configuration.
    """

    def __init__(
        self,
        source: MeasureSource,
        config: AnalyticsConfig | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.source = source
        self.config = config or AnalyticsConfig()
        self._clock = clock
        self.logger = logger.bind(component="trend_analysis_service")

    def _resolve_range(
        self, start: datetime | None, end: datetime | None
    ) -> tuple[datetime, datetime]:
        now = self._clock()
        return (
            start or now - timedelta(days=self.config.lookback_days),
            end or now,
        )

    async def _require_patient(self, patient_id: str) -> None:
        if not await self.source.has_patient(patient_id):
            raise PatientNotFoundError(patient_id)

    async def analyze_trend(
        self,
        patient_id: str,
        measure_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        include_moving_averages: bool = True,
        include_trend_line: bool = True,
    ) -> TrendReport:
        """
        Full trend analysis of one measure for one patient.

        Raises:
            PatientNotFoundError: unknown patient
            MeasureNotFoundError: unknown measure definition
            NonNumericMeasureError: the measure is not numeric or calculated
            MeasureSourceError: the store could not return readings
        """
        await self._require_patient(patient_id)

        definition = await self.source.get_definition(measure_id)
        if definition is None:
            raise MeasureNotFoundError(measure_id)
        if not definition.is_numeric:
            raise NonNumericMeasureError(definition)

        window_start, window_end = self._resolve_range(start, end)
        result = await self.source.fetch_readings(
            patient_id, measure_id, window_start, window_end, self.config.max_points
        )
        if result.is_err():
            error = result.unwrap_err()
            self.logger.error(
                "trend_readings_unavailable", measure_id=measure_id, error=str(error)
            )
            raise MeasureSourceError(f"Failed to load readings for {measure_id}") from error

        readings = result.unwrap()
        if not readings:
            self.logger.info("trend_analysis_empty", patient_id=patient_id, measure_id=measure_id)
            return TrendReport(measure_definition=definition, message=NO_DATA_MESSAGE)

        values = [reading.value for reading in readings]
        dates = [reading.measured_at for reading in readings]

        statistics = compute_statistics(values)
        outlier_indices = {outlier.index for outlier in statistics.outliers}

        report = TrendReport(
            data=[
                ReadingPoint(
                    id=reading.id,
                    measured_at=reading.measured_at,
                    value=reading.value,
                    notes=reading.notes,
                    is_outlier=index in outlier_indices,
                )
                for index, reading in enumerate(readings)
            ],
            trend=compute_trend_metrics(values, dates),
            moving_averages=compute_moving_averages(values, dates)
            if include_moving_averages
            else {},
            trend_line=compute_trend_line(values, dates) if include_trend_line else None,
            statistics=statistics,
            measure_definition=definition,
        )

        self.logger.info(
            "trend_analysis_completed",
            patient_id=patient_id,
            measure_id=measure_id,
            points=len(readings),
            direction=report.trend.direction.value if report.trend else None,
            outliers=len(outlier_indices),
        )
        return report

    async def _load_series(
        self,
        patient_id: str,
        measure_id: str,
        window_start: datetime,
        window_end: datetime,
    ) -> MeasureSeries | None:
        definition = await self.source.get_definition(measure_id)
        if definition is None or not definition.is_numeric:
            self.logger.warning(
                "measure_skipped",
                measure_id=measure_id,
                reason="missing" if definition is None else "non_numeric",
            )
            return None

        result = await self.source.fetch_readings(
            patient_id, measure_id, window_start, window_end, self.config.max_points
        )
        if result.is_err():
            self.logger.warning(
                "measure_skipped",
                measure_id=measure_id,
                reason="fetch_failed",
                error=str(result.unwrap_err()),
            )

        readings = result.unwrap_or([])
        if not readings:
            return None

        return MeasureSeries(
            name=definition.name,
            measure_id=definition.id,
            display_name=definition.display_name,
            unit=definition.unit,
            data=[DataPoint(date=r.measured_at, value=r.value) for r in readings],
        )

    def _correlate(self, first: MeasureSeries, second: MeasureSeries) -> MeasureCorrelation | None:
        # First listed reading wins when the second measure repeats a timestamp
        by_date: dict[Timestamp, float] = {}
        for point in second.data:
            by_date.setdefault(point.date, point.value)
        paired = [
            (point.value, by_date[point.date]) for point in first.data if point.date in by_date
        ]
        if len(paired) < self.config.min_correlation_points:
            return None

        xs = [x for x, _ in paired]
        ys = [y for _, y in paired]
        coefficient = compute_correlation(xs, ys)
        strength, direction = classify_correlation(
            coefficient,
            strong=self.config.strong_correlation,
            moderate=self.config.moderate_correlation,
        )
        return MeasureCorrelation(
            measure1=first.display_name or first.name,
            measure2=second.display_name or second.name,
            correlation=coefficient,
            data_points=len(paired),
            strength=strength,
            direction=direction,
        )

    async def compare_measures(
        self,
        patient_id: str,
        measure_ids: Sequence[str],
        start: datetime | None = None,
        end: datetime | None = None,
        normalize: bool = False,
    ) -> ComparisonReport:
        """
        Compare several measures of one patient over the same window.

        Correlations are computed for every pair over the readings that share
        an exact timestamp.

        Raises:
            InvalidComparisonError: too few or too many measure ids
            PatientNotFoundError: unknown patient
        """
        if len(measure_ids) < self.config.min_compare_measures:
            raise InvalidComparisonError(
                f"At least {self.config.min_compare_measures} measure definition IDs are required"
            )
        if len(measure_ids) > self.config.max_compare_measures:
            raise InvalidComparisonError(
                f"Maximum {self.config.max_compare_measures} measures can be compared at once"
            )

        await self._require_patient(patient_id)

        window_start, window_end = self._resolve_range(start, end)
        date_range = DateRange(start=window_start, end=window_end)

        loaded = [
            await self._load_series(patient_id, measure_id, window_start, window_end)
            for measure_id in measure_ids
        ]
        measures = [series for series in loaded if series is not None]

        if len(measures) < 2:
            self.logger.info(
                "measure_comparison_insufficient", patient_id=patient_id, loaded=len(measures)
            )
            return ComparisonReport(date_range=date_range, message=INSUFFICIENT_COMPARISON_MESSAGE)

        correlations = [
            correlation
            for first, second in combinations(measures, 2)
            if (correlation := self._correlate(first, second)) is not None
        ]

        self.logger.info(
            "measure_comparison_completed",
            patient_id=patient_id,
            measures=len(measures),
            correlations=len(correlations),
            normalized=normalize,
        )
        return ComparisonReport(
            measures=measures,
            normalized=normalize_multiple_measures(measures) if normalize else None,
            correlations=correlations,
            date_range=date_range,
        )
