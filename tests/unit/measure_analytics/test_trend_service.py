"""
Tests for the trend analysis service.

Uses the in-memory store with a fixed clock so report windows are deterministic.
"""

from datetime import UTC, datetime, timedelta

import pytest

from measure_analytics.adapters import InMemoryMeasureSource
from measure_analytics.config import AnalyticsConfig
from measure_analytics.domain.models import (
    CorrelationDirection,
    CorrelationStrength,
    MeasureDefinition,
    MeasureReading,
    MeasureType,
    TrendDirection,
)
from measure_analytics.services import (
    InvalidComparisonError,
    MeasureAnalyticsError,
    MeasureNotFoundError,
    MeasureSourceError,
    NonNumericMeasureError,
    PatientNotFoundError,
    Result,
    TrendAnalysisService,
)
from measure_analytics.services.trend_service import (
    INSUFFICIENT_COMPARISON_MESSAGE,
    NO_DATA_MESSAGE,
)

NOW = datetime(2025, 6, 1, 8, tzinfo=UTC)
PATIENT = "patient-1"


def add_series(
    store: InMemoryMeasureSource, measure_id: str, values: list[float], start_days_ago: int
) -> None:
    for i, value in enumerate(values):
        store.add_reading(
            PATIENT,
            measure_id,
            MeasureReading(
                id=f"{measure_id}-{i}",
                measured_at=NOW - timedelta(days=start_days_ago - i),
                value=value,
            ),
        )


@pytest.fixture
def store() -> InMemoryMeasureSource:
    store = InMemoryMeasureSource("test-store")
    store.add_patient(PATIENT)
    store.add_definition(
        MeasureDefinition(id="weight", name="weight", display_name="Weight", unit="kg")
    )
    store.add_definition(
        MeasureDefinition(id="waist", name="waist", display_name="Waist", unit="cm")
    )
    store.add_definition(
        MeasureDefinition(
            id="bmi", name="bmi", display_name="BMI", measure_type=MeasureType.CALCULATED
        )
    )
    store.add_definition(
        MeasureDefinition(
            id="mood", name="mood", display_name="Mood", measure_type=MeasureType.TEXT
        )
    )

    # 40 daily readings rising 0.2 kg/day, with one data-entry error
    weights = [80 + 0.2 * i for i in range(40)]
    weights[25] = 140.0
    add_series(store, "weight", weights, start_days_ago=39)
    add_series(store, "waist", [100 + 0.1 * i for i in range(40)], start_days_ago=39)
    add_series(store, "bmi", [30 - 0.05 * i for i in range(40)], start_days_ago=39)
    return store


@pytest.fixture
def service(store: InMemoryMeasureSource) -> TrendAnalysisService:
    return TrendAnalysisService(store, AnalyticsConfig(), clock=lambda: NOW)


class FailingMeasureSource(InMemoryMeasureSource):
    """Store whose reads always fail."""

    async def fetch_readings(self, patient_id, measure_id, start, end, limit):  # type: ignore[no-untyped-def]
        return Result.err(ConnectionError("database unavailable"))


class TestAnalyzeTrend:
    async def test_full_report(self, service: TrendAnalysisService) -> None:
        report = await service.analyze_trend(PATIENT, "weight")

        assert len(report.data) == 40
        assert report.message is None
        assert report.trend is not None
        assert report.trend.direction == TrendDirection.INCREASING
        assert report.trend.velocity > 0
        assert set(report.moving_averages) == {"ma7", "ma30", "ma90"}
        assert len(report.moving_averages["ma7"]) == 34
        assert report.moving_averages["ma90"] == []
        assert report.trend_line is not None
        assert len(report.trend_line.predictions) == 40
        assert report.measure_definition is not None
        assert report.measure_definition.unit == "kg"

    async def test_outliers_are_flagged_on_readings(self, service: TrendAnalysisService) -> None:
        report = await service.analyze_trend(PATIENT, "weight")

        assert report.statistics is not None
        assert [o.index for o in report.statistics.outliers] == [25]
        flagged = [point.id for point in report.data if point.is_outlier]
        assert flagged == ["weight-25"]

    async def test_optional_sections_can_be_skipped(self, service: TrendAnalysisService) -> None:
        report = await service.analyze_trend(
            PATIENT, "weight", include_moving_averages=False, include_trend_line=False
        )

        assert report.moving_averages == {}
        assert report.trend_line is None
        assert report.trend is not None
        assert report.statistics is not None

    async def test_date_range_filters_readings(self, service: TrendAnalysisService) -> None:
        report = await service.analyze_trend(
            PATIENT, "weight", start=NOW - timedelta(days=9), end=NOW
        )

        assert len(report.data) == 10
        assert report.data[0].measured_at == NOW - timedelta(days=9)

    async def test_max_points_caps_readings(self, store: InMemoryMeasureSource) -> None:
        service = TrendAnalysisService(store, AnalyticsConfig(max_points=10), clock=lambda: NOW)

        report = await service.analyze_trend(PATIENT, "weight")

        assert len(report.data) == 10

    async def test_empty_window_returns_message(self, service: TrendAnalysisService) -> None:
        report = await service.analyze_trend(
            PATIENT, "weight", start=NOW - timedelta(days=400), end=NOW - timedelta(days=300)
        )

        assert report.data == []
        assert report.trend is None
        assert report.trend_line is None
        assert report.statistics is None
        assert report.moving_averages == {}
        assert report.message == NO_DATA_MESSAGE

    async def test_unknown_patient(self, service: TrendAnalysisService) -> None:
        with pytest.raises(PatientNotFoundError, match="nobody"):
            await service.analyze_trend("nobody", "weight")

    async def test_unknown_measure(self, service: TrendAnalysisService) -> None:
        with pytest.raises(MeasureNotFoundError):
            await service.analyze_trend(PATIENT, "height")

    async def test_text_measures_have_no_trend(self, service: TrendAnalysisService) -> None:
        with pytest.raises(NonNumericMeasureError, match="numeric"):
            await service.analyze_trend(PATIENT, "mood")

    async def test_calculated_measures_are_supported(self, service: TrendAnalysisService) -> None:
        report = await service.analyze_trend(PATIENT, "bmi")

        assert report.trend is not None
        assert report.trend.direction == TrendDirection.DECREASING

    async def test_source_failure_is_wrapped(self) -> None:
        store = FailingMeasureSource()
        store.add_patient(PATIENT)
        store.add_definition(MeasureDefinition(id="weight", name="weight", display_name="Weight"))
        service = TrendAnalysisService(store, clock=lambda: NOW)

        with pytest.raises(MeasureSourceError) as exc_info:
            await service.analyze_trend(PATIENT, "weight")

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert isinstance(exc_info.value, MeasureAnalyticsError)

    async def test_report_serializes_for_http(self, service: TrendAnalysisService) -> None:
        report = await service.analyze_trend(PATIENT, "weight")
        payload = report.model_dump(mode="json", by_alias=True)

        assert {"data", "trend", "movingAverages", "trendLine", "statistics"} <= set(payload)
        assert payload["data"][25]["isOutlier"] is True
        assert payload["trend"]["direction"] == "increasing"


class TestCompareMeasures:
    async def test_correlations_between_all_pairs(self, service: TrendAnalysisService) -> None:
        report = await service.compare_measures(PATIENT, ["waist", "bmi", "weight"])

        assert [m.measure_id for m in report.measures] == ["waist", "bmi", "weight"]
        assert report.normalized is None
        assert len(report.correlations) == 3

        waist_bmi = report.correlations[0]
        assert (waist_bmi.measure1, waist_bmi.measure2) == ("Waist", "BMI")
        assert waist_bmi.correlation == pytest.approx(-1, abs=1e-6)
        assert waist_bmi.strength == CorrelationStrength.STRONG
        assert waist_bmi.direction == CorrelationDirection.NEGATIVE
        assert waist_bmi.data_points == 40

    async def test_normalized_overlay(self, service: TrendAnalysisService) -> None:
        report = await service.compare_measures(PATIENT, ["waist", "bmi"], normalize=True)

        assert report.normalized is not None
        waist, bmi = report.normalized
        assert waist.normalized_data[0].normalized_value == 0
        assert waist.normalized_data[-1].normalized_value == pytest.approx(100)
        assert bmi.normalized_data[0].normalized_value == pytest.approx(100)

    async def test_pairs_need_shared_timestamps(
        self, store: InMemoryMeasureSource, service: TrendAnalysisService
    ) -> None:
        store.add_definition(
            MeasureDefinition(id="glucose", name="glucose", display_name="Glucose")
        )
        # Taken at noon, so never on the same instant as the other measures
        for i in range(5):
            store.add_reading(
                PATIENT,
                "glucose",
                MeasureReading(
                    id=f"g{i}", measured_at=NOW - timedelta(days=i, hours=4), value=5.0 + i
                ),
            )

        report = await service.compare_measures(PATIENT, ["weight", "glucose"])

        assert len(report.measures) == 2
        assert report.correlations == []

    async def test_repeated_timestamp_pairs_with_first_reading(self) -> None:
        store = InMemoryMeasureSource()
        store.add_patient(PATIENT)
        store.add_definition(MeasureDefinition(id="steps", name="steps", display_name="Steps"))
        store.add_definition(MeasureDefinition(id="pulse", name="pulse", display_name="Pulse"))
        add_series(store, "steps", [1, 2, 3], start_days_ago=2)
        add_series(store, "pulse", [10, 20, 30], start_days_ago=2)
        # A second pulse reading logged at the same instant as the last one
        store.add_reading(
            PATIENT, "pulse", MeasureReading(id="pulse-dup", measured_at=NOW, value=-500)
        )
        service = TrendAnalysisService(store, clock=lambda: NOW)

        report = await service.compare_measures(PATIENT, ["steps", "pulse"])

        [pair] = report.correlations
        assert pair.data_points == 3
        assert pair.correlation == pytest.approx(1.0)
        assert pair.direction == CorrelationDirection.POSITIVE

    async def test_unusable_measures_are_skipped(self, service: TrendAnalysisService) -> None:
        report = await service.compare_measures(PATIENT, ["weight", "mood", "height", "waist"])

        assert [m.measure_id for m in report.measures] == ["weight", "waist"]
        assert len(report.correlations) == 1

    async def test_insufficient_measures_with_data(self, service: TrendAnalysisService) -> None:
        report = await service.compare_measures(PATIENT, ["weight", "mood"])

        assert report.measures == []
        assert report.correlations == []
        assert report.message == INSUFFICIENT_COMPARISON_MESSAGE

    async def test_default_date_range(self, service: TrendAnalysisService) -> None:
        report = await service.compare_measures(PATIENT, ["weight", "waist"])

        assert report.date_range is not None
        assert report.date_range.end == NOW
        assert report.date_range.start == NOW - timedelta(days=365)

    @pytest.mark.parametrize("measure_ids", [[], ["weight"], ["a", "b", "c", "d", "e", "f"]])
    async def test_measure_count_is_validated(
        self, service: TrendAnalysisService, measure_ids: list[str]
    ) -> None:
        with pytest.raises(InvalidComparisonError):
            await service.compare_measures(PATIENT, measure_ids)

    async def test_invalid_comparison_is_a_value_error(
        self, service: TrendAnalysisService
    ) -> None:
        with pytest.raises(ValueError, match="At least 2"):
            await service.compare_measures(PATIENT, ["weight"])

    async def test_unknown_patient(self, service: TrendAnalysisService) -> None:
        with pytest.raises(PatientNotFoundError):
            await service.compare_measures("nobody", ["weight", "waist"])

    async def test_failed_fetches_are_skipped(self) -> None:
        store = FailingMeasureSource()
        store.add_patient(PATIENT)
        store.add_definition(MeasureDefinition(id="weight", name="weight", display_name="Weight"))
        store.add_definition(MeasureDefinition(id="waist", name="waist", display_name="Waist"))
        service = TrendAnalysisService(store, clock=lambda: NOW)

        report = await service.compare_measures(PATIENT, ["weight", "waist"])

        assert report.message == INSUFFICIENT_COMPARISON_MESSAGE
