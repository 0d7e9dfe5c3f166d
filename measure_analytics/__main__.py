"""
Console demo of a patient trend report.

Builds an in-memory store with a few months of weight and waist readings,
then prints the trend report and a comparison of the two measures.

Run with: python -m measure_analytics
"""

import asyncio
from datetime import UTC, datetime, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from measure_analytics.adapters import InMemoryMeasureSource
from measure_analytics.config import get_config
from measure_analytics.domain.models import MeasureDefinition, MeasureReading, TrendReport
from measure_analytics.observability import configure_logging
from measure_analytics.services import TrendAnalysisService

console = Console()

PATIENT_ID = "demo-patient"


def build_demo_source(now: datetime) -> InMemoryMeasureSource:
    """A patient losing roughly 0.1 kg a day, with one mistyped reading."""
    source = InMemoryMeasureSource("demo")
    source.add_patient(PATIENT_ID)
    source.add_definition(
        MeasureDefinition(id="weight", name="weight", display_name="Weight", unit="kg")
    )
    source.add_definition(
        MeasureDefinition(id="waist", name="waist", display_name="Waist circumference", unit="cm")
    )

    start = now - timedelta(days=120)
    for day in range(0, 120, 3):
        measured_at = start + timedelta(days=day)
        weight = 92.0 - 0.1 * day + (0.4 if day % 2 else -0.3)
        if day == 60:
            weight = 129.0  # typo in the source data
        source.add_reading(
            PATIENT_ID,
            "weight",
            MeasureReading(id=f"w{day}", measured_at=measured_at, value=round(weight, 1)),
        )
        source.add_reading(
            PATIENT_ID,
            "waist",
            MeasureReading(
                id=f"c{day}", measured_at=measured_at, value=round(104.0 - 0.06 * day, 1)
            ),
        )
    return source


def render_report(report: TrendReport) -> None:
    definition = report.measure_definition
    unit = definition.unit if definition else ""

    if report.trend is None or report.statistics is None:
        console.print(Panel(report.message or "No data", title="Trend"))
        return

    trend = report.trend
    console.print(
        Panel(
            f"Direction: [bold]{trend.direction.value}[/bold]\n"
            f"Change: {trend.percentage_change:+.1f}%\n"
            f"Velocity: {trend.velocity:+.3f} {unit}/day\n"
            f"R²: {trend.r_squared:.3f}",
            title=f"{definition.display_name if definition else 'Measure'} trend",
        )
    )

    stats = report.statistics
    table = Table(title="Statistics")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for label, value in (
        ("Mean", stats.mean),
        ("Median", stats.median),
        ("Std dev", stats.std_dev),
        ("Q1", stats.q1),
        ("Q3", stats.q3),
        ("IQR", stats.iqr),
    ):
        table.add_row(label, f"{value:.2f} {unit}")
    table.add_row("Outliers", str(len(stats.outliers)))
    console.print(table)

    for key, points in report.moving_averages.items():
        latest = f"{points[-1].value:.2f} {unit}" if points else "not enough data"
        console.print(f"{key}: {latest}")


async def main() -> None:
    config = get_config()
    configure_logging(config.logging)

    now = datetime.now(UTC)
    service = TrendAnalysisService(build_demo_source(now), config.analytics, clock=lambda: now)

    report = await service.analyze_trend(PATIENT_ID, "weight")
    render_report(report)

    comparison = await service.compare_measures(PATIENT_ID, ["weight", "waist"], normalize=True)
    table = Table(title="Correlations")
    for column in ("Measure 1", "Measure 2", "r", "Points", "Strength"):
        table.add_column(column)
    for correlation in comparison.correlations:
        table.add_row(
            correlation.measure1,
            correlation.measure2,
            f"{correlation.correlation:+.3f}",
            str(correlation.data_points),
            f"{correlation.strength.value} {correlation.direction.value}",
        )
    console.print(table)


if __name__ == "__main__":
    asyncio.run(main())
