"""
In-memory measure store.

Implements the ``MeasureSource`` protocol over plain dictionaries. Used by the
demo and the test suite; a database-backed store implements the same methods.
"""

from collections import defaultdict
from datetime import datetime

import structlog

from measure_analytics.domain.models import MeasureDefinition, MeasureReading
from measure_analytics.services.measure_source import Result

logger = structlog.get_logger(__name__)


class InMemoryMeasureSource:
    """Patients, measure definitions and readings held in process memory."""

    def __init__(self, source_name: str = "memory") -> None:
        self.source_name = source_name
        self.logger = logger.bind(source=source_name)
        self._patients: set[str] = set()
        self._definitions: dict[str, MeasureDefinition] = {}
        self._readings: dict[tuple[str, str], list[MeasureReading]] = defaultdict(list)

    def add_patient(self, patient_id: str) -> None:
        self._patients.add(patient_id)

    def add_definition(self, definition: MeasureDefinition) -> None:
        self._definitions[definition.id] = definition

    def add_reading(self, patient_id: str, measure_id: str, reading: MeasureReading) -> None:
        """Record a reading, registering the patient if needed."""
        self._patients.add(patient_id)
        readings = self._readings[(patient_id, measure_id)]
        readings.append(reading)
        readings.sort(key=lambda r: r.measured_at)

    async def has_patient(self, patient_id: str) -> bool:
        return patient_id in self._patients

    async def get_definition(self, measure_id: str) -> MeasureDefinition | None:
        return self._definitions.get(measure_id)

    async def fetch_readings(
        self,
        patient_id: str,
        measure_id: str,
        start: datetime,
        end: datetime,
        limit: int,
    ) -> Result[list[MeasureReading], Exception]:
        try:
            readings = [
                reading
                for reading in self._readings.get((patient_id, measure_id), [])
                if start <= reading.measured_at <= end
            ][:limit]
        except TypeError as e:
            # Naive and aware datetimes cannot be compared
            self.logger.error("measure_fetch_failed", measure_id=measure_id, error=str(e))
            return Result.err(e)

        self.logger.debug("measures_fetched", measure_id=measure_id, count=len(readings))
        return Result.ok(readings)
