"""
Access to stored patient measures.

Key patterns:
- Protocol-based dependency injection: the service never imports a concrete store
- Result type for expected failures (store unavailable), exceptions for bugs
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Protocol, TypeVar, cast

from measure_analytics.domain.models import MeasureDefinition, MeasureReading

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


@dataclass(frozen=True)
class Result(Generic[ValueT, ErrorT]):
    """
    Outcome of a store call: the fetched value, or the error that prevented it.

    Stores return ``Result.err`` for an unreachable backend so the service can
    skip one measure and still report the others.
    """

    value: ValueT | None = None
    error: ErrorT | None = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.error is None):
            raise ValueError("Result needs exactly one of value or error")

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self.error is None

    def is_err(self) -> bool:
        return self.error is not None

    def unwrap(self) -> ValueT:
        """The value; re-raises the stored error on failure."""
        if self.error is not None:
            raise self.error
        return cast(ValueT, self.value)

    def unwrap_or(self, default: ValueT) -> ValueT:
        return default if self.error is not None else cast(ValueT, self.value)

    def unwrap_err(self) -> ErrorT:
        if self.error is None:
            raise ValueError("unwrap_err() on a successful Result")
        return self.error


class MeasureSource(Protocol):
    """
    Protocol for the store that holds patients' recorded measures.

    Implementations return readings ordered by ``measured_at`` ascending,
    which is what every trend calculator assumes.
    """

    source_name: str

    async def has_patient(self, patient_id: str) -> bool: ...

    async def get_definition(self, measure_id: str) -> MeasureDefinition | None: ...

    async def fetch_readings(
        self,
        patient_id: str,
        measure_id: str,
        start: datetime,
        end: datetime,
        limit: int,
    ) -> Result[list[MeasureReading], Exception]:
        """
        Fetch a patient's readings for one measure within ``[start, end]``.

        Returns:
            Result[list[MeasureReading], Exception]: At most ``limit`` readings,
            oldest first, or the error that prevented fetching them.
        """
        ...
