"""
Input validation for the trend calculators.

Every calculator validates its raw input exactly once, here, and then works on
a ``Series`` it can trust. Anything unusable (mismatched lengths, non-numeric
or non-finite values, values without dates) becomes ``EMPTY`` so callers fall
through to their neutral result instead of raising.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from numbers import Real

from measure_analytics.domain.models import Timestamp


@dataclass(frozen=True)
class Series:
    """A validated, non-empty series with its elapsed-day axis."""

    values: tuple[float, ...]
    dates: tuple[Timestamp, ...]
    days: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class EmptySeries:
    """Marker for empty or invalid input."""

    def __len__(self) -> int:
        return 0


EMPTY = EmptySeries()


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _as_naive_datetime(value: Timestamp) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(UTC).replace(tzinfo=None)
        return value
    return datetime.combine(value, time())


def to_values(values: Iterable[float] | None) -> tuple[float, ...] | None:
    """Copy ``values`` into a tuple of floats, or ``None`` if any entry is not a finite number."""
    if values is None:
        return None
    try:
        items = tuple(values)
    except TypeError:
        return None
    if not all(_is_number(v) for v in items):
        return None
    return tuple(float(v) for v in items)


def total(terms: Iterable[float]) -> float:
    """Exact sum via ``math.fsum``; plain float addition (``inf``/``nan``) once the sum overflows."""
    items = list(terms)
    try:
        return math.fsum(items)
    except (OverflowError, ValueError):
        # fsum refuses intermediate overflow and inf + -inf
        return sum(items)


def elapsed_days(start: Timestamp, end: Timestamp) -> int:
    """Whole days from ``start`` to ``end`` (negative when ``end`` is earlier)."""
    return (_as_naive_datetime(end) - _as_naive_datetime(start)).days


def to_series(
    values: Sequence[float] | None, dates: Sequence[Timestamp] | None
) -> Series | EmptySeries:
    """Validate parallel ``values``/``dates`` into a ``Series``.

    Dates are assumed to be sorted ascending; ordering is the caller's job.
    """
    numbers = to_values(values)
    if not numbers or dates is None:
        return EMPTY

    stamps = tuple(dates)
    if len(stamps) != len(numbers):
        return EMPTY
    if not all(isinstance(d, date) for d in stamps):
        return EMPTY

    origin = _as_naive_datetime(stamps[0])
    days = tuple((_as_naive_datetime(d) - origin).days for d in stamps)
    return Series(values=numbers, dates=stamps, days=days)
