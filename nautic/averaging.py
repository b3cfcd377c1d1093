"""Day slicing and averaging of hourly forecast series.

Hour ``i`` of an Open-Meteo hourly series belongs to day ``i // 24`` of the
forecast horizon. Means here are not NaN-safe: a single missing
hour makes the whole day unknown.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from nautic.domain import HourlyStats

HOURS_PER_DAY = 24
MAX_DAY_INDEX = 6  # seven-day horizon

NAN = float("nan")


def check_day_index(day: int, *, max_day: int = MAX_DAY_INDEX) -> int:
    """Return ``day`` if it addresses a day in the forecast horizon."""
    if isinstance(day, bool) or not isinstance(day, int):
        raise ValueError(f"day must be an integer, got {day!r}")
    if not 0 <= day <= max_day:
        raise ValueError(f"day must be between 0 and {max_day}, got {day}")
    return day


def day_slice(values: Sequence[Optional[float]], day: int) -> Sequence[Optional[float]]:
    """Hours ``[24*day, 24*day + 24)`` of an hourly series."""
    check_day_index(day)
    start = day * HOURS_PER_DAY
    return values[start:start + HOURS_PER_DAY]


def mean(values: Sequence[Optional[float]]) -> float:
    """Arithmetic mean; NaN for an empty sequence or any missing element."""
    if not values:
        return NAN
    total = 0.0
    for value in values:
        if value is None:
            return NAN
        total += value
    return total / len(values)


def average_for_day(values: Sequence[Optional[float]] | None, day: int) -> float:
    """Mean of one day of an hourly series (NaN when the day has no data)."""
    return mean(day_slice(values or [], day))


def hourly_stats(values: Sequence[Optional[float]] | None) -> HourlyStats:
    """Min/avg/max of the known values in ``values``.

    Missing hours are skipped, unlike ``mean``.
    """
    known = [v for v in (values or []) if v is not None and not math.isnan(v)]
    if not known:
        return HourlyStats(min=NAN, avg=NAN, max=NAN)
    return HourlyStats(min=min(known), avg=sum(known) / len(known), max=max(known))
