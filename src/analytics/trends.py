"""
Trend series builder
Slices records into contiguous week or month buckets ending at the bucket that contains "now"
"""

from bisect import bisect_right
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from .errors import ComputationError
from ..models.analytics import TrendPoint

ONE_MICROSECOND = timedelta(microseconds=1)


class TrendUnit(str, Enum):
    WEEK = "week"
    MONTH = "month"


def _coerce_unit(unit: Union[TrendUnit, str]) -> TrendUnit:
    try:
        return TrendUnit(unit)
    except ValueError:
        raise ComputationError(f"Unrecognized trend unit: {unit!r}", unit=str(unit))


def _shift_months(moment: datetime, months: int) -> datetime:
    """First day of the month `months` away from moment's month"""
    index = moment.year * 12 + (moment.month - 1) + months
    return moment.replace(year=index // 12, month=index % 12 + 1, day=1)


def _period_start(moment: datetime, unit: TrendUnit) -> datetime:
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if unit is TrendUnit.WEEK:
        return midnight - timedelta(days=midnight.weekday())
    return midnight.replace(day=1)


def _period_label(start: datetime, unit: TrendUnit) -> str:
    if unit is TrendUnit.WEEK:
        year, week, _ = start.isocalendar()
        return f"{year}-W{week:02d}"
    return start.strftime("%Y-%m")


def period_bounds(window_count: int, unit: Union[TrendUnit, str], now: datetime) -> List[Tuple[datetime, datetime]]:
    """Inclusive [start, end] bounds of each bucket, oldest first"""
    if isinstance(window_count, bool) or not isinstance(window_count, int):
        raise ComputationError(f"window_count must be an integer, got {window_count!r}")
    if window_count < 0:
        raise ComputationError(f"window_count must not be negative, got {window_count}", window_count=window_count)
    unit = _coerce_unit(unit)

    current = _period_start(now, unit)
    bounds = []
    for offset in range(window_count - 1, -1, -1):
        if unit is TrendUnit.WEEK:
            start = current - timedelta(weeks=offset)
            following = start + timedelta(weeks=1)
        else:
            start = _shift_months(current, -offset)
            following = _shift_months(start, 1)
        bounds.append((start, following - ONE_MICROSECOND))
    return bounds


def build_series(
    records: Iterable[Any],
    window_count: int,
    unit: Union[TrendUnit, str],
    timestamp_of: Callable[[Any], Optional[datetime]],
    now: Optional[datetime] = None,
    value_of: Optional[Callable[[Any], Optional[float]]] = None,
) -> List[TrendPoint]:
    """Count and sum records per bucket over a rolling window.

    Args:
        records: Records to slice
        window_count: Number of buckets; the newest one contains `now`
        unit: TrendUnit.WEEK (Monday-based) or TrendUnit.MONTH (calendar month)
        timestamp_of: Extracts the instant a record is bucketed by; records returning None are skipped
        now: Anchor instant (defaults to the current UTC time)
        value_of: Extracts the value accumulated into sum_value

    Returns:
        Exactly window_count points ordered oldest to newest; empty periods are zero-valued

    Raises:
        ComputationError: negative window_count or unknown unit
    """
    now = now or datetime.utcnow()
    unit = _coerce_unit(unit)
    bounds = period_bounds(window_count, unit, now)
    points = [
        TrendPoint(period_label=_period_label(start, unit), period_start=start, period_end=end)
        for start, end in bounds
    ]
    if not points:
        return points

    starts = [start for start, _ in bounds]
    for record in records:
        moment = timestamp_of(record)
        if moment is None:
            continue
        index = bisect_right(starts, moment) - 1
        if index < 0 or moment > bounds[index][1]:
            continue
        point = points[index]
        point.count += 1
        if value_of is not None:
            point.sum_value += float(value_of(record) or 0)
    return points


def window_start(window_count: int, unit: Union[TrendUnit, str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Start of the oldest bucket of a window, used to bound the records fetched for it"""
    bounds = period_bounds(window_count, unit, now or datetime.utcnow())
    return bounds[0][0] if bounds else None
