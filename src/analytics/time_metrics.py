"""
Time metrics calculator
Duration arithmetic, summary statistics, SLA checks and human-readable formatting
"""

import math
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, List, Optional, Sequence

from .config import AnalyticsConfig
from ..models.analytics import TimeMetrics, TimeBreakdown

SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24


def duration_hours(start: datetime, end: datetime) -> float:
    """Hours from start to end.

    Negative when end precedes start; the caller decides whether an inverted
    interval is excluded, flagged or kept.
    """
    return (end - start).total_seconds() / SECONDS_PER_HOUR


def duration_minutes(start: datetime, end: datetime) -> float:
    """Minutes from start to end (may be negative)"""
    return (end - start).total_seconds() / 60


def duration_days(start: datetime, end: datetime) -> float:
    """Days from start to end (may be negative)"""
    return duration_hours(start, end) / HOURS_PER_DAY


def hours_to_days(hours: float, ndigits: Optional[int] = 2) -> float:
    days = hours / HOURS_PER_DAY
    return round(days, ndigits) if ndigits is not None else days


def _median(sorted_values: Sequence[float]) -> float:
    middle = len(sorted_values) // 2
    if len(sorted_values) % 2 == 0:
        return (sorted_values[middle - 1] + sorted_values[middle]) / 2
    return sorted_values[middle]


def summarize(durations: Iterable[float]) -> TimeMetrics:
    """Summarize a list of durations given in hours.

    An empty input yields the all-zero TimeMetrics with count 0.
    """
    values = sorted(float(d) for d in durations)
    if not values:
        return TimeMetrics()

    return TimeMetrics(
        average_hours=sum(values) / len(values),
        median_hours=_median(values),
        min_hours=values[0],
        max_hours=values[-1],
        count=len(values),
    )


def time_breakdown(
    items: Iterable[Any],
    dimension: str,
    key_of: Callable[[Any], Optional[str]],
    hours_of: Callable[[Any], float],
) -> List[TimeBreakdown]:
    """Group durations by a named dimension and summarize each group.

    Groups keep first-seen order; a missing key is grouped under "Unknown".
    """
    groups: "OrderedDict[str, List[float]]" = OrderedDict()
    for item in items:
        label = key_of(item)
        label = "Unknown" if label is None else str(label)
        groups.setdefault(label, []).append(hours_of(item))

    breakdown = []
    for label, hours in groups.items():
        metrics = summarize(hours)
        breakdown.append(TimeBreakdown(
            dimension=dimension,
            label=label,
            average_hours=metrics.average_hours,
            min_hours=metrics.min_hours,
            max_hours=metrics.max_hours,
            count=metrics.count,
        ))
    return breakdown


def is_sla_compliant(actual_hours: float, target_hours: float) -> bool:
    """True when the actual duration meets or beats the target (boundary inclusive)"""
    return actual_hours <= target_hours


def compliance_rate(compliant_count: int, total_count: int) -> float:
    """Percentage of compliant items; 0 when there are no items"""
    if total_count == 0:
        return 0.0
    return compliant_count / total_count * 100


def business_hours(start: datetime, end: datetime,
                   hours_per_day: int = AnalyticsConfig.BUSINESS_HOURS_PER_DAY) -> int:
    """Working hours between two instants.

    Every calendar day from start's date to end's date (inclusive) counts
    hours_per_day if it falls Monday to Friday. Holidays are not taken into
    account.
    """
    total = 0
    day = start.date()
    last_day = end.date()
    while day <= last_day:
        if day.weekday() < 5:
            total += hours_per_day
        day += timedelta(days=1)
    return total


def _round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (round() would round 2.5 to 2)"""
    return int(math.floor(value + 0.5))


def _plural(amount: int, unit: str) -> str:
    return f"{amount} {unit}{'' if amount == 1 else 's'}"


def format_duration(hours: float) -> str:
    """Format a duration in hours, e.g. "45 minutes", "2 hours 30 minutes", "3 days 4 hours" """
    if hours < 1:
        minutes = _round_half_up(hours * 60)
        if minutes < 60:
            return _plural(minutes, "minute")
        hours = 1.0

    if hours < HOURS_PER_DAY:
        whole_hours = int(hours)
        minutes = _round_half_up((hours - whole_hours) * 60)
        if minutes == 60:
            whole_hours, minutes = whole_hours + 1, 0
        if whole_hours < HOURS_PER_DAY:
            if minutes == 0:
                return _plural(whole_hours, "hour")
            return f"{_plural(whole_hours, 'hour')} {_plural(minutes, 'minute')}"
        hours = float(HOURS_PER_DAY)

    days = int(hours // HOURS_PER_DAY)
    remaining_hours = _round_half_up(hours % HOURS_PER_DAY)
    if remaining_hours == HOURS_PER_DAY:
        days, remaining_hours = days + 1, 0
    if remaining_hours == 0:
        return _plural(days, "day")
    return f"{_plural(days, 'day')} {_plural(remaining_hours, 'hour')}"


def time_ago(past: datetime, now: Optional[datetime] = None) -> str:
    """Relative description of an instant, e.g. "3 hours ago", "2 weeks ago" """
    now = now or datetime.utcnow()
    elapsed_hours = max(duration_hours(past, now), 0.0)
    elapsed_days = elapsed_hours / HOURS_PER_DAY

    if elapsed_hours < 1:
        return f"{_plural(_round_half_up(elapsed_hours * 60), 'minute')} ago"
    if elapsed_hours < HOURS_PER_DAY:
        return f"{_plural(_round_half_up(elapsed_hours), 'hour')} ago"
    if elapsed_days < 7:
        return f"{_plural(_round_half_up(elapsed_days), 'day')} ago"
    if elapsed_days < 30:
        return f"{_plural(_round_half_up(elapsed_days / 7), 'week')} ago"
    return f"{_plural(_round_half_up(elapsed_days / 30), 'month')} ago"
