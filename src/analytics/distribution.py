"""
Distribution aggregator
Groups records by a categorical key and reports count, value sum and share per group
"""

from typing import Any, Callable, Dict, Iterable, List, Optional

from ..models.analytics import DistributionBucket

UNKNOWN_LABEL = "Unknown"


def percentage_of(part: float, total: float, ndigits: int = 1) -> float:
    """part / total * 100 rounded; 0 when total is 0"""
    if total == 0:
        return 0.0
    return round(part / total * 100, ndigits)


def _label(key: Any) -> str:
    if key is None or key == "":
        return UNKNOWN_LABEL
    # Enum members expose their string value
    return str(getattr(key, "value", key))


def apportion_tenths(counts: Dict[str, int]) -> Dict[str, float]:
    """Percentages in tenths by largest remainder.

    Each share is within 0.1 of its exact value and the shares of a
    non-empty partition add up to exactly 100.0.
    """
    total = sum(counts.values())
    if total == 0:
        return {label: 0.0 for label in counts}

    tenths = {}
    remainders = {}
    for label, count in counts.items():
        tenths[label], remainders[label] = divmod(count * 1000, total)

    leftover = 1000 - sum(tenths.values())
    for label in sorted(remainders, key=lambda key: (-remainders[key], key))[:leftover]:
        tenths[label] += 1
    return {label: value / 10 for label, value in tenths.items()}


def _build_buckets(dimension: str, groups: Dict[str, Dict[str, float]]) -> List[DistributionBucket]:
    shares = apportion_tenths({label: int(group["count"]) for label, group in groups.items()})
    buckets = [
        DistributionBucket(
            dimension=dimension,
            label=label,
            count=int(group["count"]),
            sum_value=float(group["sum"]),
            percentage=shares[label],
        )
        for label, group in groups.items()
    ]
    buckets.sort(key=lambda bucket: (-bucket.count, bucket.label))
    return buckets


def aggregate(
    records: Iterable[Any],
    dimension: str,
    key_of: Callable[[Any], Any],
    value_of: Optional[Callable[[Any], Optional[float]]] = None,
) -> List[DistributionBucket]:
    """Partition records by key_of and compute one bucket per group.

    Args:
        records: Records to partition
        dimension: Name of the partition (e.g. "status", "priority"), copied to every bucket
        key_of: Extracts the categorical key of a record
        value_of: Extracts the numeric value summed per group (missing values count as 0)

    Returns:
        Buckets ordered by count descending then label; empty for empty input
    """
    groups: Dict[str, Dict[str, float]] = {}
    for record in records:
        label = _label(key_of(record))
        group = groups.setdefault(label, {"count": 0, "sum": 0.0})
        group["count"] += 1
        if value_of is not None:
            group["sum"] += float(value_of(record) or 0)
    return _build_buckets(dimension, groups)


def buckets_from_groups(rows: Iterable[Dict[str, Any]], dimension: str) -> List[DistributionBucket]:
    """Build buckets from pre-grouped rows of the form {"key", "count", "sum"}"""
    groups: Dict[str, Dict[str, float]] = {}
    for row in rows:
        label = _label(row.get("key"))
        group = groups.setdefault(label, {"count": 0, "sum": 0.0})
        group["count"] += int(row.get("count") or 0)
        group["sum"] += float(row.get("sum") or 0)
    return _build_buckets(dimension, groups)


def top_buckets(buckets: List[DistributionBucket], limit: int) -> List[DistributionBucket]:
    """First `limit` buckets of an already ordered distribution"""
    if limit < 0:
        return []
    return buckets[:limit]
