"""
Analytics engine for CRM Analytics API
Time metrics, distributions, trend series, concurrent reads and per-domain fallback
"""

from .config import AnalyticsConfig
from .distribution import aggregate, buckets_from_groups, percentage_of, top_buckets
from .errors import AnalyticsError, ComputationError, DataAccessFault, QueryTimeoutError
from .fallback import with_fallback
from .fanout import fan_out
from .gateway import DataAccessGateway, SqlAlchemyGateway
from .time_metrics import (
    business_hours,
    compliance_rate,
    duration_days,
    duration_hours,
    duration_minutes,
    format_duration,
    hours_to_days,
    is_sla_compliant,
    summarize,
    time_ago,
    time_breakdown,
)
from .trends import TrendUnit, build_series, period_bounds, window_start

__all__ = [
    "AnalyticsConfig",
    "aggregate", "buckets_from_groups", "percentage_of", "top_buckets",
    "AnalyticsError", "ComputationError", "DataAccessFault", "QueryTimeoutError",
    "with_fallback", "fan_out",
    "DataAccessGateway", "SqlAlchemyGateway",
    "business_hours", "compliance_rate", "duration_days", "duration_hours", "duration_minutes",
    "format_duration", "hours_to_days", "is_sla_compliant", "summarize", "time_ago", "time_breakdown",
    "TrendUnit", "build_series", "period_bounds", "window_start",
]
