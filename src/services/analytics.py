"""
Analytics Service
Builds deal, task and lead reports from counts, group-bys and record lists read through the data access gateway
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..analytics.config import AnalyticsConfig
from ..analytics.distribution import buckets_from_groups, percentage_of, top_buckets
from ..analytics.fallback import with_fallback
from ..analytics.fanout import fan_out
from ..analytics.gateway import DataAccessGateway
from ..analytics.time_metrics import (
    compliance_rate,
    duration_hours,
    hours_to_days,
    is_sla_compliant,
    summarize,
    time_breakdown,
)
from ..analytics.trends import TrendUnit, build_series, window_start
from ..database.models import (
    ACTIVE_DEAL_STATUSES,
    ACTIVE_LEAD_STATUSES,
    FINISHED_TASK_STATUSES,
    PENDING_TASK_STATUSES,
    DealStatus,
    LeadStatus,
    TaskStatus,
)
from ..models.analytics import (
    AnalyticsOverview,
    CompletionTrendPoint,
    DealAnalyticsReport,
    DealPerformer,
    LeadAnalyticsReport,
    TaskAnalyticsReport,
    TaskPerformer,
)

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"


def interval_hours(records: Iterable[Dict[str, Any]], start_field: str, end_field: str,
                   context: str) -> List[Tuple[Dict[str, Any], float]]:
    """Pair each record having both timestamps with its duration in hours.

    Inverted intervals (end before start) are dropped and reported in the log.
    """
    pairs = []
    inverted = 0
    for record in records:
        start, end = record.get(start_field), record.get(end_field)
        if start is None or end is None:
            continue
        hours = duration_hours(start, end)
        if hours < 0:
            inverted += 1
            continue
        pairs.append((record, hours))
    if inverted:
        logger.warning(f"Excluded {inverted} {context} with {end_field} before {start_field}")
    return pairs


class AnalyticsService:
    """Service for deal, task and lead analytics"""

    def __init__(self, gateway: DataAccessGateway, config: type = AnalyticsConfig,
                 clock: Optional[Callable[[], datetime]] = None):
        """Initialize analytics service with a data access gateway"""
        self.gateway = gateway
        self.config = config
        self.clock = clock or datetime.utcnow

    def _fan_out(self, reads: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
        return fan_out(reads, max_workers=self.config.MAX_WORKERS, timeout=self.config.QUERY_TIMEOUT_SECONDS)

    def _user_names(self, user_ids: List[Any]) -> Dict[Any, str]:
        ids = [user_id for user_id in user_ids if user_id is not None]
        if not ids:
            return {}
        users = self.gateway.find_many(
            "user", {"id": {"in": ids}}, projection=["id", "first_name", "last_name"]
        )
        return {user["id"]: f"{user['first_name']} {user['last_name']}".strip() for user in users}

    # Public reports
    def get_deal_analytics(self) -> DealAnalyticsReport:
        """Deal pipeline report; empty report when the data source fails"""
        return with_fallback("deals", self._build_deal_analytics, DealAnalyticsReport)

    def get_task_analytics(self) -> TaskAnalyticsReport:
        """Task throughput report; empty report when the data source fails"""
        return with_fallback("tasks", self._build_task_analytics, TaskAnalyticsReport)

    def get_lead_analytics(self) -> LeadAnalyticsReport:
        """Lead funnel report; empty report when the data source fails"""
        return with_fallback("leads", self._build_lead_analytics, LeadAnalyticsReport)

    def get_analytics_overview(self) -> AnalyticsOverview:
        """Deal, task and lead reports built concurrently, each isolated from the others' failures"""
        failures: List[str] = []
        reports = fan_out(
            {
                "deals": lambda: with_fallback("deals", self._build_deal_analytics, DealAnalyticsReport, failures),
                "tasks": lambda: with_fallback("tasks", self._build_task_analytics, TaskAnalyticsReport, failures),
                "leads": lambda: with_fallback("leads", self._build_lead_analytics, LeadAnalyticsReport, failures),
            },
            max_workers=3,
        )
        return AnalyticsOverview(
            deals=reports["deals"],
            tasks=reports["tasks"],
            leads=reports["leads"],
            failed_sections=sorted(failures),
            timestamp=self.clock(),
        )

    # Deals
    def _build_deal_analytics(self) -> DealAnalyticsReport:
        now = self.clock()
        year_start = datetime(now.year, 1, 1)
        won = DealStatus.CLOSED_WON.value
        g = self.gateway

        reads = self._fan_out({
            "total": lambda: g.count("deal"),
            "total_value": lambda: g.aggregate("deal", None, "sum", "value"),
            "won": lambda: g.count("deal", {"status": won}),
            "lost": lambda: g.count("deal", {"status": DealStatus.CLOSED_LOST.value}),
            "active": lambda: g.count("deal", {"status": {"in": ACTIVE_DEAL_STATUSES}}),
            "stages": lambda: g.group_by("deal", None, "status", sum_field="value"),
            "won_deals": lambda: g.find_many(
                "deal", {"status": won},
                projection=["id", "value", "created_at", "actual_close_date", "assigned_to_id"],
            ),
            "performers": lambda: g.group_by(
                "deal", {"status": won, "actual_close_date": {"gte": year_start}},
                "assigned_to_id", sum_field="value",
            ),
        })

        total = reads["total"]
        if total == 0:
            return DealAnalyticsReport()

        total_value = reads["total_value"]
        won_deals = reads["won_deals"]

        cycle_hours = [hours for _, hours in interval_hours(won_deals, "created_at", "actual_close_date", "won deals")]
        sales_cycle = summarize(cycle_hours)

        monthly_revenue = build_series(
            won_deals,
            self.config.TREND_WINDOW_MONTHS,
            TrendUnit.MONTH,
            timestamp_of=lambda deal: deal.get("actual_close_date"),
            now=now,
            value_of=lambda deal: deal.get("value"),
        )

        return DealAnalyticsReport(
            total_deals=total,
            total_value=total_value,
            won_deals=reads["won"],
            lost_deals=reads["lost"],
            active_deals=reads["active"],
            conversion_rate=percentage_of(reads["won"], total),
            average_deal_size=round(total_value / total, 2),
            average_sales_cycle_days=hours_to_days(sales_cycle.average_hours),
            sales_cycle=sales_cycle,
            stage_distribution=buckets_from_groups(reads["stages"], "status"),
            monthly_revenue=monthly_revenue,
            top_performers=self._rank_deal_performers(reads["performers"]),
        )

    def _rank_deal_performers(self, rows: List[Dict[str, Any]]) -> List[DealPerformer]:
        """Top assignees by won deals, ties broken by won value"""
        ranked = sorted(rows, key=lambda row: (-int(row["count"]), -float(row["sum"] or 0)))
        ranked = ranked[:self.config.TOP_PERFORMERS_LIMIT]
        names = self._user_names([row["key"] for row in ranked])
        return [
            DealPerformer(
                user_id=row["key"],
                name=names.get(row["key"], UNKNOWN_USER),
                deals=int(row["count"]),
                value=float(row["sum"] or 0),
            )
            for row in ranked
        ]

    # Tasks
    def _build_task_analytics(self) -> TaskAnalyticsReport:
        now = self.clock()
        weeks = self.config.TREND_WINDOW_WEEKS
        trend_start = window_start(weeks, TrendUnit.WEEK, now)
        completed_status = TaskStatus.COMPLETED.value
        g = self.gateway

        reads = self._fan_out({
            "total": lambda: g.count("task"),
            "completed": lambda: g.count("task", {"status": completed_status}),
            "pending": lambda: g.count("task", {"status": {"in": PENDING_TASK_STATUSES}}),
            "overdue": lambda: g.count(
                "task", {"due_date": {"lt": now}, "status": {"not_in": FINISHED_TASK_STATUSES}}
            ),
            "priorities": lambda: g.group_by("task", None, "priority"),
            "statuses": lambda: g.group_by("task", None, "status"),
            "completed_tasks": lambda: g.find_many(
                "task", {"status": completed_status},
                projection=["id", "priority", "created_at", "completed_at", "due_date", "assigned_to_id"],
            ),
            "created_in_window": lambda: g.find_many(
                "task", {"created_at": {"gte": trend_start}} if trend_start else None,
                projection=["id", "created_at"],
            ),
        })

        total = reads["total"]
        if total == 0:
            return TaskAnalyticsReport()

        completed_tasks = reads["completed_tasks"]
        timed = interval_hours(completed_tasks, "created_at", "completed_at", "completed tasks")
        completion_time = summarize(hours for _, hours in timed)

        on_time, with_due_date = self._on_time_counts(timed)

        created_series = build_series(reads["created_in_window"], weeks, TrendUnit.WEEK,
                                      timestamp_of=lambda task: task.get("created_at"), now=now)
        completed_series = build_series(completed_tasks, weeks, TrendUnit.WEEK,
                                        timestamp_of=lambda task: task.get("completed_at"), now=now)
        weekly_completion = [
            CompletionTrendPoint(
                period_label=created.period_label,
                period_start=created.period_start,
                period_end=created.period_end,
                created=created.count,
                completed=completed.count,
            )
            for created, completed in zip(created_series, completed_series)
        ]

        return TaskAnalyticsReport(
            total_tasks=total,
            completed_tasks=reads["completed"],
            pending_tasks=reads["pending"],
            overdue_tasks=reads["overdue"],
            completion_rate=percentage_of(reads["completed"], total),
            average_completion_days=hours_to_days(completion_time.average_hours),
            completion_time=completion_time,
            completion_time_by_priority=time_breakdown(
                timed, "priority",
                key_of=lambda pair: pair[0].get("priority"),
                hours_of=lambda pair: pair[1],
            ),
            on_time_tasks=on_time,
            sla_compliance_rate=round(compliance_rate(on_time, with_due_date), 1),
            priority_distribution=buckets_from_groups(reads["priorities"], "priority"),
            status_distribution=buckets_from_groups(reads["statuses"], "status"),
            weekly_completion=weekly_completion,
            top_performers=self._rank_task_performers(timed, datetime(now.year, 1, 1)),
        )

    @staticmethod
    def _on_time_counts(timed: List[Tuple[Dict[str, Any], float]]) -> Tuple[int, int]:
        """(compliant, measured) over completed tasks that carry a due date"""
        compliant = measured = 0
        for task, actual_hours in timed:
            if task.get("due_date") is None:
                continue
            measured += 1
            target_hours = duration_hours(task["created_at"], task["due_date"])
            if is_sla_compliant(actual_hours, target_hours):
                compliant += 1
        return compliant, measured

    def _rank_task_performers(self, timed: List[Tuple[Dict[str, Any], float]], since: datetime) -> List[TaskPerformer]:
        by_assignee: Dict[Any, List[Tuple[Dict[str, Any], float]]] = {}
        for task, hours in timed:
            if task.get("assigned_to_id") is None or task["completed_at"] < since:
                continue
            by_assignee.setdefault(task["assigned_to_id"], []).append((task, hours))

        ranked = sorted(by_assignee.items(), key=lambda item: (-len(item[1]), item[0]))
        ranked = ranked[:self.config.TOP_PERFORMERS_LIMIT]
        names = self._user_names([user_id for user_id, _ in ranked])

        performers = []
        for user_id, tasks in ranked:
            on_time, measured = self._on_time_counts(tasks)
            performers.append(TaskPerformer(
                user_id=user_id,
                name=names.get(user_id, UNKNOWN_USER),
                completed=len(tasks),
                on_time_rate=round(compliance_rate(on_time, measured), 1),
            ))
        return performers

    # Leads
    def _build_lead_analytics(self) -> LeadAnalyticsReport:
        now = self.clock()
        months = self.config.TREND_WINDOW_MONTHS
        trend_start = window_start(months, TrendUnit.MONTH, now)
        g = self.gateway

        reads = self._fan_out({
            "total": lambda: g.count("lead"),
            "active": lambda: g.count("lead", {"status": {"in": ACTIVE_LEAD_STATUSES}}),
            "converted": lambda: g.count("lead", {"status": LeadStatus.CLOSED_WON.value}),
            "sources": lambda: g.group_by("lead", None, "source"),
            "statuses": lambda: g.group_by("lead", None, "status"),
            "recent_leads": lambda: g.find_many(
                "lead", {"created_at": {"gte": trend_start}} if trend_start else None,
                projection=["id", "created_at", "value"],
            ),
        })

        total = reads["total"]
        if total == 0:
            return LeadAnalyticsReport()

        source_distribution = buckets_from_groups(reads["sources"], "source")

        return LeadAnalyticsReport(
            total_leads=total,
            active_leads=reads["active"],
            converted_leads=reads["converted"],
            conversion_rate=percentage_of(reads["converted"], total, ndigits=2),
            source_distribution=source_distribution,
            status_distribution=buckets_from_groups(reads["statuses"], "status"),
            monthly_leads=build_series(
                reads["recent_leads"], months, TrendUnit.MONTH,
                timestamp_of=lambda lead: lead.get("created_at"),
                now=now,
                value_of=lambda lead: lead.get("value"),
            ),
            top_sources=top_buckets(source_distribution, self.config.TOP_SOURCES_LIMIT),
        )
