"""
Analytics Dashboard Service
Cross-domain dashboard overview: entity counts, revenue, distribution snapshots and activity listings
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..analytics.config import AnalyticsConfig
from ..analytics.distribution import aggregate, buckets_from_groups, percentage_of
from ..analytics.fallback import with_fallback
from ..analytics.fanout import fan_out
from ..analytics.gateway import DataAccessGateway
from ..analytics.time_metrics import duration_hours, format_duration, time_ago
from ..analytics.trends import TrendUnit, build_series
from ..database.models import CLOSED_STATUSES, PENDING_TASK_STATUSES, DealStatus, TaskStatus
from ..models.analytics import (
    ActivitySnapshot,
    DashboardOverview,
    DealSnapshot,
    LeadSnapshot,
    RevenueSummary,
    SalesPerformance,
    TaskSnapshot,
)

logger = logging.getLogger(__name__)

ACTIVE = {"is_active": True}

USER_FIELDS = ["first_name", "last_name"]
CONTACT_FIELDS = ["first_name", "last_name", "company"]
TITLE_FIELDS = ["title"]


class AnalyticsDashboardService:
    """Service for the dashboard overview; counts only active rows"""

    def __init__(self, gateway: DataAccessGateway, config: type = AnalyticsConfig,
                 clock: Optional[Callable[[], datetime]] = None):
        """Initialize dashboard service"""
        self.gateway = gateway
        self.config = config
        self.clock = clock or datetime.utcnow

    def _fan_out(self, reads: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
        return fan_out(reads, max_workers=self.config.MAX_WORKERS, timeout=self.config.QUERY_TIMEOUT_SECONDS)

    def _lookup(self, entity_type: str, ids: List[Any], fields: List[str]) -> Dict[Any, Dict[str, Any]]:
        """Related rows by id, fetched in one batched read"""
        wanted = sorted({record_id for record_id in ids if record_id is not None})
        if not wanted:
            return {}
        rows = self.gateway.find_many(entity_type, {"id": {"in": wanted}}, projection=["id", *fields])
        return {row["id"]: row for row in rows}

    def _with_related(self, rows: List[Dict[str, Any]],
                      relations: Dict[str, Tuple[str, str, List[str]]]) -> List[Dict[str, Any]]:
        """Attach related records to each row.

        relations maps the output key to (foreign key field, entity type, fields);
        a dangling or empty foreign key yields None.
        """
        lookups = self._fan_out({
            name: (lambda entity_type=entity_type, field=field, fields=fields:
                   self._lookup(entity_type, [row.get(field) for row in rows], fields))
            for name, (field, entity_type, fields) in relations.items()
        }) if rows else {}
        return [
            {
                **row,
                **{name: lookups[name].get(row.get(field)) for name, (field, _, _) in relations.items()},
            }
            for row in rows
        ]

    def get_dashboard_overview(self) -> DashboardOverview:
        """Build every dashboard section concurrently; a failed section is returned empty"""
        failures: List[str] = []
        sections = fan_out(
            {
                "leads": lambda: with_fallback("leads", self._build_lead_snapshot, LeadSnapshot, failures),
                "deals": lambda: with_fallback("deals", self._build_deal_snapshot, DealSnapshot, failures),
                "tasks": lambda: with_fallback("tasks", self._build_task_snapshot, TaskSnapshot, failures),
                "activity": lambda: with_fallback("activity", self._build_activity_snapshot, ActivitySnapshot, failures),
            },
            max_workers=4,
        )
        if failures:
            logger.warning(f"Dashboard overview served with empty sections: {sorted(failures)}")

        return DashboardOverview(
            leads=sections["leads"],
            deals=sections["deals"],
            tasks=sections["tasks"],
            activity=sections["activity"],
            failed_sections=sorted(failures),
            generated_at=self.clock(),
        )

    def get_sales_performance(self, user_id: Optional[int] = None) -> SalesPerformance:
        """Recent leads, deals and activities, optionally for one assignee"""
        return with_fallback("sales_performance", lambda: self._build_sales_performance(user_id), SalesPerformance)

    def _build_lead_snapshot(self) -> LeadSnapshot:
        g = self.gateway
        reads = self._fan_out({
            "total": lambda: g.count("lead", ACTIVE),
            "active": lambda: g.count("lead", {**ACTIVE, "status": {"not_in": CLOSED_STATUSES}}),
            "sources": lambda: g.group_by("lead", ACTIVE, "source"),
            "statuses": lambda: g.group_by("lead", ACTIVE, "status"),
        })
        if reads["total"] == 0:
            return LeadSnapshot()

        return LeadSnapshot(
            total_leads=reads["total"],
            active_leads=reads["active"],
            source_distribution=buckets_from_groups(reads["sources"], "source"),
            status_distribution=buckets_from_groups(reads["statuses"], "status"),
        )

    def _build_deal_snapshot(self) -> DealSnapshot:
        g = self.gateway
        reads = self._fan_out({
            "total": lambda: g.count("deal", ACTIVE),
            "active": lambda: g.count("deal", {**ACTIVE, "status": {"not_in": CLOSED_STATUSES}}),
            "deals": lambda: g.find_many(
                "deal", ACTIVE, projection=["id", "value", "status", "actual_close_date"]
            ),
            "top_deals": lambda: g.find_many(
                "deal", ACTIVE,
                projection=["id", "title", "value", "status", "probability", "expected_close_date",
                            "assigned_to_id", "contact_id"],
                order_by="-value",
                limit=self.config.TOP_DEALS_LIMIT,
            ),
        })
        if reads["total"] == 0:
            return DealSnapshot()

        deals = reads["deals"]
        return DealSnapshot(
            total_deals=reads["total"],
            active_deals=reads["active"],
            status_distribution=aggregate(
                deals, "status",
                key_of=lambda deal: deal.get("status"),
                value_of=lambda deal: deal.get("value"),
            ),
            revenue=self._revenue_summary(deals),
            top_deals=self._with_related(reads["top_deals"], {
                "assigned_to": ("assigned_to_id", "user", USER_FIELDS),
                "contact": ("contact_id", "contact", CONTACT_FIELDS),
            }),
        )

    def _revenue_summary(self, deals: List[Dict[str, Any]]) -> RevenueSummary:
        won = DealStatus.CLOSED_WON.value
        total_value = sum(float(deal.get("value") or 0) for deal in deals)
        won_deals = [deal for deal in deals if deal.get("status") == won]
        won_value = sum(float(deal.get("value") or 0) for deal in won_deals)
        pipeline_value = sum(
            float(deal.get("value") or 0) for deal in deals if deal.get("status") not in CLOSED_STATUSES
        )

        return RevenueSummary(
            total_value=total_value,
            won_value=won_value,
            pipeline_value=pipeline_value,
            win_rate=percentage_of(won_value, total_value),
            monthly_revenue=build_series(
                won_deals,
                self.config.TREND_WINDOW_MONTHS,
                TrendUnit.MONTH,
                timestamp_of=lambda deal: deal.get("actual_close_date"),
                now=self.clock(),
                value_of=lambda deal: deal.get("value"),
            ),
        )

    def _build_task_snapshot(self) -> TaskSnapshot:
        now = self.clock()
        horizon = now + timedelta(days=self.config.UPCOMING_TASKS_DAYS)
        g = self.gateway
        reads = self._fan_out({
            "total": lambda: g.count("task", ACTIVE),
            "pending": lambda: g.count("task", {**ACTIVE, "status": {"in": PENDING_TASK_STATUSES}}),
            "completed": lambda: g.count("task", {**ACTIVE, "status": TaskStatus.COMPLETED.value}),
            "upcoming": lambda: g.find_many(
                "task",
                {**ACTIVE, "status": {"in": PENDING_TASK_STATUSES}, "due_date": {"gte": now, "lte": horizon}},
                projection=["id", "title", "status", "priority", "due_date", "assigned_to_id"],
                order_by="due_date",
                limit=self.config.UPCOMING_TASKS_LIMIT,
            ),
        })
        if reads["total"] == 0:
            return TaskSnapshot()

        upcoming = [
            {**task, "due_in": format_duration(duration_hours(now, task["due_date"]))}
            for task in self._with_related(reads["upcoming"], {
                "assigned_to": ("assigned_to_id", "user", USER_FIELDS),
            })
        ]
        return TaskSnapshot(
            total_tasks=reads["total"],
            pending_tasks=reads["pending"],
            completed_tasks=reads["completed"],
            task_completion_rate=percentage_of(reads["completed"], reads["total"]),
            upcoming_tasks=upcoming,
        )

    def _build_activity_snapshot(self) -> ActivitySnapshot:
        now = self.clock()
        g = self.gateway
        reads = self._fan_out({
            "contacts": lambda: g.count("contact", ACTIVE),
            "activities": lambda: g.count("activity", ACTIVE),
            "recent": lambda: g.find_many(
                "activity", ACTIVE,
                projection=["id", "type", "title", "user_id", "lead_id", "deal_id", "created_at"],
                order_by="-created_at",
                limit=self.config.RECENT_ACTIVITIES_LIMIT,
            ),
        })

        recent = [
            {**activity, "time_ago": time_ago(activity["created_at"], now) if activity.get("created_at") else None}
            for activity in self._with_related(reads["recent"], {
                "user": ("user_id", "user", USER_FIELDS),
                "lead": ("lead_id", "lead", TITLE_FIELDS),
                "deal": ("deal_id", "deal", TITLE_FIELDS),
            })
        ]
        return ActivitySnapshot(
            total_contacts=reads["contacts"],
            total_activities=reads["activities"],
            recent_activities=recent,
        )

    def _build_sales_performance(self, user_id: Optional[int]) -> SalesPerformance:
        g = self.gateway
        limit = self.config.SALES_PERFORMANCE_LIMIT
        assigned = {**ACTIVE, "assigned_to_id": user_id} if user_id else ACTIVE
        owned = {**ACTIVE, "user_id": user_id} if user_id else ACTIVE

        reads = self._fan_out({
            "leads": lambda: g.find_many(
                "lead", assigned,
                projection=["id", "title", "status", "value", "created_at", "assigned_to_id"],
                order_by="-created_at", limit=limit,
            ),
            "deals": lambda: g.find_many(
                "deal", assigned,
                projection=["id", "title", "status", "value", "probability", "expected_close_date", "assigned_to_id"],
                order_by="expected_close_date", limit=limit,
            ),
            "activities": lambda: g.find_many(
                "activity", owned,
                projection=["id", "type", "title", "scheduled_at", "completed_at", "user_id"],
                order_by="-scheduled_at", limit=limit,
            ),
        })
        return SalesPerformance(leads=reads["leads"], deals=reads["deals"], activities=reads["activities"])
