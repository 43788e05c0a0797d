from pydantic import BaseModel, Field
from typing import List, Dict, Optional, Any
from datetime import datetime


class TimeMetrics(BaseModel):
    """Duration statistics in hours; all zero when count is 0"""
    average_hours: float = 0.0
    median_hours: float = 0.0
    min_hours: float = 0.0
    max_hours: float = 0.0
    count: int = 0


class TimeBreakdown(BaseModel):
    """Duration statistics for one group of a named dimension"""
    dimension: str
    label: str
    average_hours: float = 0.0
    min_hours: float = 0.0
    max_hours: float = 0.0
    count: int = 0


class DistributionBucket(BaseModel):
    """One group's share of a categorical partition"""
    dimension: str
    label: str
    count: int = 0
    sum_value: float = 0.0
    percentage: float = 0.0


class TrendPoint(BaseModel):
    """Aggregate of the records falling in one trend bucket"""
    period_label: str
    period_start: datetime
    period_end: datetime
    count: int = 0
    sum_value: float = 0.0


class CompletionTrendPoint(BaseModel):
    """Tasks created and completed in one week"""
    period_label: str
    period_start: datetime
    period_end: datetime
    created: int = 0
    completed: int = 0


class DealPerformer(BaseModel):
    user_id: Optional[int] = None
    name: str
    deals: int = 0
    value: float = 0.0


class TaskPerformer(BaseModel):
    user_id: Optional[int] = None
    name: str
    completed: int = 0
    on_time_rate: float = 0.0


class DealAnalyticsReport(BaseModel):
    """Deal pipeline analytics"""
    total_deals: int = 0
    total_value: float = 0.0
    won_deals: int = 0
    lost_deals: int = 0
    active_deals: int = 0
    conversion_rate: float = 0.0
    average_deal_size: float = 0.0
    average_sales_cycle_days: float = 0.0
    sales_cycle: TimeMetrics = Field(default_factory=TimeMetrics)
    stage_distribution: List[DistributionBucket] = Field(default_factory=list)
    monthly_revenue: List[TrendPoint] = Field(default_factory=list)
    top_performers: List[DealPerformer] = Field(default_factory=list)


class TaskAnalyticsReport(BaseModel):
    """Task throughput and timeliness analytics"""
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    overdue_tasks: int = 0
    completion_rate: float = 0.0
    average_completion_days: float = 0.0
    completion_time: TimeMetrics = Field(default_factory=TimeMetrics)
    completion_time_by_priority: List[TimeBreakdown] = Field(default_factory=list)
    on_time_tasks: int = 0
    sla_compliance_rate: float = 0.0
    priority_distribution: List[DistributionBucket] = Field(default_factory=list)
    status_distribution: List[DistributionBucket] = Field(default_factory=list)
    weekly_completion: List[CompletionTrendPoint] = Field(default_factory=list)
    top_performers: List[TaskPerformer] = Field(default_factory=list)


class LeadAnalyticsReport(BaseModel):
    """Lead funnel analytics"""
    total_leads: int = 0
    active_leads: int = 0
    converted_leads: int = 0
    conversion_rate: float = 0.0
    source_distribution: List[DistributionBucket] = Field(default_factory=list)
    status_distribution: List[DistributionBucket] = Field(default_factory=list)
    monthly_leads: List[TrendPoint] = Field(default_factory=list)
    top_sources: List[DistributionBucket] = Field(default_factory=list)


class AnalyticsOverview(BaseModel):
    """Deal, task and lead reports built in one call"""
    deals: DealAnalyticsReport = Field(default_factory=DealAnalyticsReport)
    tasks: TaskAnalyticsReport = Field(default_factory=TaskAnalyticsReport)
    leads: LeadAnalyticsReport = Field(default_factory=LeadAnalyticsReport)
    failed_sections: List[str] = Field(default_factory=list)
    timestamp: datetime


class RevenueSummary(BaseModel):
    total_value: float = 0.0
    won_value: float = 0.0
    pipeline_value: float = 0.0
    win_rate: float = 0.0
    monthly_revenue: List[TrendPoint] = Field(default_factory=list)


class LeadSnapshot(BaseModel):
    total_leads: int = 0
    active_leads: int = 0
    source_distribution: List[DistributionBucket] = Field(default_factory=list)
    status_distribution: List[DistributionBucket] = Field(default_factory=list)


class DealSnapshot(BaseModel):
    total_deals: int = 0
    active_deals: int = 0
    status_distribution: List[DistributionBucket] = Field(default_factory=list)
    revenue: RevenueSummary = Field(default_factory=RevenueSummary)
    top_deals: List[Dict[str, Any]] = Field(default_factory=list)


class TaskSnapshot(BaseModel):
    total_tasks: int = 0
    pending_tasks: int = 0
    completed_tasks: int = 0
    task_completion_rate: float = 0.0
    upcoming_tasks: List[Dict[str, Any]] = Field(default_factory=list)


class ActivitySnapshot(BaseModel):
    total_contacts: int = 0
    total_activities: int = 0
    recent_activities: List[Dict[str, Any]] = Field(default_factory=list)


class DashboardOverview(BaseModel):
    """Cross-domain dashboard; each section falls back independently"""
    leads: LeadSnapshot = Field(default_factory=LeadSnapshot)
    deals: DealSnapshot = Field(default_factory=DealSnapshot)
    tasks: TaskSnapshot = Field(default_factory=TaskSnapshot)
    activity: ActivitySnapshot = Field(default_factory=ActivitySnapshot)
    failed_sections: List[str] = Field(default_factory=list)
    generated_at: datetime


class SalesPerformance(BaseModel):
    leads: List[Dict[str, Any]] = Field(default_factory=list)
    deals: List[Dict[str, Any]] = Field(default_factory=list)
    activities: List[Dict[str, Any]] = Field(default_factory=list)
