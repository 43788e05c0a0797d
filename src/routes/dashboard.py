from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from ..analytics.gateway import DataAccessGateway
from ..services.analytics_dashboard import AnalyticsDashboardService
from .analytics import get_gateway
from .presentation import with_colors

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def get_dashboard_service(gateway: DataAccessGateway = Depends(get_gateway)) -> AnalyticsDashboardService:
    """Get analytics dashboard service with dependencies"""
    return AnalyticsDashboardService(gateway)


@router.get("/metrics")
async def get_dashboard_metrics(
    dashboard_service: AnalyticsDashboardService = Depends(get_dashboard_service)
):
    """Dashboard overview: leads, deals and revenue, tasks, recent activity"""
    try:
        overview = dashboard_service.get_dashboard_overview()
        return with_colors(overview.model_dump(mode="json"))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error calculating dashboard metrics: {str(e)}")


@router.get("/sales-performance")
async def get_sales_performance(
    user_id: Optional[int] = Query(None, description="Filter by user ID"),
    dashboard_service: AnalyticsDashboardService = Depends(get_dashboard_service)
):
    """Recent leads, upcoming deals and scheduled activities"""
    try:
        performance = dashboard_service.get_sales_performance(user_id)
        return performance.model_dump(mode="json")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error getting sales performance: {str(e)}")
