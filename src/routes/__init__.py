"""
Routes module for CRM Analytics API
API endpoints for analytics reports and the dashboard
"""

from .analytics import router as analytics_router
from .dashboard import router as dashboard_router

__all__ = [
    "analytics_router",
    "dashboard_router"
]
