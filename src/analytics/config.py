"""
Analytics configuration settings
"""
import os


class AnalyticsConfig:
    """Configuration class for report windows, listing sizes and query limits"""

    # Trend windows
    TREND_WINDOW_MONTHS = int(os.getenv("ANALYTICS_TREND_MONTHS", "6"))
    TREND_WINDOW_WEEKS = int(os.getenv("ANALYTICS_TREND_WEEKS", "6"))

    # Ranking sizes
    TOP_PERFORMERS_LIMIT = int(os.getenv("ANALYTICS_TOP_PERFORMERS", "4"))
    TOP_SOURCES_LIMIT = int(os.getenv("ANALYTICS_TOP_SOURCES", "5"))

    # Dashboard listings
    TOP_DEALS_LIMIT = int(os.getenv("DASHBOARD_TOP_DEALS", "10"))
    RECENT_ACTIVITIES_LIMIT = int(os.getenv("DASHBOARD_RECENT_ACTIVITIES", "10"))
    UPCOMING_TASKS_LIMIT = int(os.getenv("DASHBOARD_UPCOMING_TASKS", "10"))
    UPCOMING_TASKS_DAYS = int(os.getenv("DASHBOARD_UPCOMING_DAYS", "7"))
    SALES_PERFORMANCE_LIMIT = int(os.getenv("DASHBOARD_SALES_PERFORMANCE_LIMIT", "20"))

    # Query fan-out
    QUERY_TIMEOUT_SECONDS = float(os.getenv("ANALYTICS_QUERY_TIMEOUT", "10"))
    MAX_WORKERS = int(os.getenv("ANALYTICS_MAX_WORKERS", "8"))

    # Time arithmetic
    BUSINESS_HOURS_PER_DAY = int(os.getenv("BUSINESS_HOURS_PER_DAY", "8"))

    @classmethod
    def as_dict(cls) -> dict:
        """Return the effective settings, used by the health endpoint"""
        return {
            name.lower(): getattr(cls, name)
            for name in dir(cls)
            if name.isupper()
        }
