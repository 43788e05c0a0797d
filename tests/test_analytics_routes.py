"""
Tests for the analytics and dashboard API routes
"""

from unittest.mock import Mock

from fastapi.testclient import TestClient

from main import app
from src.analytics.errors import DataAccessFault
from src.analytics.gateway import DataAccessGateway
from src.routes.analytics import get_gateway
from src.routes.presentation import DEFAULT_COLOR, color_for, with_colors

client = TestClient(app)


class TestAnalyticsRoutes:
    """Test analytics endpoints with a mocked gateway"""

    def setup_method(self):
        """Setup test fixtures"""
        self.mock_gateway = Mock(spec=DataAccessGateway)
        self.mock_gateway.count.return_value = 0
        self.mock_gateway.aggregate.return_value = 0.0
        self.mock_gateway.group_by.return_value = []
        self.mock_gateway.find_many.return_value = []
        app.dependency_overrides[get_gateway] = lambda: self.mock_gateway

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_deal_analytics_empty(self):
        response = client.get("/analytics/deals")

        assert response.status_code == 200
        data = response.json()
        assert data["total_deals"] == 0
        assert data["conversion_rate"] == 0
        assert data["stage_distribution"] == []
        assert data["monthly_revenue"] == []

    def test_task_analytics_buckets_carry_colors(self):
        def count(entity_type, filters=None):
            return 2

        def group_by(entity_type, filters, dimension, sum_field=None):
            if dimension == "priority":
                return [{"key": "URGENT", "count": 2, "sum": 0.0}]
            return []

        self.mock_gateway.count.side_effect = count
        self.mock_gateway.group_by.side_effect = group_by

        response = client.get("/analytics/tasks")

        assert response.status_code == 200
        bucket = response.json()["priority_distribution"][0]
        assert bucket["label"] == "URGENT"
        assert bucket["percentage"] == 100.0
        assert bucket["color"] == "#ef4444"

    def test_lead_analytics_survives_data_fault(self):
        self.mock_gateway.count.side_effect = DataAccessFault("connection refused")

        response = client.get("/analytics/leads")

        assert response.status_code == 200
        assert response.json()["total_leads"] == 0

    def test_overview_reports_failed_sections(self):
        def count(entity_type, filters=None):
            if entity_type == "task":
                raise DataAccessFault("tasks unavailable", entity_type="task")
            return 0

        self.mock_gateway.count.side_effect = count

        response = client.get("/analytics/overview")

        assert response.status_code == 200
        data = response.json()
        assert data["failed_sections"] == ["tasks"]
        assert "timestamp" in data

    def test_unexpected_error_returns_500(self):
        self.mock_gateway.count.side_effect = RuntimeError("boom")

        response = client.get("/analytics/deals")

        assert response.status_code == 500
        assert "Error calculating deal analytics" in response.json()["detail"]


class TestDashboardRoutes:
    """Test dashboard endpoints with a mocked gateway"""

    def setup_method(self):
        """Setup test fixtures"""
        self.mock_gateway = Mock(spec=DataAccessGateway)
        self.mock_gateway.count.return_value = 0
        self.mock_gateway.group_by.return_value = []
        self.mock_gateway.find_many.return_value = []
        app.dependency_overrides[get_gateway] = lambda: self.mock_gateway

    def teardown_method(self):
        app.dependency_overrides.clear()

    def test_dashboard_metrics(self):
        response = client.get("/dashboard/metrics")

        assert response.status_code == 200
        data = response.json()
        assert set(data) >= {"leads", "deals", "tasks", "activity", "failed_sections", "generated_at"}
        assert data["failed_sections"] == []

    def test_sales_performance_filters_by_user(self):
        response = client.get("/dashboard/sales-performance", params={"user_id": 5})

        assert response.status_code == 200
        assert response.json() == {"leads": [], "deals": [], "activities": []}
        lead_call = next(
            call for call in self.mock_gateway.find_many.call_args_list if call.args[0] == "lead"
        )
        assert lead_call.args[1]["assigned_to_id"] == 5


class TestAppEndpoints:
    """Test root and health endpoints"""

    def test_root(self):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "CRM Analytics API"

    def test_health(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["settings"]["top_performers_limit"] == 4


def test_palette_applies_only_to_buckets():
    payload = {
        "stage_distribution": [{"dimension": "status", "label": "CLOSED_WON", "count": 1, "percentage": 100.0}],
        "sales_cycle": {"count": 1},
        "completion_time_by_priority": [{"dimension": "priority", "label": "LOW", "count": 1}],
    }

    colored = with_colors(payload)

    assert colored["stage_distribution"][0]["color"] == "#10b981"
    assert "color" not in colored["sales_cycle"]
    assert "color" not in colored["completion_time_by_priority"][0]
    assert "color" not in payload["stage_distribution"][0]
    assert color_for("source", "WEBSITE") == DEFAULT_COLOR
