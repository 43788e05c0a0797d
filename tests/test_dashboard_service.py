"""
Tests for Analytics Dashboard Service
"""

import pytest
from unittest.mock import Mock
from datetime import datetime, timedelta

from src.analytics.errors import DataAccessFault
from src.analytics.gateway import DataAccessGateway, SqlAlchemyGateway
from src.database.models import Activity, Contact, Deal, Lead, Task, User
from src.models.analytics import DashboardOverview, LeadSnapshot, SalesPerformance
from src.services.analytics_dashboard import AnalyticsDashboardService

NOW = datetime(2024, 6, 15, 12, 0, 0)


class LeadOutageGateway(SqlAlchemyGateway):
    """Gateway whose lead reads always fail"""

    def _fail_on_leads(self, entity_type):
        if entity_type == "lead":
            raise DataAccessFault("leads replica unavailable", entity_type="lead")

    def count(self, entity_type, filters=None):
        self._fail_on_leads(entity_type)
        return super().count(entity_type, filters)

    def group_by(self, entity_type, filters, dimension, sum_field=None):
        self._fail_on_leads(entity_type)
        return super().group_by(entity_type, filters, dimension, sum_field)


@pytest.fixture
def crm_data(add_rows):
    add_rows(
        User(id=1, email="ana@crm.local", first_name="Ana", last_name="Costa"),
        User(id=2, email="bruno@crm.local", first_name="Bruno", last_name="Lima"),
        Contact(id=1, first_name="Carla", company="Acme Corp"),
        Lead(id=1, title="L1", status="NEW", source="WEBSITE", assigned_to_id=1, created_at=NOW - timedelta(days=1)),
        Lead(title="L2", status="CLOSED_WON", source="REFERRAL", assigned_to_id=2, created_at=NOW - timedelta(days=3)),
        Deal(id=1, title="Won", status="CLOSED_WON", value=4000, assigned_to_id=1, contact_id=1,
             created_at=datetime(2024, 5, 1), actual_close_date=datetime(2024, 5, 11)),
        Deal(title="Lost", status="CLOSED_LOST", value=3000, assigned_to_id=2,
             actual_close_date=datetime(2024, 4, 20)),
        Deal(title="Open", status="OPPORTUNITY", value=2000, assigned_to_id=2,
             expected_close_date=datetime(2024, 7, 1)),
        Deal(title="Proposal", status="PROPOSAL", value=1000, assigned_to_id=1,
             expected_close_date=datetime(2024, 6, 20)),
        Deal(title="Archived", status="CLOSED_WON", value=99999, assigned_to_id=1, is_active=False,
             actual_close_date=datetime(2024, 6, 1)),
        Task(title="Call back", status="PENDING", priority="HIGH", assigned_to_id=1,
             due_date=NOW + timedelta(days=1)),
        Task(title="Next month", status="IN_PROGRESS", priority="LOW", assigned_to_id=2,
             due_date=NOW + timedelta(days=10)),
        Task(title="Done", status="COMPLETED", priority="MEDIUM", assigned_to_id=1,
             created_at=NOW - timedelta(days=2), completed_at=NOW - timedelta(days=1)),
        Activity(type="CALL", title="Intro call", user_id=1, created_at=NOW - timedelta(days=2),
                 scheduled_at=NOW - timedelta(days=2)),
        Activity(type="EMAIL", title="Proposal sent", user_id=2, lead_id=1, deal_id=1,
                 created_at=NOW - timedelta(hours=3), scheduled_at=NOW - timedelta(hours=3)),
    )


class TestDashboardOverview:
    """Dashboard sections over a temporary database"""

    def test_sections_are_populated(self, gateway, clock, crm_data):
        dashboard = AnalyticsDashboardService(gateway, clock=clock).get_dashboard_overview()

        assert dashboard.failed_sections == []
        assert dashboard.generated_at == NOW

        assert dashboard.leads.total_leads == 2
        assert dashboard.leads.active_leads == 1

        deals = dashboard.deals
        assert deals.total_deals == 4
        assert deals.active_deals == 2
        assert deals.revenue.total_value == 10000
        assert deals.revenue.won_value == 4000
        assert deals.revenue.pipeline_value == 3000
        assert deals.revenue.win_rate == 40.0
        assert [d["value"] for d in deals.top_deals] == [4000, 3000, 2000, 1000]
        won_bucket = next(b for b in deals.status_distribution if b.label == "CLOSED_WON")
        assert won_bucket.sum_value == 4000
        may = next(p for p in deals.revenue.monthly_revenue if p.period_label == "2024-05")
        assert may.sum_value == 4000

        tasks = dashboard.tasks
        assert tasks.total_tasks == 3
        assert tasks.pending_tasks == 2
        assert tasks.completed_tasks == 1
        assert tasks.task_completion_rate == 33.3
        assert [t["title"] for t in tasks.upcoming_tasks] == ["Call back"]
        assert tasks.upcoming_tasks[0]["due_in"] == "1 day"

        activity = dashboard.activity
        assert activity.total_contacts == 1
        assert activity.total_activities == 2
        assert [a["title"] for a in activity.recent_activities] == ["Proposal sent", "Intro call"]
        assert activity.recent_activities[0]["time_ago"] == "3 hours ago"

    def test_listings_carry_related_records(self, gateway, clock, crm_data):
        dashboard = AnalyticsDashboardService(gateway, clock=clock).get_dashboard_overview()

        top_deal = dashboard.deals.top_deals[0]
        assert top_deal["assigned_to"] == {"id": 1, "first_name": "Ana", "last_name": "Costa"}
        assert top_deal["contact"] == {"id": 1, "first_name": "Carla", "last_name": None, "company": "Acme Corp"}
        assert dashboard.deals.top_deals[1]["assigned_to"]["first_name"] == "Bruno"
        assert dashboard.deals.top_deals[1]["contact"] is None

        assert dashboard.tasks.upcoming_tasks[0]["assigned_to"]["last_name"] == "Costa"

        latest, earlier = dashboard.activity.recent_activities
        assert latest["user"]["first_name"] == "Bruno"
        assert latest["lead"] == {"id": 1, "title": "L1"}
        assert latest["deal"] == {"id": 1, "title": "Won"}
        assert earlier["user"]["first_name"] == "Ana"
        assert earlier["lead"] is None
        assert earlier["deal"] is None

    def test_related_records_are_batched(self, clock):
        mock_gateway = Mock(spec=DataAccessGateway)
        mock_gateway.count.return_value = 2
        mock_gateway.group_by.return_value = []

        def find_many(entity_type, filters=None, projection=None, order_by=None, limit=None):
            if entity_type == "deal" and order_by == "-value":
                return [
                    {"id": 10, "title": "A", "value": 500.0, "assigned_to_id": 3, "contact_id": None},
                    {"id": 11, "title": "B", "value": 100.0, "assigned_to_id": 99, "contact_id": None},
                ]
            if entity_type == "user":
                return [{"id": 3, "first_name": "Dora", "last_name": "Reis"}]
            return []

        mock_gateway.find_many.side_effect = find_many

        top_deals = AnalyticsDashboardService(mock_gateway, clock=clock).get_dashboard_overview().deals.top_deals

        assert top_deals[0]["assigned_to"]["first_name"] == "Dora"
        assert top_deals[1]["assigned_to"] is None
        user_calls = [call for call in mock_gateway.find_many.call_args_list if call.args[0] == "user"]
        assert len(user_calls) == 1
        assert user_calls[0].args[1] == {"id": {"in": [3, 99]}}
        assert not any(call.args[0] == "contact" for call in mock_gateway.find_many.call_args_list)

    def test_lead_outage_empties_only_the_lead_section(self, session_factory, clock, crm_data):
        service = AnalyticsDashboardService(LeadOutageGateway(session_factory), clock=clock)

        dashboard = service.get_dashboard_overview()

        assert dashboard.failed_sections == ["leads"]
        assert dashboard.leads == LeadSnapshot()
        assert dashboard.deals.total_deals == 4
        assert dashboard.tasks.total_tasks == 3
        assert dashboard.activity.total_activities == 2

    def test_empty_database(self, gateway, clock):
        dashboard = AnalyticsDashboardService(gateway, clock=clock).get_dashboard_overview()

        assert dashboard == DashboardOverview(generated_at=NOW)


class TestSalesPerformance:
    """Recent records listing"""

    def test_filtered_by_user(self, gateway, clock, crm_data):
        performance = AnalyticsDashboardService(gateway, clock=clock).get_sales_performance(user_id=2)

        assert [lead["title"] for lead in performance.leads] == ["L2"]
        assert sorted(deal["title"] for deal in performance.deals) == ["Lost", "Open"]
        assert all(deal["assigned_to_id"] == 2 for deal in performance.deals)
        assert [activity["title"] for activity in performance.activities] == ["Proposal sent"]

    def test_all_users(self, gateway, clock, crm_data):
        performance = AnalyticsDashboardService(gateway, clock=clock).get_sales_performance()

        assert [lead["title"] for lead in performance.leads] == ["L1", "L2"]
        assert len(performance.deals) == 4

    def test_fault_returns_empty_listing(self):
        mock_gateway = Mock(spec=DataAccessGateway)
        mock_gateway.find_many.side_effect = DataAccessFault("timeout")

        performance = AnalyticsDashboardService(mock_gateway).get_sales_performance(user_id=1)

        assert performance == SalesPerformance()
