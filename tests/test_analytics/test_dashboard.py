"""Tests for the snapshot-based dashboard aggregator."""

import logging
from datetime import date

import pytest
from pydantic import ValidationError

from mype_analytics.analytics.dashboard import BusinessSnapshot, build_dashboard

AS_OF = date(2025, 3, 20)


def _snapshot():
    return BusinessSnapshot.from_documents(
        sales=[
            {
                "id": "s1", "date": "2025-03-02", "clientId": "c1", "clientName": "Ana",
                "status": "Paid", "subtotal": 100, "igv": 18, "total": 118,
                "items": [{"productId": "p1", "productName": "Rice", "qty": 10, "price": 10, "cost": 4}],
            },
            {
                "id": "s2", "date": "2025-03-10", "dueDate": "2025-03-25", "clientId": "c2",
                "clientName": "Beto", "status": "Pendiente", "subtotal": 200, "igv": 36, "total": 236,
                "items": [{"productId": "p2", "productName": "Oil", "qty": 4, "price": 50, "cost": 30}],
            },
            {
                "id": "s3", "date": "2025-01-15", "clientId": "c1", "status": "Paid",
                "subtotal": 50, "igv": 9, "total": 59,
            },
        ],
        purchases=[
            {"id": "b1", "date": "2025-03-05", "supplierId": "v1", "status": "Pending",
             "dueDate": "2025-03-22", "subtotal": 300, "igv": 54, "total": 354},
        ],
        expenses=[{"date": "2025-03-15", "amount": 40, "category": "Rent"}],
        products=[
            {"id": "p1", "name": "Rice", "stock": 20, "cost": 4, "price": 10},
            {"id": "p2", "name": "Oil", "stock": 2, "cost": 30, "price": 50},
        ],
        clients=[{"id": "c1", "name": "Ana"}, {"id": "c2", "name": "Beto"}, {"id": "c3", "name": "Caro"}],
        suppliers=[{"id": "v1", "name": "Mayorista"}],
        as_of=AS_OF,
    )


class TestBusinessSnapshot:
    def test_from_documents(self):
        snapshot = _snapshot()
        assert len(snapshot.sales) == 3
        assert snapshot.sales[1].due_date == date(2025, 3, 25)
        assert snapshot.as_of == AS_OF

    def test_malformed_document(self):
        with pytest.raises(ValidationError):
            BusinessSnapshot.from_documents(sales=[{"date": "soon", "total": 10}])


class TestBuildDashboard:
    def test_period_reports(self):
        dash = build_dashboard(_snapshot(), "month")
        assert dash.period.start == date(2025, 3, 1)
        assert dash.income_statement.gross_revenue == 300
        assert dash.income_statement.cost_of_goods_sold == 160
        assert dash.income_statement.operating_expenses == 40
        assert dash.cash_flow.inflows == 118
        assert dash.cash_flow.outflows_expenses == 40

    def test_liquidity_uses_inventory_days(self):
        dash = build_dashboard(_snapshot(), "month")
        assert dash.liquidity.accounts_receivable == 236
        assert dash.liquidity.accounts_payable == 354
        assert dash.liquidity.ccc_includes_inventory is True
        assert dash.inventory.days_of_inventory is not None

    def test_aging_and_projection(self):
        dash = build_dashboard(_snapshot(), "month")
        assert dash.receivables.grand_total == 236
        assert dash.payables.counterparties[0].name == "Mayorista"
        assert dash.projection.total_inflows == 236
        assert dash.projection.total_outflows == 354
        assert dash.projection.critical_days[0].date == date(2025, 3, 22)
        assert len(dash.projection.critical_days) == 28

    def test_customers_and_rankings(self):
        dash = build_dashboard(_snapshot(), "month")
        assert len(dash.customers) == 3
        assert dash.segments["Lost"].count == 1
        assert [e.full_name for e in dash.top_clients] == ["Beto", "Ana"]
        assert [e.full_name for e in dash.top_products] == ["Oil", "Rice"]
        assert dash.monthly_trend[-1].label == "Mar 25"

    def test_sales_goal(self):
        dash = build_dashboard(_snapshot(), "month", sales_goal=1000)
        assert dash.sales_goal is not None
        assert dash.sales_goal.current_sales == 354
        assert build_dashboard(_snapshot(), "month").sales_goal is None

    def test_logs_once(self, caplog):
        with caplog.at_level(logging.INFO, logger="mype_analytics.analytics.dashboard"):
            build_dashboard(_snapshot())
        assert "Building dashboard" in caplog.text

    def test_recompute_is_stateless(self):
        snapshot = _snapshot()
        first = build_dashboard(snapshot, "month")
        second = build_dashboard(snapshot, "month")
        assert first.income_statement == second.income_statement
        assert first.receivables.grand_total == second.receivables.grand_total
