"""Tests for per-product performance and monthly unit history."""

import pytest

from mype_analytics.analytics.product_performance import monthly_units, product_performance
from mype_analytics.records import Product, Sale, SaleItem


def _catalog():
    return [
        Product(id="p1", name="Rice", category="Grocery", stock=10, cost=5),
        Product(id="p2", name="Oil", category="Grocery", stock=4, cost=9),
        Product(id="p3", name="Soap", category="Cleaning", stock=7, cost=2),
    ]


def _sale(day, client_id, *lines, status="Paid"):
    return Sale(
        date=day,
        clientId=client_id,
        status=status,
        items=[
            SaleItem(productId=pid, productName=name, qty=qty, price=price, cost=cost)
            for pid, name, qty, price, cost in lines
        ],
    )


class TestProductPerformance:
    def _sales(self):
        return [
            _sale("2025-01-05", "c1", ("p1", "Rice", 2, 10, 4), ("p2", "Oil", 1, 15, 9)),
            _sale("2025-02-05", "c2", ("p1", "Rice", 3, 10, 5)),
            _sale("2025-02-06", None, ("p1", "Rice", 1, 10, 5)),
            _sale("2025-02-07", "c3", ("p1", "Rice", 50, 10, 5), status="Voided"),
            _sale("2025-02-08", "c3", ("gone", "Retired item", 1, 99, 1)),
        ]

    def test_metrics(self):
        result = product_performance(_catalog(), self._sales())
        rice = result[0]
        assert rice.product_id == "p1"
        assert rice.units_sold == 6
        assert rice.revenue == 60
        assert rice.cost == 28
        assert rice.profit == 32
        assert rice.margin == pytest.approx(53.3)
        assert rice.customer_count == 2

    def test_sorted_and_complete(self):
        result = product_performance(_catalog(), self._sales())
        assert [r.product_id for r in result] == ["p1", "p2", "p3"]
        soap = result[-1]
        assert soap.units_sold == 0
        assert soap.margin == 0.0


class TestMonthlyUnits:
    def test_history(self):
        sales = [
            _sale("2025-01-05", "c1", ("p1", "Rice", 2, 10, 4)),
            _sale("2025-01-20", "c1", ("p1", "Rice", 1, 10, 4)),
            _sale("2025-03-05", "c1", ("p1", "Rice", 4, 10, 4)),
            _sale("2025-03-06", "c1", ("p1", "Rice", 9, 10, 4), status="Voided"),
            _sale("2024-12-30", "c1", ("p1", "Rice", 7, 10, 4)),
            _sale("2025-05-01", "c2", ("gone", "Retired item", 2, 99, 1)),
        ]
        rows = monthly_units(_catalog(), sales, 2025)
        assert [r.name for r in rows] == ["Rice", "Oil", "Soap", "Retired item"]

        rice = rows[0]
        assert rice.monthly[0] == 3
        assert rice.monthly[1] == 0
        assert rice.monthly[2] == 4
        assert rice.total == 7
        assert len(rice.monthly) == 12

        retired = rows[-1]
        assert retired.product_id == "gone"
        assert retired.monthly[4] == 2
