"""Per-product sales performance and monthly unit history.

Pure functions over the product catalog and the sales list.  Profit uses
the cost snapshot stored on each sale line, so repricing a product never
rewrites its past margins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from mype_analytics.analytics.income_statement import pct
from mype_analytics.records import Product, Sale, is_voided, item_cost, item_subtotal

logger = logging.getLogger(__name__)


@dataclass
class ProductPerformance:
    """What one catalog product sold and earned."""

    product_id: str
    name: str
    category: str
    stock: float
    units_sold: float
    revenue: float
    cost: float
    profit: float
    margin: float  # percent of revenue, 1 decimal
    customer_count: int


@dataclass
class UnitHistory:
    """Units sold per calendar month of one year (index 0 is January)."""

    product_id: str | None
    name: str
    monthly: list[float] = field(default_factory=lambda: [0.0] * 12)

    @property
    def total(self) -> float:
        return sum(self.monthly)


def product_performance(products: list[Product], sales: list[Sale]) -> list[ProductPerformance]:
    """Units, revenue, cost and margin per catalog product, best sellers first.

    Lines whose product is not in the catalog are skipped.  Walk-in sales
    without a client do not add to ``customer_count``.
    """
    units: dict[str, float] = {p.id: 0.0 for p in products}
    revenue = dict.fromkeys(units, 0.0)
    cost = dict.fromkeys(units, 0.0)
    customers: dict[str, set[str]] = {pid: set() for pid in units}

    for sale in sales:
        if is_voided(sale):
            continue
        for item in sale.items:
            pid = item.product_id
            if pid not in units:
                continue
            units[pid] += item.qty
            revenue[pid] += item_subtotal(item)
            cost[pid] += item_cost(item) * item.qty
            if sale.client_id:
                customers[pid].add(sale.client_id)

    results = []
    for p in products:
        profit = revenue[p.id] - cost[p.id]
        results.append(ProductPerformance(
            product_id=p.id,
            name=p.name,
            category=p.category,
            stock=p.stock,
            units_sold=units[p.id],
            revenue=revenue[p.id],
            cost=cost[p.id],
            profit=profit,
            margin=round(pct(profit, revenue[p.id]), 1),
            customer_count=len(customers[p.id]),
        ))

    results.sort(key=lambda r: (-r.revenue, r.name))
    return results


def monthly_units(products: list[Product], sales: list[Sale], year: int) -> list[UnitHistory]:
    """Twelve-month unit history for *year*, one row per product sold or listed.

    Catalog products come first in catalog order; products sold but no
    longer in the catalog follow under the name they were sold with.
    """
    rows: dict[str, UnitHistory] = {
        p.id: UnitHistory(product_id=p.id, name=p.name) for p in products
    }

    for sale in sales:
        if is_voided(sale) or sale.date.year != year:
            continue
        month = sale.date.month - 1
        for item in sale.items:
            key = item.product_id or item.product_name
            row = rows.get(key)
            if row is None:
                logger.debug("Sold product %r is not in the catalog", key)
                row = rows[key] = UnitHistory(product_id=item.product_id, name=item.product_name or key)
            row.monthly[month] += item.qty

    return list(rows.values())
