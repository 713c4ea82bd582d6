"""Realized cash flow for one period.

Only money that actually moved counts here: paid sales in, paid purchases
and expenses out.  Pending invoices are obligations, not cash, and show up
in the projection and aging reports instead.  Amounts are tax-inclusive.
"""

from __future__ import annotations

from dataclasses import dataclass

from mype_analytics.records import (
    Expense,
    Purchase,
    PurchaseStatus,
    Sale,
    SaleStatus,
    effective_total,
)
from mype_analytics.settings import AnalyticsSettings, resolve


@dataclass
class CashFlowSummary:
    """Cash movements of a period."""

    inflows: float
    inflows_count: int
    outflows_purchases: float
    outflows_count: int
    outflows_expenses: float
    total_outflows: float
    net_cash_flow: float


def compute_cash_flow(
    sales: list[Sale],
    purchases: list[Purchase] | None = None,
    expenses: list[Expense] | None = None,
    config: AnalyticsSettings | None = None,
) -> CashFlowSummary:
    """Sum collected sales against paid purchases and expenses.

    Expenses are assumed to be paid in cash when recorded.
    """
    cfg = resolve(config)
    paid_sales = [s for s in sales if s.status == SaleStatus.PAID]
    paid_purchases = [p for p in purchases or [] if p.status == PurchaseStatus.PAID]

    inflows = sum(s.total for s in paid_sales)
    outflows_purchases = sum(effective_total(p, cfg) for p in paid_purchases)
    outflows_expenses = sum(e.amount for e in expenses or [])
    total_outflows = outflows_purchases + outflows_expenses

    return CashFlowSummary(
        inflows=inflows,
        inflows_count=len(paid_sales),
        outflows_purchases=outflows_purchases,
        outflows_count=len(paid_purchases),
        outflows_expenses=outflows_expenses,
        total_outflows=total_outflows,
        net_cash_flow=inflows - total_outflows,
    )
