"""Forward cash-flow projection from pending invoices.

Builds a day-by-day ledger starting today: pending sales are expected
inflows on their due date, pending purchases expected outflows.  Anything
due before today or after the horizon is left out; overdue balances belong
to the aging report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta

from mype_analytics.analytics.periods import DateRange
from mype_analytics.records import (
    Purchase,
    PurchaseStatus,
    Sale,
    SaleStatus,
    effective_due_date,
    effective_total,
)
from mype_analytics.settings import AnalyticsSettings, resolve


@dataclass
class ProjectedDay:
    """Expected movements for one calendar day."""

    date: date
    inflows: float = 0.0
    outflows: float = 0.0
    net: float = 0.0
    cumulative_net: float = 0.0


@dataclass
class CashFlowProjection:
    """Projection over the configured horizon (30 days by default)."""

    days: list[ProjectedDay]
    total_inflows: float
    total_outflows: float
    net_flow: float
    critical_days: list[ProjectedDay] = field(default_factory=list)

    @property
    def horizon(self) -> DateRange:
        return DateRange(self.days[0].date, self.days[-1].date)


def project_cash_flow(
    sales: list[Sale],
    purchases: list[Purchase],
    today: date | None = None,
    config: AnalyticsSettings | None = None,
) -> CashFlowProjection:
    """Project daily inflows, outflows and running balance.

    Args:
        sales: All sales; only pending ones are considered.
        purchases: All purchases; only pending ones are considered.
        today: First day of the horizon.
        config: Settings override (``projection_horizon_days``).

    Returns:
        CashFlowProjection whose ``critical_days`` are the days where the
        cumulative balance is negative.
    """
    cfg = resolve(config)
    start = today or date.today()
    horizon = DateRange(start, start + timedelta(days=cfg.projection_horizon_days - 1))
    days = [ProjectedDay(date=d) for d in horizon.iter_days()]
    index = {d.date: i for i, d in enumerate(days)}

    for sale in sales:
        if sale.status != SaleStatus.PENDING:
            continue
        i = index.get(effective_due_date(sale))
        if i is not None:
            days[i].inflows += sale.total

    for purchase in purchases:
        if purchase.status != PurchaseStatus.PENDING:
            continue
        i = index.get(effective_due_date(purchase))
        if i is not None:
            days[i].outflows += effective_total(purchase, cfg)

    cumulative = 0.0
    for day in days:
        day.net = day.inflows - day.outflows
        cumulative += day.net
        day.cumulative_net = cumulative

    total_inflows = sum(d.inflows for d in days)
    total_outflows = sum(d.outflows for d in days)

    return CashFlowProjection(
        days=days,
        total_inflows=total_inflows,
        total_outflows=total_outflows,
        net_flow=total_inflows - total_outflows,
        critical_days=[d for d in days if d.cumulative_net < 0],
    )
