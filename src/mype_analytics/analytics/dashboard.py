"""Dashboard aggregator -- every report recomputed from one data snapshot.

``BusinessSnapshot`` holds the collections as the sync layer delivered
them; ``build_dashboard`` derives all reports from it in a single pass
and keeps nothing between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from mype_analytics.analytics.aging import AgingReport, analyze_payables, analyze_receivables
from mype_analytics.analytics.cash_flow import CashFlowSummary, compute_cash_flow
from mype_analytics.analytics.cash_projection import CashFlowProjection, project_cash_flow
from mype_analytics.analytics.customer_rfm import (
    CustomerRFM,
    SegmentStats,
    compute_customer_rfm,
    segment_summary,
)
from mype_analytics.analytics.income_statement import IncomeStatement, compute_income_statement
from mype_analytics.analytics.inventory_kpis import InventoryKPIs, compute_inventory_kpis
from mype_analytics.analytics.liquidity import LiquidityKPIs, compute_liquidity_kpis
from mype_analytics.analytics.periods import (
    DateRange,
    filter_by_range,
    resolve_period,
    trailing_range,
)
from mype_analytics.analytics.sales_goal import SalesGoalProgress, compute_sales_goal_progress
from mype_analytics.analytics.trends import RankedEntry, TrendPoint, monthly_trend, top_clients, top_products
from mype_analytics.records import Client, Expense, Product, Purchase, Sale, Supplier
from mype_analytics.settings import AnalyticsSettings, resolve

logger = logging.getLogger(__name__)


@dataclass
class BusinessSnapshot:
    """The business's records as of one day."""

    sales: list[Sale] = field(default_factory=list)
    purchases: list[Purchase] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    products: list[Product] = field(default_factory=list)
    clients: list[Client] = field(default_factory=list)
    suppliers: list[Supplier] = field(default_factory=list)
    as_of: date = field(default_factory=date.today)

    @classmethod
    def from_documents(
        cls,
        sales: list[dict] | None = None,
        purchases: list[dict] | None = None,
        expenses: list[dict] | None = None,
        products: list[dict] | None = None,
        clients: list[dict] | None = None,
        suppliers: list[dict] | None = None,
        as_of: date | None = None,
    ) -> BusinessSnapshot:
        """Validate raw documents into records.

        Raises:
            pydantic.ValidationError: If a document is malformed, e.g. a
                sale without a readable date.
        """
        return cls(
            sales=[Sale.model_validate(d) for d in sales or []],
            purchases=[Purchase.model_validate(d) for d in purchases or []],
            expenses=[Expense.model_validate(d) for d in expenses or []],
            products=[Product.model_validate(d) for d in products or []],
            clients=[Client.model_validate(d) for d in clients or []],
            suppliers=[Supplier.model_validate(d) for d in suppliers or []],
            as_of=as_of or date.today(),
        )


@dataclass
class Dashboard:
    """All reports for one period, as seen on ``as_of``."""

    period: DateRange
    as_of: date
    income_statement: IncomeStatement
    cash_flow: CashFlowSummary
    liquidity: LiquidityKPIs
    inventory: InventoryKPIs
    projection: CashFlowProjection
    receivables: AgingReport
    payables: AgingReport
    customers: list[CustomerRFM]
    segments: dict[str, SegmentStats]
    monthly_trend: list[TrendPoint]
    top_products: list[RankedEntry]
    top_clients: list[RankedEntry]
    sales_goal: SalesGoalProgress | None = None


def build_dashboard(
    snapshot: BusinessSnapshot,
    period: str | None = None,
    sales_goal: float | None = None,
    config: AnalyticsSettings | None = None,
) -> Dashboard:
    """Recompute every report from *snapshot*.

    Profit, cash flow, liquidity and rankings cover the *period* containing
    ``snapshot.as_of``.  Inventory turnover uses the trailing velocity
    window; aging, projection and customer profiles use all records.

    Args:
        snapshot: Records to analyze.
        period: Period kind; defaults to the configured default period.
        sales_goal: Optional goal for the same period.
        config: Settings override.
    """
    cfg = resolve(config)
    today = snapshot.as_of
    window = resolve_period(period, today, cfg)
    logger.info(
        "Building dashboard for %s..%s: %d sales, %d purchases, %d expenses, %d products, %d clients",
        window.start, window.end, len(snapshot.sales), len(snapshot.purchases),
        len(snapshot.expenses), len(snapshot.products), len(snapshot.clients),
    )

    sales = filter_by_range(snapshot.sales, window)
    purchases = filter_by_range(snapshot.purchases, window)
    expenses = filter_by_range(snapshot.expenses, window)

    velocity = trailing_range(today, cfg.velocity_window_days)
    inventory = compute_inventory_kpis(
        snapshot.products,
        filter_by_range(snapshot.sales, velocity),
        window_days=velocity.days,
        config=cfg,
    )

    customers = compute_customer_rfm(snapshot.clients, snapshot.sales, today, cfg)

    goal = None
    if sales_goal is not None:
        goal = compute_sales_goal_progress(
            snapshot.sales, sales_goal, period or cfg.default_period, today, config=cfg,
        )

    return Dashboard(
        period=window,
        as_of=today,
        income_statement=compute_income_statement(sales, purchases, expenses, cfg),
        cash_flow=compute_cash_flow(sales, purchases, expenses, cfg),
        liquidity=compute_liquidity_kpis(
            sales,
            purchases,
            period_days=window.days,
            days_of_inventory=inventory.days_of_inventory,
            config=cfg,
        ),
        inventory=inventory,
        projection=project_cash_flow(snapshot.sales, snapshot.purchases, today, cfg),
        receivables=analyze_receivables(snapshot.sales, today, snapshot.clients, cfg),
        payables=analyze_payables(snapshot.purchases, today, snapshot.suppliers, cfg),
        customers=customers,
        segments=segment_summary(customers),
        monthly_trend=monthly_trend(snapshot.sales, snapshot.expenses, today, config=cfg),
        top_products=top_products(sales, config=cfg),
        top_clients=top_clients(sales, config=cfg),
        sales_goal=goal,
    )
