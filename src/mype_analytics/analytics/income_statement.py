"""Income statement (P&L) for one period.

Pure functions over already-filtered sales, purchases and expenses.
Revenue is booked tax-exclusive on non-voided sales; cost of goods sold
uses the unit cost captured on each sale item, not the product's current
cost, so past periods keep their historical margins.
"""

from __future__ import annotations

from dataclasses import dataclass

from mype_analytics.records import (
    Expense,
    Purchase,
    Sale,
    cost_of_sale,
    effective_subtotal,
    is_voided,
)
from mype_analytics.settings import AnalyticsSettings, resolve


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class IncomeStatement:
    """Accrual view of a period.  Margins are percentages of gross revenue."""

    gross_revenue: float
    cost_of_goods_sold: float
    gross_profit: float
    gross_margin: float
    operating_expenses: float
    ebitda: float
    ebitda_margin: float
    operating_income: float
    income_tax: float
    net_income: float
    net_margin: float
    transaction_count: int
    purchases_total: float


@dataclass
class ExpenseCategory:
    """Operating expenses grouped by their free-form category."""

    category: str
    amount: float
    count: int
    pct_of_total: float


@dataclass
class WaterfallStep:
    """One bar of the P&L bridge chart."""

    name: str
    value: float
    is_subtotal: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def pct(part: float, whole: float) -> float:
    """``part / whole * 100``, or 0 when *whole* is not positive."""
    if whole <= 0:
        return 0.0
    return part / whole * 100


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute_income_statement(
    sales: list[Sale],
    purchases: list[Purchase] | None = None,
    expenses: list[Expense] | None = None,
    config: AnalyticsSettings | None = None,
) -> IncomeStatement:
    """Build the income statement for one period.

    Args:
        sales: Sales of the period.  Voided sales are ignored.
        purchases: Purchases of the period.  They do not enter the P&L
            (cost is recognized when goods are sold) and are reported as
            ``purchases_total`` for reference only.
        expenses: Operating expenses of the period.
        config: Settings override; defaults to the process settings.

    Returns:
        IncomeStatement.  Every margin is 0 when revenue is 0.
    """
    cfg = resolve(config)
    booked = [s for s in sales if not is_voided(s)]

    gross_revenue = sum(effective_subtotal(s, cfg) for s in booked)
    cogs = sum(cost_of_sale(s) for s in booked)
    gross_profit = gross_revenue - cogs

    operating_expenses = sum(e.amount for e in expenses or [])
    ebitda = gross_profit - operating_expenses

    income_tax = max(0.0, ebitda) * cfg.income_tax_rate
    net_income = ebitda - income_tax

    return IncomeStatement(
        gross_revenue=gross_revenue,
        cost_of_goods_sold=cogs,
        gross_profit=gross_profit,
        gross_margin=pct(gross_profit, gross_revenue),
        operating_expenses=operating_expenses,
        ebitda=ebitda,
        ebitda_margin=pct(ebitda, gross_revenue),
        operating_income=ebitda,
        income_tax=income_tax,
        net_income=net_income,
        net_margin=pct(net_income, gross_revenue),
        transaction_count=len(booked),
        purchases_total=sum(effective_subtotal(p, cfg) for p in purchases or []),
    )


def expense_breakdown(expenses: list[Expense]) -> list[ExpenseCategory]:
    """Group expenses by category, largest first."""
    amounts: dict[str, float] = {}
    counts: dict[str, int] = {}
    for e in expenses:
        category = e.category.strip() or "General"
        amounts[category] = amounts.get(category, 0.0) + e.amount
        counts[category] = counts.get(category, 0) + 1

    total = sum(amounts.values())
    result = [
        ExpenseCategory(
            category=cat,
            amount=amount,
            count=counts[cat],
            pct_of_total=round(pct(amount, total), 2),
        )
        for cat, amount in amounts.items()
    ]
    result.sort(key=lambda c: (-c.amount, c.category))
    return result


def waterfall(statement: IncomeStatement) -> list[WaterfallStep]:
    """P&L bridge from revenue down to net income."""
    return [
        WaterfallStep("Revenue", statement.gross_revenue, False),
        WaterfallStep("Cost of sales", -statement.cost_of_goods_sold, False),
        WaterfallStep("Gross profit", statement.gross_profit, True),
        WaterfallStep("Operating expenses", -statement.operating_expenses, False),
        WaterfallStep("EBITDA", statement.ebitda, True),
        WaterfallStep("Income tax", -statement.income_tax, False),
        WaterfallStep("Net income", statement.net_income, True),
    ]


def format_income_statement(statement: IncomeStatement) -> str:
    """Render the statement as an aligned plain-text report."""
    rows = [
        ("Revenue (ex. IGV)", statement.gross_revenue, None),
        ("Cost of goods sold", -statement.cost_of_goods_sold, None),
        ("Gross profit", statement.gross_profit, statement.gross_margin),
        ("Operating expenses", -statement.operating_expenses, None),
        ("EBITDA", statement.ebitda, statement.ebitda_margin),
        ("Income tax", -statement.income_tax, None),
        ("Net income", statement.net_income, statement.net_margin),
    ]
    lines = ["Income Statement", "=" * 48]
    for label, value, margin in rows:
        suffix = f"  ({margin:5.1f}%)" if margin is not None else ""
        lines.append(f"{label:<22}{value:>14,.2f}{suffix}")
    lines.append("-" * 48)
    lines.append(f"Transactions: {statement.transaction_count}")
    return "\n".join(lines)
