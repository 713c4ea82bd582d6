"""Chart series: monthly and daily trends plus top-N rankings.

Every series covers each bucket in its range, so a month or day without
activity shows up as zero instead of leaving a gap on the chart axis.
Voided sales never contribute.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from mype_analytics.analytics.periods import (
    DateRange,
    filter_by_range,
    month_start,
    resolve_period,
)
from mype_analytics.records import (
    Expense,
    Sale,
    cost_of_sale,
    effective_subtotal,
    is_voided,
    item_subtotal,
)
from mype_analytics.settings import AnalyticsSettings, resolve

_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class TrendPoint:
    """One bucket of a revenue/cost/profit series."""

    label: str
    start: date
    revenue: float = 0.0
    costs: float = 0.0
    expenses: float = 0.0

    @property
    def profit(self) -> float:
        return self.revenue - self.costs - self.expenses


@dataclass
class RankedEntry:
    """A top-N row; ``name`` is shortened for display, ``full_name`` is not."""

    name: str
    full_name: str
    total: float
    quantity: float = 0.0
    transactions: int = 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def shorten_label(text: str, max_length: int) -> str:
    """Cut *text* to *max_length* characters, marking the cut with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 1].rstrip() + "…"


def _month_label(day: date) -> str:
    return f"{_MONTH_ABBR[day.month - 1]} {day.year % 100:02d}"


def _accumulate(
    points: dict[date, TrendPoint],
    key_of,
    sales: list[Sale],
    expenses: list[Expense],
    cfg: AnalyticsSettings,
) -> None:
    for sale in sales:
        if is_voided(sale):
            continue
        point = points.get(key_of(sale.date))
        if point is not None:
            point.revenue += effective_subtotal(sale, cfg)
            point.costs += cost_of_sale(sale)
    for expense in expenses:
        point = points.get(key_of(expense.date))
        if point is not None:
            point.expenses += expense.amount


def _rank(entries: dict[str, RankedEntry], limit: int, max_length: int) -> list[RankedEntry]:
    ranked = sorted(entries.values(), key=lambda e: (-e.total, e.full_name))[:limit]
    for entry in ranked:
        entry.name = shorten_label(entry.full_name, max_length)
    return ranked


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def monthly_trend(
    sales: list[Sale],
    expenses: list[Expense] | None = None,
    today: date | None = None,
    months: int | None = None,
    config: AnalyticsSettings | None = None,
) -> list[TrendPoint]:
    """Revenue, cost of sales, expenses and profit for the last *months* months.

    The current month is the last bucket; buckets are oldest first.
    Revenue is tax-exclusive and costs come from the item cost snapshots.
    """
    cfg = resolve(config)
    today = today or date.today()
    count = months if months is not None else cfg.trend_months

    points: dict[date, TrendPoint] = {}
    for offset in range(-(count - 1), 1):
        start = month_start(today, offset)
        points[start] = TrendPoint(label=_month_label(start), start=start)

    _accumulate(points, lambda d: date(d.year, d.month, 1), sales, expenses or [], cfg)
    return list(points.values())


def daily_trend(
    sales: list[Sale],
    date_range: DateRange | None = None,
    expenses: list[Expense] | None = None,
    today: date | None = None,
    config: AnalyticsSettings | None = None,
) -> list[TrendPoint]:
    """One point per calendar day of *date_range* (the current month by default)."""
    cfg = resolve(config)
    window = date_range or resolve_period("month", today, cfg)

    points = {d: TrendPoint(label=f"{d.day:02d}/{d.month:02d}", start=d) for d in window.iter_days()}
    _accumulate(points, lambda d: d, sales, expenses or [], cfg)
    return list(points.values())


def top_products(
    sales: list[Sale],
    date_range: DateRange | None = None,
    limit: int | None = None,
    config: AnalyticsSettings | None = None,
) -> list[RankedEntry]:
    """Products ranked by tax-exclusive line revenue inside *date_range*.

    Lines are grouped by product name, as sold.  Without a range every
    sale counts.
    """
    cfg = resolve(config)
    scope = filter_by_range(sales, date_range) if date_range else sales

    entries: dict[str, RankedEntry] = {}
    for sale in scope:
        if is_voided(sale):
            continue
        for item in sale.items:
            name = item.product_name or item.product_id or "Unnamed product"
            entry = entries.get(name)
            if entry is None:
                entry = entries[name] = RankedEntry(name=name, full_name=name, total=0.0)
            entry.total += item_subtotal(item)
            entry.quantity += item.qty
            entry.transactions += 1

    return _rank(entries, cfg.top_products_limit if limit is None else limit, cfg.label_max_length)


def top_clients(
    sales: list[Sale],
    date_range: DateRange | None = None,
    limit: int | None = None,
    config: AnalyticsSettings | None = None,
) -> list[RankedEntry]:
    """Clients ranked by tax-inclusive sales inside *date_range*.

    Walk-in sales without a client name are grouped as "No client".
    """
    cfg = resolve(config)
    scope = filter_by_range(sales, date_range) if date_range else sales

    entries: dict[str, RankedEntry] = {}
    for sale in scope:
        if is_voided(sale):
            continue
        name = (sale.client_name or "").strip() or "No client"
        entry = entries.get(name)
        if entry is None:
            entry = entries[name] = RankedEntry(name=name, full_name=name, total=0.0)
        entry.total += sale.total
        entry.transactions += 1

    return _rank(entries, cfg.top_clients_limit if limit is None else limit, cfg.label_max_length)


def format_trend(points: list[TrendPoint], title: str = "Monthly trend") -> str:
    """Render a trend series as a plain-text table."""
    lines = [title, "=" * 60]
    lines.append(f"{'Period':<10}{'Revenue':>12}{'Costs':>12}{'Expenses':>12}{'Profit':>12}")
    for p in points:
        lines.append(
            f"{p.label:<10}{p.revenue:>12,.2f}{p.costs:>12,.2f}"
            f"{p.expenses:>12,.2f}{p.profit:>12,.2f}"
        )
    return "\n".join(lines)
