"""Aging of receivables and payables.

Pure functions that bucket pending invoices by how many days they are
past their due date and roll them up per client or supplier.  An invoice
without a due date is due on its issue date.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from mype_analytics.records import (
    Client,
    Purchase,
    PurchaseStatus,
    Sale,
    SaleStatus,
    Supplier,
    counterparty_id,
    effective_due_date,
    effective_total,
)
from mype_analytics.settings import AnalyticsSettings, resolve

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

BUCKET_LABELS = {
    "current": "Current",
    "d1_30": "1-30 days",
    "d31_60": "31-60 days",
    "d61_90": "61-90 days",
    "d90_plus": "90+ days",
}


@dataclass
class AgingBuckets:
    """Outstanding amount per days-overdue range."""

    current: float = 0.0
    d1_30: float = 0.0
    d31_60: float = 0.0
    d61_90: float = 0.0
    d90_plus: float = 0.0

    @property
    def total(self) -> float:
        return self.current + self.d1_30 + self.d31_60 + self.d61_90 + self.d90_plus

    def add(self, days_overdue: int, amount: float) -> None:
        key = classify_days_overdue(days_overdue)
        setattr(self, key, getattr(self, key) + amount)


@dataclass
class OpenInvoice:
    """A pending sale or purchase as seen on a given day."""

    id: str | None
    issued: date
    due: date
    amount: float
    days_overdue: int
    due_status: str  # "overdue", "due_soon", "on_time"


@dataclass
class CounterpartyDebt:
    """Everything a single client owes us, or we owe a single supplier."""

    counterparty_id: str
    name: str
    total_debt: float
    open_count: int
    oldest_due: date
    max_days_overdue: int
    invoices: list[OpenInvoice] = field(default_factory=list)


@dataclass
class AgingReport:
    """Complete aging analysis.

    ``unassigned_*`` account for invoices without a client or supplier id:
    they are in the buckets and ``grand_total`` but in no rollup.
    """

    buckets: AgingBuckets
    counterparties: list[CounterpartyDebt]
    grand_total: float
    unassigned_total: float
    unassigned_count: int
    summary: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def classify_days_overdue(days_overdue: int) -> str:
    """Return the ``AgingBuckets`` field for a days-overdue count."""
    if days_overdue <= 0:
        return "current"
    if days_overdue <= 30:
        return "d1_30"
    if days_overdue <= 60:
        return "d31_60"
    if days_overdue <= 90:
        return "d61_90"
    return "d90_plus"


def days_overdue(record: Sale | Purchase, today: date) -> int:
    """Whole days past due; zero or negative while not yet due."""
    return (today - effective_due_date(record)).days


def due_status(due: date, today: date, soon_days: int = 3) -> str:
    """Label an invoice as overdue, due within *soon_days*, or on time."""
    days_left = (due - today).days
    if days_left < 0:
        return "overdue"
    if days_left <= soon_days:
        return "due_soon"
    return "on_time"


def _analyze(
    records: list,
    amount_of: Callable,
    names: dict[str, str],
    name_of: Callable,
    sort_key: Callable,
    today: date,
    cfg: AnalyticsSettings,
    noun: str,
) -> AgingReport:
    buckets = AgingBuckets()
    groups: dict[str, CounterpartyDebt] = {}
    unassigned_total = 0.0
    unassigned_count = 0

    for rec in records:
        amount = amount_of(rec)
        overdue = days_overdue(rec, today)
        buckets.add(overdue, amount)

        cid = counterparty_id(rec)
        if cid is None:
            logger.debug("Pending %s %s has no counterparty, kept out of rollup", noun, rec.id)
            unassigned_total += amount
            unassigned_count += 1
            continue

        due = effective_due_date(rec)
        invoice = OpenInvoice(
            id=rec.id,
            issued=rec.date,
            due=due,
            amount=amount,
            days_overdue=overdue,
            due_status=due_status(due, today, cfg.due_soon_days),
        )
        entry = groups.get(cid)
        if entry is None:
            entry = groups[cid] = CounterpartyDebt(
                counterparty_id=cid,
                name=names.get(cid) or name_of(rec) or cid,
                total_debt=0.0,
                open_count=0,
                oldest_due=due,
                max_days_overdue=0,
            )
        entry.invoices.append(invoice)
        entry.total_debt += amount
        entry.open_count += 1
        entry.oldest_due = min(entry.oldest_due, due)
        entry.max_days_overdue = max(entry.max_days_overdue, overdue)

    rollup = [g for g in groups.values() if g.total_debt > 0]
    for g in rollup:
        g.invoices.sort(key=lambda inv: inv.due)
    rollup.sort(key=sort_key)

    grand_total = buckets.total
    overdue_total = grand_total - buckets.current
    summary = (
        f"{len(rollup)} {noun} counterparties owe {grand_total:,.2f} in total, "
        f"{overdue_total:,.2f} of it overdue."
    )
    if unassigned_count:
        summary += f" {unassigned_count} invoice(s) without counterparty ({unassigned_total:,.2f})."

    return AgingReport(
        buckets=buckets,
        counterparties=rollup,
        grand_total=grand_total,
        unassigned_total=unassigned_total,
        unassigned_count=unassigned_count,
        summary=summary,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze_receivables(
    sales: list[Sale],
    today: date | None = None,
    clients: list[Client] | None = None,
    config: AnalyticsSettings | None = None,
) -> AgingReport:
    """Age pending sales and roll them up per client.

    Clients are sorted most-overdue first (ties: larger debt first).
    """
    cfg = resolve(config)
    pending = [s for s in sales if s.status == SaleStatus.PENDING]
    return _analyze(
        pending,
        amount_of=lambda s: s.total,
        names={c.id: c.name for c in clients or []},
        name_of=lambda s: s.client_name,
        sort_key=lambda g: (-g.max_days_overdue, -g.total_debt, g.name),
        today=today or date.today(),
        cfg=cfg,
        noun="receivable",
    )


def analyze_payables(
    purchases: list[Purchase],
    today: date | None = None,
    suppliers: list[Supplier] | None = None,
    config: AnalyticsSettings | None = None,
) -> AgingReport:
    """Age pending purchases and roll them up per supplier.

    Suppliers are sorted by outstanding debt, largest first.
    """
    cfg = resolve(config)
    pending = [p for p in purchases if p.status == PurchaseStatus.PENDING]
    return _analyze(
        pending,
        amount_of=lambda p: effective_total(p, cfg),
        names={s.id: s.name for s in suppliers or []},
        name_of=lambda p: p.supplier_name,
        sort_key=lambda g: (-g.total_debt, -g.max_days_overdue, g.name),
        today=today or date.today(),
        cfg=cfg,
        noun="payable",
    )


def format_aging_report(report: AgingReport, title: str = "Aging Report") -> str:
    """Render buckets and the counterparty rollup as plain text."""
    lines = [title, "=" * 60]
    for key, label in BUCKET_LABELS.items():
        amount = getattr(report.buckets, key)
        share = amount / report.grand_total * 100 if report.grand_total > 0 else 0.0
        lines.append(f"  {label:<14}{amount:>14,.2f}  ({share:5.1f}%)")
    lines.append(f"  {'Total':<14}{report.grand_total:>14,.2f}")
    lines.append("")
    if report.counterparties:
        lines.append(f"{'Name':<24}{'Debt':>14}{'Open':>6}{'Oldest due':>13}{'Max late':>10}")
        lines.append("-" * 67)
        for c in report.counterparties:
            lines.append(
                f"{c.name[:23]:<24}{c.total_debt:>14,.2f}{c.open_count:>6}"
                f"{c.oldest_due.isoformat():>13}{c.max_days_overdue:>10}"
            )
        lines.append("")
    lines.append(report.summary)
    return "\n".join(lines)
