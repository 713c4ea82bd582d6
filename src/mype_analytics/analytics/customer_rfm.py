"""Customer RFM analysis -- Recency, Frequency, Monetary.

Pure functions that profile every client from their sales history,
classify them with a fixed-priority rule tree, and measure whether their
spending is growing.  Voided sales are ignored throughout.

Segments, best to worst: Champions, Loyal, Promising / Regular, At Risk,
Lost.  Thresholds come from ``AnalyticsSettings.rfm``.

A client who never bought anything gets ``recency`` equal to the
``never_purchased_recency`` sentinel (999 by default) and
``last_purchase = None``; use the latter to tell them apart from a client
whose last purchase really was 999 days ago.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from mype_analytics.analytics.periods import previous_range, trailing_range
from mype_analytics.records import Client, Sale, is_voided, item_subtotal
from mype_analytics.settings import AnalyticsSettings, RFMThresholds, resolve

SEGMENTS = ("Champions", "Loyal", "Promising", "Regular", "At Risk", "Lost")

SEGMENT_RANK = {
    "Champions": 5,
    "Loyal": 4,
    "Promising": 3,
    "Regular": 3,
    "At Risk": 2,
    "Lost": 1,
}


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class ProductShare:
    """A product's weight in one client's purchase history."""

    product_id: str | None
    product_name: str
    qty: float
    revenue: float


@dataclass
class CustomerRFM:
    """RFM profile for a single client."""

    client_id: str
    name: str
    recency: int
    frequency: int
    monetary: float
    avg_ticket: float
    last_purchase: date | None
    rfm_score: float
    segment: str
    trend: str  # "up", "down", "new", "flat"
    top_products: list[ProductShare] = field(default_factory=list)


@dataclass
class SegmentStats:
    """Head-count and spend of one segment."""

    count: int = 0
    value: float = 0.0


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def classify_segment(
    recency: int,
    frequency: int,
    monetary: float,
    thresholds: RFMThresholds | None = None,
) -> str:
    """Assign a segment; rules are evaluated in priority order."""
    t = thresholds or resolve(None).rfm

    if frequency <= 0:
        return "Lost"
    if (
        recency <= t.champions_max_recency
        and frequency >= t.champions_min_frequency
        and monetary >= t.champions_min_monetary
    ):
        return "Champions"
    if recency <= t.loyal_max_recency and frequency >= t.loyal_min_frequency:
        return "Loyal"
    if recency <= t.promising_max_recency and frequency <= t.promising_max_frequency:
        return "Promising"
    if recency > t.lost_min_recency:
        return "Lost"
    if recency > t.loyal_max_recency:
        # Lapsing: repeat buyers are At Risk, one-off buyers are Lost.
        return "At Risk" if frequency >= t.at_risk_min_frequency else "Lost"
    return "Regular"


def rfm_score(recency: int, frequency: int, monetary: float) -> float:
    """Single sortable score: fresher, more frequent, bigger spenders first."""
    return round((100 - min(recency, 100)) + frequency * 10 + monetary / 100, 2)


def classify_trend(
    client_sales: list[Sale],
    today: date,
    cfg: AnalyticsSettings,
) -> str:
    """Compare spend in the trailing window against the window before it."""
    current = trailing_range(today, cfg.trend_window_days)
    previous = previous_range(current)

    recent_total = sum(s.total for s in client_sales if current.contains(s.date))
    older_total = sum(s.total for s in client_sales if previous.contains(s.date))
    bought_before = any(s.date < current.start for s in client_sales)

    if not bought_before:
        return "new" if recent_total > 0 else "flat"
    if older_total <= 0:
        return "up" if recent_total > 0 else "flat"

    change = (recent_total - older_total) / older_total * 100
    if change > cfg.trend_change_pct:
        return "up"
    if change < -cfg.trend_change_pct:
        return "down"
    return "flat"


def top_products_for(client_sales: list[Sale], limit: int) -> list[ProductShare]:
    """Products ranked by revenue within one client's history."""
    shares: dict[str, ProductShare] = {}
    for sale in client_sales:
        for item in sale.items:
            key = item.product_id or item.product_name
            share = shares.get(key)
            if share is None:
                share = shares[key] = ProductShare(item.product_id, item.product_name, 0.0, 0.0)
            share.qty += item.qty
            share.revenue += item_subtotal(item)
    ranked = sorted(shares.values(), key=lambda p: (-p.revenue, -p.qty, p.product_name))
    return ranked[:limit]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute_customer_rfm(
    clients: list[Client],
    sales: list[Sale],
    today: date | None = None,
    config: AnalyticsSettings | None = None,
) -> list[CustomerRFM]:
    """Profile every client, best ``rfm_score`` first.

    Args:
        clients: All clients; each gets exactly one profile.
        sales: All sales.  Sales of unknown clients are ignored.
        today: Day recency is measured from.
        config: Settings override.
    """
    cfg = resolve(config)
    today = today or date.today()

    by_client: dict[str, list[Sale]] = {}
    for sale in sales:
        if is_voided(sale) or not sale.client_id:
            continue
        by_client.setdefault(sale.client_id, []).append(sale)

    profiles: list[CustomerRFM] = []
    for client in clients:
        history = by_client.get(client.id, [])
        if not history:
            recency = cfg.never_purchased_recency
            profiles.append(CustomerRFM(
                client_id=client.id,
                name=client.name,
                recency=recency,
                frequency=0,
                monetary=0.0,
                avg_ticket=0.0,
                last_purchase=None,
                rfm_score=rfm_score(recency, 0, 0.0),
                segment="Lost",
                trend="flat",
            ))
            continue

        last = max(s.date for s in history)
        recency = max(0, (today - last).days)
        frequency = len(history)
        monetary = sum(s.total for s in history)

        profiles.append(CustomerRFM(
            client_id=client.id,
            name=client.name,
            recency=recency,
            frequency=frequency,
            monetary=monetary,
            avg_ticket=monetary / frequency,
            last_purchase=last,
            rfm_score=rfm_score(recency, frequency, monetary),
            segment=classify_segment(recency, frequency, monetary, cfg.rfm),
            trend=classify_trend(history, today, cfg),
            top_products=top_products_for(history, cfg.customer_top_products),
        ))

    profiles.sort(key=lambda p: (-p.rfm_score, p.name))
    return profiles


def segment_summary(profiles: list[CustomerRFM]) -> dict[str, SegmentStats]:
    """Count and spend per segment; every segment is present, even if empty."""
    stats = {seg: SegmentStats() for seg in SEGMENTS}
    for p in profiles:
        entry = stats[p.segment]
        entry.count += 1
        entry.value += p.monetary
    return stats


def format_rfm_report(profiles: list[CustomerRFM]) -> str:
    """Plain-text table of client profiles followed by segment totals."""
    if not profiles:
        return "No clients to analyse."

    lines = ["Customer RFM Report", "=" * 72]
    lines.append(f"{'Client':<22}{'R':>5}{'F':>4}{'M':>12}{'Score':>9}  {'Segment':<10}{'Trend':>6}")
    lines.append("-" * 72)
    for p in profiles:
        recency = "-" if p.last_purchase is None else str(p.recency)
        lines.append(
            f"{p.name[:21]:<22}{recency:>5}{p.frequency:>4}{p.monetary:>12,.2f}"
            f"{p.rfm_score:>9.1f}  {p.segment:<10}{p.trend:>6}"
        )
    lines.append("")
    for seg, s in segment_summary(profiles).items():
        lines.append(f"  {seg:<10} {s.count:>4} clients  {s.value:>12,.2f}")
    return "\n".join(lines)
