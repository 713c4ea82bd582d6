"""Inventory KPIs, weighted-average costing and replenishment suggestions.

Valuation and turnover use each product's current weighted-average cost,
since per-unit historical cost is not tracked at the stock level.
Inactive products are excluded from every figure.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date

from mype_analytics.analytics.periods import filter_by_range, trailing_range
from mype_analytics.records import Product, Sale, is_voided, item_cost
from mype_analytics.settings import AnalyticsSettings, resolve

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class InventoryKPIs:
    """Stock position and how fast it turns over.

    ``days_of_inventory`` is ``None`` when nothing sold in the window:
    coverage is unbounded, not a number.  ``inventory_value`` counts
    oversold (negative) stock as zero units.
    """

    inventory_value: float
    cost_of_goods_sold: float
    inventory_turnover: float
    days_of_inventory: float | None
    total_skus: int
    low_stock_count: int
    out_of_stock_count: int
    stagnant_count: int
    window_days: int


@dataclass
class ReplenishmentLine:
    """Reorder suggestion for a single product."""

    product_id: str
    name: str
    stock: float
    cost: float
    sold_in_window: float
    daily_rate: float
    rotation: str  # "fast", "normal", "slow", "no_movement"
    target_stock: int
    suggested_qty: float
    investment_needed: float


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sold_quantities(sales: list[Sale]) -> dict[str, float]:
    sold: dict[str, float] = {}
    for sale in sales:
        if is_voided(sale):
            continue
        for item in sale.items:
            if item.product_id is None:
                continue
            sold[item.product_id] = sold.get(item.product_id, 0.0) + item.qty
    return sold


def _classify_rotation(sold: float, daily_rate: float, cfg: AnalyticsSettings) -> str:
    if sold <= 0:
        return "no_movement"
    if daily_rate > cfg.fast_rotation_daily_rate:
        return "fast"
    if daily_rate < cfg.slow_rotation_daily_rate:
        return "slow"
    return "normal"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def weighted_average_cost(
    current_stock: float,
    current_cost: float,
    qty: float,
    unit_cost: float,
) -> float:
    """Blend a purchase receipt into the on-hand unit cost.

    Oversold (negative) stock carries no value, so it does not weigh on
    the blend: the received units alone set the new cost.
    """
    on_hand = max(current_stock, 0.0)
    units = on_hand + qty
    if units <= 0:
        return current_cost
    return (on_hand * current_cost + qty * unit_cost) / units


def restock(product: Product, qty: float, unit_cost: float) -> Product:
    """Return *product* after receiving *qty* units at *unit_cost*."""
    return product.model_copy(update={
        "stock": product.stock + qty,
        "cost": weighted_average_cost(product.stock, product.cost, qty, unit_cost),
    })


def compute_inventory_kpis(
    products: list[Product],
    sales: list[Sale],
    window_days: int | None = None,
    config: AnalyticsSettings | None = None,
) -> InventoryKPIs:
    """Compute valuation, turnover and stock alerts.

    Args:
        products: Product catalog; inactive products are ignored.
        sales: Sales over the trailing window, already filtered.
        window_days: Length of that window; defaults to
            ``velocity_window_days``.
        config: Settings override.

    Returns:
        InventoryKPIs.  Turnover is COGS over the current inventory value
        (used as the average, as no stock history is kept) and is 0 when
        there is no stock value.
    """
    cfg = resolve(config)
    days = window_days if window_days is not None else cfg.velocity_window_days
    active = [p for p in products if p.is_active]
    by_id = {p.id: p for p in products}

    inventory_value = sum(max(p.stock, 0.0) * p.cost for p in active)

    cogs = 0.0
    for sale in sales:
        if is_voided(sale):
            continue
        for item in sale.items:
            product = by_id.get(item.product_id) if item.product_id else None
            if product is None:
                logger.debug("Item %r has no catalog product, using its own cost", item.product_name)
                cogs += item.qty * item_cost(item)
            else:
                cogs += item.qty * product.cost

    turnover = cogs / inventory_value if inventory_value > 0 else 0.0
    days_of_inventory = round(days / turnover, 1) if turnover > 0 else None

    sold = _sold_quantities(sales)

    return InventoryKPIs(
        inventory_value=inventory_value,
        cost_of_goods_sold=cogs,
        inventory_turnover=round(turnover, 2),
        days_of_inventory=days_of_inventory,
        total_skus=len(active),
        low_stock_count=sum(1 for p in active if 0 < p.stock < cfg.low_stock_threshold),
        out_of_stock_count=sum(1 for p in active if p.stock <= 0),
        stagnant_count=sum(1 for p in active if p.stock > 0 and sold.get(p.id, 0.0) <= 0),
        window_days=days,
    )


def replenishment_plan(
    products: list[Product],
    sales: list[Sale],
    today: date | None = None,
    config: AnalyticsSettings | None = None,
) -> list[ReplenishmentLine]:
    """Suggest reorder quantities from recent sales velocity.

    Velocity is measured over the trailing ``velocity_window_days``; the
    target stock covers ``target_coverage_days`` at that rate.  Lines are
    sorted by suggested quantity, largest first.
    """
    cfg = resolve(config)
    window = trailing_range(today or date.today(), cfg.velocity_window_days)
    sold = _sold_quantities(filter_by_range(sales, window))

    lines: list[ReplenishmentLine] = []
    for p in products:
        if not p.is_active:
            continue
        qty = sold.get(p.id, 0.0)
        rate = qty / window.days
        target = math.ceil(round(qty * cfg.target_coverage_days / window.days, 9))
        suggested = max(0.0, target - p.stock)
        lines.append(ReplenishmentLine(
            product_id=p.id,
            name=p.name,
            stock=p.stock,
            cost=p.cost,
            sold_in_window=qty,
            daily_rate=round(rate, 3),
            rotation=_classify_rotation(qty, rate, cfg),
            target_stock=target,
            suggested_qty=suggested,
            investment_needed=round(suggested * p.cost, 2),
        ))

    lines.sort(key=lambda line: (-line.suggested_qty, line.name))
    return lines
