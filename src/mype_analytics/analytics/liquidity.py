"""Liquidity KPIs: receivables, payables, DSO, DPO and the cash conversion cycle."""

from __future__ import annotations

from dataclasses import dataclass

from mype_analytics.records import (
    Purchase,
    PurchaseStatus,
    Sale,
    SaleStatus,
    effective_total,
    is_voided,
)
from mype_analytics.settings import AnalyticsSettings, resolve


@dataclass
class LiquidityKPIs:
    """Working-capital position.

    ``cash_conversion_cycle`` is ``dso + dio - dpo`` when a days-of-inventory
    figure was supplied, otherwise the simplified ``dso - dpo``;
    ``ccc_includes_inventory`` tells which one was computed.
    """

    accounts_receivable: float
    accounts_payable: float
    dso: float
    dpo: float
    working_capital: float
    cash_conversion_cycle: float
    ccc_includes_inventory: bool
    period_days: int


def _days_outstanding(balance: float, period_total: float, period_days: int) -> float:
    daily = period_total / period_days if period_days > 0 else 0.0
    if daily <= 0:
        return 0.0
    return balance / daily


def compute_liquidity_kpis(
    sales: list[Sale],
    purchases: list[Purchase],
    period_days: int | None = None,
    days_of_inventory: float | None = None,
    config: AnalyticsSettings | None = None,
) -> LiquidityKPIs:
    """Compute DSO, DPO and working capital.

    Args:
        sales: Sales over the measurement window.  Pending ones form the
            receivable balance; all non-voided ones the revenue base.
        purchases: Purchases over the same window.
        period_days: Length of the window; defaults to
            ``liquidity_period_days``.
        days_of_inventory: Optional DIO term for the cash conversion cycle.
        config: Settings override.

    Returns:
        LiquidityKPIs with days rounded to one decimal.  DSO and DPO are 0
        when the window had no revenue or purchases.
    """
    cfg = resolve(config)
    days = period_days if period_days is not None else cfg.liquidity_period_days

    receivable = sum(s.total for s in sales if s.status == SaleStatus.PENDING)
    payable = sum(
        effective_total(p, cfg) for p in purchases if p.status == PurchaseStatus.PENDING
    )
    revenue = sum(s.total for s in sales if not is_voided(s))
    purchased = sum(effective_total(p, cfg) for p in purchases)

    dso = _days_outstanding(receivable, revenue, days)
    dpo = _days_outstanding(payable, purchased, days)
    ccc = dso - dpo
    if days_of_inventory is not None:
        ccc += days_of_inventory

    return LiquidityKPIs(
        accounts_receivable=receivable,
        accounts_payable=payable,
        dso=round(dso, 1),
        dpo=round(dpo, 1),
        working_capital=receivable - payable,
        cash_conversion_cycle=round(ccc, 1),
        ccc_includes_inventory=days_of_inventory is not None,
        period_days=days,
    )
