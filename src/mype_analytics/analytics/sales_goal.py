"""Sales goal tracker -- progress and run-rate projection for the current period.

Pure function: the caller supplies the goal and "today"; nothing is stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from mype_analytics.analytics.income_statement import pct
from mype_analytics.analytics.periods import DateRange, filter_by_range, resolve_period
from mype_analytics.records import Sale, is_voided
from mype_analytics.settings import AnalyticsSettings, resolve


@dataclass
class SalesGoalProgress:
    """Where sales stand against a goal for one period."""

    period: DateRange
    goal_amount: float
    current_sales: float
    progress_pct: float  # can exceed 100
    days_elapsed: int
    days_remaining: int
    daily_average: float
    projected_total: float
    projected_progress_pct: float
    required_daily: float
    on_track: bool
    summary: str


def compute_sales_goal_progress(
    sales: list[Sale],
    goal_amount: float,
    period: str = "month",
    today: date | None = None,
    reference: date | None = None,
    config: AnalyticsSettings | None = None,
) -> SalesGoalProgress:
    """Measure sales of the current (or a past) period against *goal_amount*.

    Days elapsed are the whole days before today; days remaining run from
    today through the period end, so the two always add up to the period
    length.  The run rate comes from sales of the elapsed days and is
    extended over the remaining ones; on the first day of the period the
    projection equals current sales.

    Args:
        sales: All sales; voided ones are ignored.
        goal_amount: Target tax-inclusive sales for the period.
        period: Period kind ("day", "week", "month", "quarter", "year").
        today: Day progress is measured on.
        reference: Any day of the period to measure; defaults to *today*.
            A past period counts as fully elapsed.
        config: Settings override.

    Returns:
        SalesGoalProgress.  With a goal of 0 both progress percentages are 0.

    Raises:
        ValueError: If the goal is negative, or the period starts after
            *today* (future periods are not supported).
    """
    if goal_amount < 0:
        raise ValueError(f"goal_amount must not be negative, got {goal_amount}")

    cfg = resolve(config)
    today = today or date.today()
    window = resolve_period(period, reference or today, cfg)
    if window.start > today:
        raise ValueError(f"period starting {window.start} is in the future")

    in_period = [s for s in filter_by_range(sales, window) if not is_voided(s)]
    current = sum(s.total for s in in_period)
    prior = sum(s.total for s in in_period if s.date < today)

    total_days = window.days
    remaining = min(max((window.end - today).days + 1, 0), total_days)
    elapsed = total_days - remaining

    daily_average = prior / elapsed if elapsed > 0 else 0.0
    if elapsed == 0 or remaining == 0:
        projected = current
    else:
        # Today's slot is worth at least the run rate.
        projected = prior + max(current - prior, daily_average) + daily_average * (remaining - 1)
    required_daily = max(0.0, goal_amount - current) / max(1, remaining)
    on_track = projected >= goal_amount

    progress = pct(current, goal_amount)
    status = "on track" if on_track else "behind"
    summary = (
        f"{current:,.2f} of {goal_amount:,.2f} ({progress:.1f}%) with "
        f"{remaining} day(s) left; projected {projected:,.2f}, {status}."
    )

    return SalesGoalProgress(
        period=window,
        goal_amount=goal_amount,
        current_sales=current,
        progress_pct=round(progress, 1),
        days_elapsed=elapsed,
        days_remaining=remaining,
        daily_average=daily_average,
        projected_total=projected,
        projected_progress_pct=round(pct(projected, goal_amount), 1),
        required_daily=required_daily,
        on_track=on_track,
        summary=summary,
    )
