"""Period resolution and date-range filtering.

Every report aggregates over an inclusive range of calendar days.  Ranges
are plain ``date`` pairs: ``start`` is the first day of the period and
``end`` the last, both included.  Records are compared by calendar day
only, so time-of-day and timezone offsets can never push a record out of
its period.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, TypeVar

from mype_analytics.records import record_date
from mype_analytics.settings import AnalyticsSettings, resolve

logger = logging.getLogger(__name__)

T = TypeVar("T")

PERIOD_KINDS = ("day", "week", "month", "quarter", "year")


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days."""

    start: date
    end: date

    @property
    def days(self) -> int:
        """Number of calendar days covered, both ends included."""
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def iter_days(self):
        for offset in range(self.days):
            yield self.start + timedelta(days=offset)


def _last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def resolve_period(
    kind: str | None = None,
    reference: date | None = None,
    config: AnalyticsSettings | None = None,
) -> DateRange:
    """Return the calendar period of *kind* that contains *reference*.

    Weeks run Monday to Sunday and quarters are calendar-aligned
    (Jan-Mar, Apr-Jun, ...).  An unknown *kind* falls back to the
    configured default period.
    """
    cfg = resolve(config)
    ref = reference or date.today()
    kind = (kind or cfg.default_period).lower()
    if kind not in PERIOD_KINDS:
        logger.warning("Unknown period kind %r, using %r", kind, cfg.default_period)
        kind = cfg.default_period if cfg.default_period in PERIOD_KINDS else "month"

    if kind == "day":
        return DateRange(ref, ref)
    if kind == "week":
        start = ref - timedelta(days=ref.weekday())
        return DateRange(start, start + timedelta(days=6))
    if kind == "quarter":
        first_month = (ref.month - 1) // 3 * 3 + 1
        last_month = first_month + 2
        return DateRange(
            date(ref.year, first_month, 1),
            date(ref.year, last_month, _last_day_of_month(ref.year, last_month)),
        )
    if kind == "year":
        return DateRange(date(ref.year, 1, 1), date(ref.year, 12, 31))
    return DateRange(
        date(ref.year, ref.month, 1),
        date(ref.year, ref.month, _last_day_of_month(ref.year, ref.month)),
    )


def month_start(reference: date, offset: int = 0) -> date:
    """First day of the month *offset* months away from *reference*."""
    index = reference.year * 12 + (reference.month - 1) + offset
    return date(index // 12, index % 12 + 1, 1)


def previous_range(date_range: DateRange) -> DateRange:
    """The window of equal length that ends the day before *date_range*."""
    end = date_range.start - timedelta(days=1)
    return DateRange(end - timedelta(days=date_range.days - 1), end)


def trailing_range(today: date, days: int) -> DateRange:
    """The *days* calendar days ending on *today*, inclusive."""
    return DateRange(today - timedelta(days=days - 1), today)


def filter_by_range(records: Iterable[T], date_range: DateRange) -> list[T]:
    """Keep records whose calendar day falls inside *date_range*.

    Order is preserved.  Records without a readable date are dropped.
    """
    result: list[T] = []
    for record in records:
        day = record_date(record)
        if day is None:
            logger.debug("Skipping record without a readable date: %r", record)
            continue
        if date_range.contains(day):
            result.append(record)
    return result
