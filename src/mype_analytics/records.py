"""Input records and the fallback accessors every report reads them through.

Records arrive already materialized by the sync layer as plain documents
(camelCase keys).  They are validated into frozen pydantic models here and
never mutated afterwards.  Fields that older documents may lack are
optional, and each default-resolution rule lives in exactly one accessor
below (``effective_due_date``, ``effective_subtotal``, ...).
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from mype_analytics.settings import AnalyticsSettings, resolve


# ---------------------------------------------------------------------------
# Calendar-day parsing
# ---------------------------------------------------------------------------

_DAY_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y", "%Y-%m-%d %H:%M:%S")


def parse_day(value) -> dt.date | None:
    """Coerce a value to a calendar day, or ``None`` when it is not one.

    Timestamps keep the calendar day written in them: the time-of-day and
    any UTC offset are dropped rather than converted, so a record stamped
    ``2025-01-10T23:30:00-05:00`` still belongs to January 10th.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not s:
        return None
    for fmt in _DAY_FORMATS:
        try:
            return dt.datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    try:
        return dt.datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _day_or_raise(value):
    if value is None or isinstance(value, dt.date):
        return parse_day(value)
    day = parse_day(value)
    if day is None:
        raise ValueError(f"not a calendar day: {value!r}")
    return day


# ---------------------------------------------------------------------------
# Statuses
# ---------------------------------------------------------------------------

_LEGACY_STATUS = {
    "pagado": "Paid",
    "pendiente": "Pending",
    "anulado": "Voided",
}


def _normalize_status(value):
    if isinstance(value, str):
        return _LEGACY_STATUS.get(value.strip().lower(), value.strip())
    return value


class SaleStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"
    VOIDED = "Voided"


class PurchaseStatus(str, Enum):
    PAID = "Paid"
    PENDING = "Pending"


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class _Record(BaseModel):
    model_config = {"populate_by_name": True, "frozen": True, "extra": "ignore"}


class _Dated(_Record):
    id: str | None = None
    date: dt.date

    @field_validator("date", mode="before")
    @classmethod
    def calendar_day(cls, value):
        return _day_or_raise(value)


class SaleItem(_Record):
    product_id: str | None = Field(None, alias="productId")
    product_name: str = Field(
        "", validation_alias=AliasChoices("productName", "product_name", "name"),
    )
    qty: float = Field(0.0, ge=0)
    price: float | None = Field(None, ge=0)  # unit, tax-exclusive
    cost: float | None = None  # unit cost snapshot at sale time; absent on legacy items
    subtotal: float | None = None


class Sale(_Dated):
    due_date: dt.date | None = Field(
        None, validation_alias=AliasChoices("dueDate", "due_date"),
    )
    client_id: str | None = Field(None, alias="clientId")
    client_name: str | None = Field(None, alias="clientName")
    status: SaleStatus = SaleStatus.PENDING
    items: list[SaleItem] = []
    subtotal: float | None = None
    igv: float | None = None
    total: float = 0.0

    @field_validator("due_date", mode="before")
    @classmethod
    def due_day(cls, value):
        return _day_or_raise(value or None)

    @field_validator("status", mode="before")
    @classmethod
    def legacy_status(cls, value):
        return _normalize_status(value)


class PurchaseItem(_Record):
    product_id: str | None = Field(None, alias="productId")
    product_name: str = Field(
        "", validation_alias=AliasChoices("productName", "product_name", "name"),
    )
    qty: float = Field(0.0, ge=0)
    cost: float | None = None


class Purchase(_Dated):
    due_date: dt.date | None = Field(
        None, validation_alias=AliasChoices("dueDate", "paymentDate", "due_date"),
    )
    supplier_id: str | None = Field(None, alias="supplierId")
    supplier_name: str | None = Field(None, alias="supplierName")
    status: PurchaseStatus = PurchaseStatus.PENDING
    items: list[PurchaseItem] = []
    subtotal: float | None = None
    igv: float | None = None  # absent on purchases recorded before tax tracking
    total: float = 0.0

    @field_validator("due_date", mode="before")
    @classmethod
    def due_day(cls, value):
        return _day_or_raise(value or None)

    @field_validator("status", mode="before")
    @classmethod
    def legacy_status(cls, value):
        return _normalize_status(value)


class Expense(_Dated):
    amount: float = Field(0.0, ge=0)
    category: str = "General"
    description: str = ""


class Product(_Record):
    id: str
    name: str = ""
    category: str = "General"
    stock: float = 0.0  # may go negative on oversell
    cost: float = 0.0  # weighted-average unit cost
    price: float = 0.0
    status: ProductStatus = ProductStatus.ACTIVE

    @field_validator("stock", "cost", "price", mode="before")
    @classmethod
    def missing_is_zero(cls, value):
        return 0.0 if value is None else value

    @property
    def is_active(self) -> bool:
        return self.status != ProductStatus.INACTIVE


class Client(_Record):
    id: str
    name: str = ""
    phone: str | None = None
    email: str | None = None
    address: str | None = None


class Supplier(_Record):
    id: str
    name: str = ""
    phone: str | None = None
    email: str | None = None
    address: str | None = None


# ---------------------------------------------------------------------------
# Fallback accessors
# ---------------------------------------------------------------------------


def record_date(record: Any) -> dt.date | None:
    """Calendar day of a model or a raw document (``"date"`` key)."""
    if isinstance(record, dict):
        return parse_day(record.get("date"))
    return parse_day(getattr(record, "date", None))


def effective_due_date(record: Sale | Purchase) -> dt.date:
    """Due date, or the issue date when none was recorded."""
    return record.due_date or record.date


def _is_untaxed_legacy(record: Sale | Purchase) -> bool:
    # Purchases saved before tax tracking stored a tax-exclusive total.
    return isinstance(record, Purchase) and record.igv is None


def effective_subtotal(record: Sale | Purchase, config: AnalyticsSettings | None = None) -> float:
    """Tax-exclusive amount of a sale or purchase."""
    if record.subtotal is not None:
        return record.subtotal
    if _is_untaxed_legacy(record):
        return record.total
    if record.igv is not None:
        return record.total - record.igv
    return record.total / (1 + resolve(config).igv_rate)


def effective_igv(record: Sale | Purchase, config: AnalyticsSettings | None = None) -> float:
    """Tax amount, derived from the subtotal when it was not stored."""
    if record.igv is not None:
        return record.igv
    subtotal = effective_subtotal(record, config)
    if _is_untaxed_legacy(record):
        return subtotal * resolve(config).igv_rate
    return record.total - subtotal


def effective_total(record: Sale | Purchase, config: AnalyticsSettings | None = None) -> float:
    """Tax-inclusive amount actually owed or collected."""
    if _is_untaxed_legacy(record):
        return effective_subtotal(record, config) + effective_igv(record, config)
    return record.total


def item_cost(item: SaleItem | PurchaseItem) -> float:
    """Unit cost of a line item; legacy items without a cost count as 0."""
    return item.cost if item.cost is not None else 0.0


def item_subtotal(item: SaleItem) -> float:
    """Line revenue, tax-exclusive."""
    if item.subtotal is not None:
        return item.subtotal
    return item.qty * (item.price or 0.0)


def cost_of_sale(sale: Sale) -> float:
    """Cost of goods sold for one sale, from the cost snapshot on its items."""
    return sum(item_cost(item) * item.qty for item in sale.items)


def is_voided(sale: Sale) -> bool:
    return sale.status == SaleStatus.VOIDED


def satisfies_tax_identity(record: Sale | Purchase, config: AnalyticsSettings | None = None) -> bool:
    """True when ``total`` equals ``subtotal * (1 + IGV)`` within tolerance."""
    cfg = resolve(config)
    expected = effective_subtotal(record, cfg) * (1 + cfg.igv_rate)
    return abs(effective_total(record, cfg) - expected) < cfg.tax_tolerance


def counterparty_id(record: Sale | Purchase) -> str | None:
    """Client id of a sale or supplier id of a purchase; blank ids count as missing."""
    value = record.client_id if isinstance(record, Sale) else record.supplier_id
    if value is None or not str(value).strip():
        return None
    return str(value)
