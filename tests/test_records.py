"""Tests for input records and their fallback accessors."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from mype_analytics.records import (
    Product,
    Purchase,
    PurchaseStatus,
    Sale,
    SaleItem,
    SaleStatus,
    cost_of_sale,
    counterparty_id,
    effective_due_date,
    effective_igv,
    effective_subtotal,
    effective_total,
    is_voided,
    item_cost,
    item_subtotal,
    parse_day,
    record_date,
    satisfies_tax_identity,
)


# ---------------------------------------------------------------------------
# parse_day
# ---------------------------------------------------------------------------


class TestParseDay:
    def test_iso_date(self):
        assert parse_day("2025-01-10") == date(2025, 1, 10)

    def test_slash_formats(self):
        assert parse_day("2025/01/10") == date(2025, 1, 10)
        assert parse_day("10/01/2025") == date(2025, 1, 10)

    def test_datetime_is_truncated(self):
        assert parse_day(datetime(2025, 1, 10, 23, 59)) == date(2025, 1, 10)

    def test_offset_does_not_shift_day(self):
        assert parse_day("2025-01-10T23:30:00-05:00") == date(2025, 1, 10)

    def test_utc_suffix(self):
        assert parse_day("2025-01-10T02:00:00Z") == date(2025, 1, 10)

    def test_date_passthrough(self):
        assert parse_day(date(2025, 3, 1)) == date(2025, 3, 1)

    def test_unreadable(self):
        assert parse_day("not a date") is None
        assert parse_day("") is None
        assert parse_day(None) is None
        assert parse_day(42) is None


# ---------------------------------------------------------------------------
# Model validation
# ---------------------------------------------------------------------------


class TestSaleModel:
    def test_camel_case_document(self):
        sale = Sale.model_validate({
            "id": "s1",
            "date": "2025-01-05",
            "dueDate": "2025-02-01",
            "clientId": "c1",
            "clientName": "Bodega Rosa",
            "status": "Paid",
            "items": [{"productId": "p1", "productName": "Rice 5kg", "qty": 2, "price": 10, "cost": 4}],
            "subtotal": 20,
            "igv": 3.6,
            "total": 23.6,
        })
        assert sale.date == date(2025, 1, 5)
        assert sale.due_date == date(2025, 2, 1)
        assert sale.client_id == "c1"
        assert sale.status == SaleStatus.PAID
        assert sale.items[0].product_name == "Rice 5kg"

    def test_legacy_status_labels(self):
        assert Sale(date="2025-01-05", status="Pagado").status == SaleStatus.PAID
        assert Sale(date="2025-01-05", status="pendiente").status == SaleStatus.PENDING
        assert Sale(date="2025-01-05", status="Anulado").status == SaleStatus.VOIDED
        assert Purchase(date="2025-01-05", status="Pagado").status == PurchaseStatus.PAID

    def test_default_status_is_pending(self):
        assert Sale(date="2025-01-05").status == SaleStatus.PENDING

    def test_blank_due_date_is_missing(self):
        assert Sale(date="2025-01-05", dueDate="").due_date is None

    def test_unreadable_date_rejected(self):
        with pytest.raises(ValidationError):
            Sale.model_validate({"date": "yesterday", "total": 10})

    def test_missing_date_rejected(self):
        with pytest.raises(ValidationError):
            Sale.model_validate({"total": 10})

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            Sale(date="2025-01-05", status="Refunded")

    def test_frozen(self):
        sale = Sale(date="2025-01-05", total=10)
        with pytest.raises(ValidationError):
            sale.total = 20

    def test_purchase_payment_date_alias(self):
        purchase = Purchase.model_validate({"date": "2025-01-05", "paymentDate": "2025-01-20"})
        assert purchase.due_date == date(2025, 1, 20)


class TestProductModel:
    def test_missing_numbers_are_zero(self):
        p = Product.model_validate({"id": "p1", "name": "Oil", "stock": None, "cost": None})
        assert p.stock == 0.0
        assert p.cost == 0.0

    def test_is_active(self):
        assert Product(id="p1").is_active
        assert not Product(id="p1", status="inactive").is_active


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


class TestEffectiveDueDate:
    def test_uses_due_date(self):
        sale = Sale(date="2025-01-05", dueDate="2025-02-05")
        assert effective_due_date(sale) == date(2025, 2, 5)

    def test_falls_back_to_issue_date(self):
        sale = Sale(date="2025-01-05")
        assert effective_due_date(sale) == date(2025, 1, 5)


class TestEffectiveAmounts:
    def test_stored_subtotal(self):
        sale = Sale(date="2025-01-05", subtotal=100, igv=18, total=118)
        assert effective_subtotal(sale) == 100
        assert effective_igv(sale) == 18
        assert effective_total(sale) == 118

    def test_sale_without_subtotal(self):
        sale = Sale(date="2025-01-05", total=118)
        assert effective_subtotal(sale) == pytest.approx(100.0)
        assert effective_igv(sale) == pytest.approx(18.0)

    def test_sale_with_igv_only(self):
        sale = Sale(date="2025-01-05", igv=18, total=118)
        assert effective_subtotal(sale) == pytest.approx(100.0)

    def test_legacy_purchase_without_igv(self):
        purchase = Purchase(date="2025-01-05", total=100)
        assert effective_subtotal(purchase) == pytest.approx(100.0)
        assert effective_igv(purchase) == pytest.approx(18.0)
        assert effective_total(purchase) == pytest.approx(118.0)

    def test_taxed_purchase(self):
        purchase = Purchase(date="2025-01-05", subtotal=100, igv=18, total=118)
        assert effective_total(purchase) == 118


class TestItemAccessors:
    def test_missing_cost_is_zero(self):
        assert item_cost(SaleItem(product_name="Legacy", qty=3)) == 0.0

    def test_item_subtotal_from_price(self):
        assert item_subtotal(SaleItem(qty=3, price=2.5)) == pytest.approx(7.5)

    def test_item_subtotal_stored(self):
        assert item_subtotal(SaleItem(qty=3, price=2.5, subtotal=7)) == 7

    def test_cost_of_sale_uses_snapshot(self):
        sale = Sale(date="2025-01-05", items=[
            SaleItem(qty=2, cost=4),
            SaleItem(qty=1, cost=None),
        ])
        assert cost_of_sale(sale) == pytest.approx(8.0)


class TestTaxIdentity:
    def test_well_formed_sales(self):
        for subtotal in (0.01, 1, 15.25, 100, 999.99, 12345.67):
            igv = round(subtotal * 0.18, 2)
            sale = Sale(date="2025-01-05", subtotal=subtotal, igv=igv, total=round(subtotal + igv, 2))
            assert satisfies_tax_identity(sale)

    def test_broken_total(self):
        sale = Sale(date="2025-01-05", subtotal=100, igv=18, total=120)
        assert not satisfies_tax_identity(sale)


class TestMiscAccessors:
    def test_is_voided(self):
        assert is_voided(Sale(date="2025-01-05", status="Voided"))
        assert not is_voided(Sale(date="2025-01-05", status="Paid"))

    def test_counterparty_blank_is_missing(self):
        assert counterparty_id(Sale(date="2025-01-05", clientId="  ")) is None
        assert counterparty_id(Sale(date="2025-01-05", clientId="c1")) == "c1"
        assert counterparty_id(Purchase(date="2025-01-05", supplierId="s1")) == "s1"

    def test_record_date_of_dict(self):
        assert record_date({"date": "2025-01-05T10:00:00"}) == date(2025, 1, 5)
        assert record_date({"total": 5}) is None
