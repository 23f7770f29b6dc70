"""Tests for product cost calculation."""

import pytest
from decimal import Decimal

from quote_engine.engine.products import compute_disposables, compute_products, compute_subcontracts
from quote_engine.models import (
    UNATTENDED,
    DisposableItemInput,
    EmployeeInput,
    FlatPricing,
    LineCategory,
    PricingBasis,
    ProductInput,
    RateTable,
    RateTier,
    SubcontractInput,
    TieredPricing,
    ValidationError,
)


def _make_product(**kwargs) -> ProductInput:
    defaults = dict(
        product_id="p1",
        unit_count=Decimal("10"),
        pricing=FlatPricing(Decimal("15000")),
        name="Frappe",
    )
    defaults.update(kwargs)
    return ProductInput(**defaults)


def _employee_for(*product_ids: str) -> EmployeeInput:
    return EmployeeInput(
        employee_id="e1",
        employee_type="mesero",
        hours=Decimal("4"),
        pricing=FlatPricing(Decimal("20000")),
        selected_product_ids=frozenset(product_ids),
    )


class TestComputeProducts:
    def test_flat_per_unit(self):
        items = compute_products([_make_product()], [_employee_for("p1")])
        assert len(items) == 1
        item = items[0]
        assert item.category == LineCategory.PRODUCT
        assert item.amount == Decimal("150000")
        assert item.flags == ()

    def test_unattended_product_still_priced(self):
        items = compute_products([_make_product()], [_employee_for("other")])
        assert items[0].amount == Decimal("150000")
        assert UNATTENDED in items[0].flags

    def test_no_employees_at_all(self):
        items = compute_products([_make_product()], [])
        assert UNATTENDED in items[0].flags

    def test_tiered_by_quantity(self):
        pricing = TieredPricing(RateTable((
            RateTier(Decimal("1"), Decimal("50"), Decimal("3000")),
            RateTier(Decimal("50"), None, Decimal("2500")),
        )))
        items = compute_products([_make_product(pricing=pricing, unit_count=Decimal("100"))], [])
        assert items[0].unit_rate == Decimal("2500")
        assert items[0].amount == Decimal("250000")

    def test_measurement_per_unit(self):
        # 100 frappes x 7 oz x 200 per oz
        items = compute_products([_make_product(
            unit_count=Decimal("100"),
            measurement_per_unit=Decimal("7"),
            pricing=FlatPricing(Decimal("200")),
        )], [])
        assert items[0].quantity == Decimal("700")
        assert items[0].amount == Decimal("140000")

    def test_tiered_by_duration(self):
        pricing = TieredPricing(RateTable((
            RateTier(Decimal("0"), Decimal("2"), Decimal("100000")),
            RateTier(Decimal("2"), None, Decimal("80000")),
        )))
        items = compute_products([_make_product(
            product_id="station",
            unit_count=Decimal("2"),
            pricing=pricing,
            basis=PricingBasis.DURATION,
            event_hours=Decimal("3"),
        )], [])
        # Tier keyed on 3 event hours, billed 2 stations x 3 hours
        assert items[0].unit_rate == Decimal("80000")
        assert items[0].quantity == Decimal("6")
        assert items[0].amount == Decimal("480000")

    def test_duration_without_event_hours_fails(self):
        with pytest.raises(ValidationError, match="event hours"):
            compute_products([_make_product(basis=PricingBasis.DURATION)], [])

    def test_zero_units_fail(self):
        with pytest.raises(ValidationError, match="unit count"):
            compute_products([_make_product(unit_count=Decimal("0"))], [])

    def test_attendance_across_employees(self):
        products = [_make_product(product_id="p1"), _make_product(product_id="p2")]
        employees = [_employee_for("p1"), _employee_for("p2")]
        items = compute_products(products, employees)
        assert all(UNATTENDED not in i.flags for i in items)


class TestComputeDisposables:
    def test_unit_price_times_quantity(self):
        items = compute_disposables([DisposableItemInput("d1", Decimal("100"), Decimal("250"), name="Vasos")])
        assert items[0].category == LineCategory.PRODUCT
        assert items[0].amount == Decimal("25000")
        assert items[0].description == "Vasos"

    def test_minimum_quantity_applies(self):
        item = DisposableItemInput("d1", Decimal("20"), Decimal("250"), minimum_quantity=Decimal("50"))
        line = compute_disposables([item])[0]
        assert line.quantity == Decimal("50")
        assert line.amount == Decimal("12500")
        assert "minimum 50" in line.description

    def test_custom_total_overrides(self):
        item = DisposableItemInput("d1", Decimal("40"), Decimal("250"), custom_total=Decimal("9000"))
        line = compute_disposables([item])[0]
        assert line.amount == Decimal("9000")
        assert line.unit_rate == Decimal("225")

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError, match="unit price"):
            compute_disposables([DisposableItemInput("d1", Decimal("1"), Decimal("-5"))])


class TestComputeSubcontracts:
    def test_fixed_price_line(self):
        items = compute_subcontracts([SubcontractInput("s1", Decimal("800000"), name="DJ")])
        assert items[0].category == LineCategory.PRODUCT
        assert items[0].amount == Decimal("800000")
        assert items[0].description == "DJ (subcontract)"

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError, match="price"):
            compute_subcontracts([SubcontractInput("s1", Decimal("-1"))])
