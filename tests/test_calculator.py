"""Tests for the compute_quote pipeline and total reconciliation."""

import logging

import pytest
from decimal import Decimal

from quote_engine.engine.calculator import compute_quote, reconcile_total
from quote_engine.models import (
    CommercialTerms,
    DisposableItemInput,
    EmployeeInput,
    EngineVersion,
    FlatPricing,
    MachineryInput,
    MachineryRentalInput,
    ProductInput,
    QuoteInput,
    QuoteValidationError,
    RateCoverageError,
    RateTable,
    RateTier,
    SubcontractInput,
    TieredPricing,
    TransportZoneInput,
)


def _chef() -> EmployeeInput:
    return EmployeeInput(
        employee_id="e1",
        employee_type="chef",
        hours=Decimal("5"),
        pricing=TieredPricing(RateTable((
            RateTier(Decimal("0"), Decimal("1"), Decimal("80000")),
            RateTier(Decimal("1"), Decimal("4"), Decimal("70000")),
            RateTier(Decimal("4"), None, Decimal("65000")),
        ))),
        selected_product_ids=frozenset({"p1"}),
        name="Chef",
    )


def _frappe(product_id: str = "p1") -> ProductInput:
    return ProductInput(
        product_id=product_id,
        unit_count=Decimal("10"),
        pricing=FlatPricing(Decimal("15000")),
        name="Frappe",
    )


def _make_quote(**kwargs) -> QuoteInput:
    defaults = dict(
        employees=(_chef(),),
        products=(_frappe(),),
        terms=CommercialTerms(Decimal("20"), Decimal("4")),
    )
    defaults.update(kwargs)
    return QuoteInput(**defaults)


class TestComputeQuote:
    def test_end_to_end(self):
        result = compute_quote(_make_quote())
        assert result.labor_subtotal == 325000
        assert result.products_subtotal == 150000
        assert result.machinery_subtotal == 0
        assert result.base_subtotal == 475000
        assert result.margin_amount == 95000
        assert result.retention_amount == 22800
        assert result.total == 547200
        assert result.warnings == ()

    def test_with_machinery(self):
        machine = MachineryInput(
            machinery_id="m1",
            hours=Decimal("8"),
            hourly_rate=Decimal("15000"),
            daily_rate=Decimal("100000"),
            requires_operator=True,
            operator_hourly_rate=Decimal("10000"),
        )
        result = compute_quote(_make_quote(machinery=(machine,)))
        assert result.machinery_subtotal == 180000
        assert len(result.line_items) == 4

    def test_preview_and_save_agree(self):
        quote = _make_quote()
        assert compute_quote(quote) == compute_quote(quote)

    def test_validation_runs_before_calculators(self, monkeypatch):
        def _boom(*args, **kwargs):
            raise AssertionError("calculator must not run")

        monkeypatch.setattr("quote_engine.engine.calculator.compute_labor", _boom)
        bad = _make_quote(products=(ProductInput("p1", Decimal("0"), FlatPricing(Decimal("1"))),))
        with pytest.raises(QuoteValidationError, match="unit count"):
            compute_quote(bad)

    def test_coverage_rejection(self):
        employee = EmployeeInput(
            employee_id="e2",
            employee_type="mesero",
            hours=Decimal("0.5"),
            pricing=TieredPricing(RateTable((RateTier(Decimal("1"), None, Decimal("30000")),))),
        )
        with pytest.raises(QuoteValidationError) as exc:
            compute_quote(_make_quote(employees=(employee,)))
        assert any(isinstance(e, RateCoverageError) for e in exc.value.errors)

    def test_unattended_product_warns(self, caplog):
        quote = _make_quote(products=(_frappe("p1"), _frappe("p2")))
        with caplog.at_level(logging.WARNING, logger="quote_engine.engine.calculator"):
            result = compute_quote(quote)
        assert result.unattended_product_ids == ["p2"]
        assert result.total > 0
        assert "p2" in caplog.text

    def test_legacy_engine_version(self):
        result = compute_quote(_make_quote(), EngineVersion.V1)
        assert result.total == 551000
        assert result.engine_version == EngineVersion.V1

    def test_supplementary_costs_join_the_base(self):
        quote = _make_quote(
            disposables=(DisposableItemInput("d1", Decimal("100"), Decimal("250")),),
            subcontracts=(SubcontractInput("s1", Decimal("100000")),),
            transport_zones=(TransportZoneInput("z1", Decimal("60000"), product_ids=("p1",)),),
            rentals=(MachineryRentalInput(
                "r1", Decimal("4"), Decimal("30000"), Decimal("200000"),
                delivery_cost=Decimal("40000"), include_delivery=True,
            ),),
        )
        result = compute_quote(quote)
        assert result.products_subtotal == 335000
        assert result.machinery_subtotal == 160000
        assert result.base_subtotal == 820000
        assert result.margin_amount == 164000
        assert result.retention_amount == 39360
        assert result.total == 944640


class TestReconcileTotal:
    def test_replay_matches(self):
        result = compute_quote(_make_quote())
        r = reconcile_total(list(result.line_items), result.terms, result.total)
        assert r.matches
        assert r.expected_total == 547200

    def test_diverging_stored_total(self):
        result = compute_quote(_make_quote())
        r = reconcile_total(list(result.line_items), result.terms, 551000)
        assert not r.matches
        assert r.difference == 3800

    def test_legacy_total_replays_with_legacy_version(self):
        legacy = compute_quote(_make_quote(), EngineVersion.V1)
        r = reconcile_total(list(legacy.line_items), legacy.terms, legacy.total, EngineVersion.V1)
        assert r.matches

    def test_replay_uses_unrounded_intermediates(self):
        result = compute_quote(_make_quote(terms=CommercialTerms(Decimal("17.5"), Decimal("3.5"))))
        naive = (result.base_subtotal + result.margin_amount - result.retention_amount)
        r = reconcile_total(list(result.line_items), result.terms, result.total)
        assert r.matches
        # The replayed total always comes from unrounded intermediates
        assert r.expected_total == result.total
        assert abs(naive - result.total) <= 1
