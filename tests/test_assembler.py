"""Tests for quote total assembly."""

import pytest
from decimal import Decimal

from quote_engine.engine.assembler import assemble, exact_breakdown, round_money
from quote_engine.models import (
    UNATTENDED,
    CommercialTerms,
    EngineVersion,
    LineCategory,
    LineItem,
    ValidationError,
)


def _line(category: LineCategory, amount: str, ref_id: str = "x", flags=()) -> LineItem:
    value = Decimal(amount)
    return LineItem(
        category=category,
        ref_id=ref_id,
        description=ref_id,
        quantity=Decimal("1"),
        unit_rate=value,
        amount=value,
        flags=flags,
    )


def _scenario_items() -> list[LineItem]:
    return [
        _line(LineCategory.LABOR, "325000", "chef"),
        _line(LineCategory.PRODUCT, "150000", "frappe"),
    ]


def _terms(margin: str, retention: str) -> CommercialTerms:
    return CommercialTerms(margin_percent=Decimal(margin), retention_percent=Decimal(retention))


class TestRoundMoney:
    def test_half_up(self):
        assert round_money(Decimal("2.5")) == 3
        assert round_money(Decimal("3.5")) == 4
        assert round_money(Decimal("2.49")) == 2

    def test_returns_int(self):
        assert isinstance(round_money(Decimal("10.0")), int)


class TestAssemble:
    def test_end_to_end_scenario(self):
        result = assemble(_scenario_items(), _terms("20", "4"))
        assert result.labor_subtotal == 325000
        assert result.products_subtotal == 150000
        assert result.machinery_subtotal == 0
        assert result.base_subtotal == 475000
        assert result.margin_amount == 95000
        assert result.retention_amount == 22800
        assert result.total == 547200

    def test_retention_on_margin_inclusive_base(self):
        current = assemble(_scenario_items(), _terms("20", "4"))
        legacy = assemble(_scenario_items(), _terms("20", "4"), EngineVersion.V1)
        # Legacy: retention = 475000 * 4% = 19000
        assert legacy.retention_amount == 19000
        assert legacy.total == 551000
        assert current.total != legacy.total
        assert current.engine_version == EngineVersion.V2
        assert legacy.engine_version == EngineVersion.V1

    def test_versions_agree_without_margin(self):
        current = assemble(_scenario_items(), _terms("0", "4"))
        legacy = assemble(_scenario_items(), _terms("0", "4"), EngineVersion.V1)
        assert current.total == legacy.total

    def test_idempotent(self):
        first = assemble(_scenario_items(), _terms("20", "4"))
        second = assemble(_scenario_items(), _terms("20", "4"))
        assert first == second

    def test_total_not_sum_of_rounded_parts(self):
        items = [
            _line(LineCategory.LABOR, "100.5"),
            _line(LineCategory.PRODUCT, "200.5"),
            _line(LineCategory.MACHINERY, "0.4"),
        ]
        result = assemble(items, _terms("0", "0"))
        assert result.labor_subtotal == 101
        assert result.products_subtotal == 201
        assert result.machinery_subtotal == 0
        # Exact base is 301.4
        assert result.base_subtotal == 301
        assert result.total == 301
        assert result.labor_subtotal + result.products_subtotal + result.machinery_subtotal == 302

    def test_invariant_equation(self):
        items = [
            _line(LineCategory.LABOR, "333333.33"),
            _line(LineCategory.LABOR, "12345.675"),
            _line(LineCategory.PRODUCT, "98765.4321"),
            _line(LineCategory.MACHINERY, "119850.00"),
        ]
        terms = _terms("17.5", "3.5")
        result = assemble(items, terms)
        exact = exact_breakdown(items, terms)
        assert result.total == round_money(
            exact.labor + exact.products + exact.machinery + exact.margin - exact.retention
        )
        assert result.retention_amount == round_money((exact.base + exact.margin) * Decimal("3.5") / 100)

    def test_empty_line_items(self):
        result = assemble([], _terms("20", "4"))
        assert result.total == 0
        assert result.line_items == ()

    def test_margin_out_of_range(self):
        with pytest.raises(ValidationError, match="margin"):
            assemble(_scenario_items(), _terms("100", "0"))

    def test_negative_retention(self):
        with pytest.raises(ValidationError, match="retention"):
            assemble(_scenario_items(), _terms("10", "-1"))

    def test_unattended_products_become_warnings(self):
        items = _scenario_items() + [_line(LineCategory.PRODUCT, "5000", "napkins", (UNATTENDED,))]
        result = assemble(items, _terms("0", "0"))
        assert result.unattended_product_ids == ["napkins"]
        assert len(result.warnings) == 1
        assert "napkins" in result.warnings[0]

    def test_line_items_preserved_in_order(self):
        items = _scenario_items()
        result = assemble(items, _terms("20", "4"))
        assert list(result.line_items) == items
        assert result.items_for(LineCategory.LABOR) == [items[0]]
