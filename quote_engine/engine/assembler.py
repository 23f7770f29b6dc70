"""Layer 4 — Quote total assembly.

All arithmetic is done on unrounded Decimals. Every money field handed back
to the caller is rounded once, independently, from those unrounded values:

    base      = labor + products + machinery
    margin    = base * margin% / 100
    retention = (base + margin) * retention% / 100
    total     = round(base + margin - retention)

Summing the rounded subtotals does NOT reproduce ``total`` in general.
Anything that needs the total again must replay ``assemble`` over the same
line items and terms, or read the stored total as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from quote_engine.models import (
    DEFAULT_ENGINE_VERSION,
    UNATTENDED,
    CommercialTerms,
    EngineVersion,
    LineCategory,
    LineItem,
    QuoteComputation,
    ValidationError,
)

_UNIT = Decimal("1")
_HUNDRED = Decimal("100")


def round_money(value: Decimal) -> int:
    """Round half-up to the nearest whole currency unit."""
    return int(value.quantize(_UNIT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class ExactBreakdown:
    """Unrounded intermediates of one assembly."""
    labor: Decimal
    products: Decimal
    machinery: Decimal
    margin: Decimal
    retention: Decimal

    @property
    def base(self) -> Decimal:
        return self.labor + self.products + self.machinery

    @property
    def total(self) -> Decimal:
        return self.base + self.margin - self.retention


def check_terms(terms: CommercialTerms) -> list[str]:
    problems: list[str] = []
    for name, value in (("margin", terms.margin_percent), ("retention", terms.retention_percent)):
        if not value.is_finite() or value < 0 or value >= _HUNDRED:
            problems.append(f"{name} percent must be in [0, 100), got {value}")
    return problems


def exact_breakdown(
    line_items: list[LineItem],
    terms: CommercialTerms,
    version: EngineVersion = DEFAULT_ENGINE_VERSION,
) -> ExactBreakdown:
    problems = check_terms(terms)
    if problems:
        raise ValidationError("; ".join(problems), "terms")

    sums = {category: Decimal("0") for category in LineCategory}
    for item in line_items:
        sums[item.category] += item.amount

    base = sums[LineCategory.LABOR] + sums[LineCategory.PRODUCT] + sums[LineCategory.MACHINERY]
    margin = base * terms.margin_percent / _HUNDRED

    if version == EngineVersion.V1:
        retention = base * terms.retention_percent / _HUNDRED
    else:
        retention = (base + margin) * terms.retention_percent / _HUNDRED

    return ExactBreakdown(
        labor=sums[LineCategory.LABOR],
        products=sums[LineCategory.PRODUCT],
        machinery=sums[LineCategory.MACHINERY],
        margin=margin,
        retention=retention,
    )


def assemble(
    line_items: list[LineItem],
    terms: CommercialTerms,
    version: EngineVersion = DEFAULT_ENGINE_VERSION,
) -> QuoteComputation:
    """Fold line items into a QuoteComputation."""
    exact = exact_breakdown(line_items, terms, version)

    warnings = tuple(
        f"Product {item.ref_id} is not associated with any employee"
        for item in line_items
        if item.category == LineCategory.PRODUCT and UNATTENDED in item.flags
    )

    return QuoteComputation(
        labor_subtotal=round_money(exact.labor),
        products_subtotal=round_money(exact.products),
        machinery_subtotal=round_money(exact.machinery),
        base_subtotal=round_money(exact.base),
        margin_amount=round_money(exact.margin),
        retention_amount=round_money(exact.retention),
        total=round_money(exact.total),
        line_items=tuple(line_items),
        terms=terms,
        engine_version=version,
        warnings=warnings,
    )
