"""Layer 6 — Breakdown output.

JSON-ready breakdowns and plain-text summaries of a computed quote. Money is
always taken from the already-rounded fields of the computation; line items
also carry their exact amount so a stored quote can be replayed.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Optional

from quote_engine.engine.assembler import round_money
from quote_engine.engine.commercial import PaymentTerms
from quote_engine.models import LineCategory, LineItem, QuoteComputation, TotalReconciliation


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that keeps Decimal values exact as strings."""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


def format_currency(amount: int) -> str:
    """COP display format, e.g. 547200 -> "$547.200"."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,}".replace(",", ".")


def format_percent(value: Decimal) -> str:
    return f"{value:.1f}%"


def line_item_to_dict(item: LineItem) -> dict:
    return {
        "category": item.category.value,
        "ref_id": item.ref_id,
        "description": item.description,
        "quantity": str(item.quantity),
        "unit_rate": round_money(item.unit_rate),
        "amount": round_money(item.amount),
        "exact_unit_rate": str(item.unit_rate),
        "exact_amount": str(item.amount),
        "flags": list(item.flags),
    }


def computation_to_dict(
    result: QuoteComputation,
    payment: Optional[PaymentTerms] = None,
) -> dict:
    """Build the serializable breakdown of a computed quote (no file I/O)."""
    data = {
        "engine_version": result.engine_version.value,
        "terms": {
            "margin_percent": str(result.terms.margin_percent),
            "retention_percent": str(result.terms.retention_percent),
        },
        "labor_subtotal": result.labor_subtotal,
        "products_subtotal": result.products_subtotal,
        "machinery_subtotal": result.machinery_subtotal,
        "base_subtotal": result.base_subtotal,
        "margin_amount": result.margin_amount,
        "retention_amount": result.retention_amount,
        "total": result.total,
        "line_items": [line_item_to_dict(item) for item in result.line_items],
        "warnings": list(result.warnings),
        "unattended_product_ids": result.unattended_product_ids,
    }
    if payment is not None:
        data["payment_terms"] = {
            "days": payment.days,
            "requires_advance": payment.requires_advance,
            "advance_percent": payment.advance_percent,
        }
    return data


def reconciliation_to_dict(reconciliation: TotalReconciliation) -> dict:
    return {
        "engine_version": reconciliation.engine_version.value,
        "expected_total": reconciliation.expected_total,
        "stored_total": reconciliation.stored_total,
        "difference": reconciliation.difference,
        "matches": reconciliation.matches,
    }


def write_breakdown(
    result: QuoteComputation,
    output_path: str | Path,
    payment: Optional[PaymentTerms] = None,
) -> Path:
    """Write the breakdown JSON file for a computed quote."""
    output_path = Path(output_path)
    data = computation_to_dict(result, payment)
    output_path.write_text(json.dumps(data, indent=2, cls=DecimalEncoder), encoding="utf-8")
    return output_path


_SECTIONS = (
    (LineCategory.LABOR, "EMPLOYEES", "labor_subtotal"),
    (LineCategory.PRODUCT, "PRODUCTS", "products_subtotal"),
    (LineCategory.MACHINERY, "MACHINERY", "machinery_subtotal"),
)


def render_summary(result: QuoteComputation, payment: Optional[PaymentTerms] = None) -> str:
    """Plain-text quote summary."""
    lines = ["=== QUOTE SUMMARY ===", ""]

    for category, title, subtotal_field in _SECTIONS:
        items = result.items_for(category)
        if not items:
            continue
        lines.append(f"{title} ({len(items)}):")
        for item in items:
            lines.append(
                f"  {item.description}: {item.quantity} x "
                f"{format_currency(round_money(item.unit_rate))} = {format_currency(round_money(item.amount))}"
            )
        lines.append(f"  Subtotal: {format_currency(getattr(result, subtotal_field))}")
        lines.append("")

    lines.append("TOTALS:")
    lines.append(f"  Subtotal: {format_currency(result.base_subtotal)}")
    lines.append(
        f"  Margin {format_percent(result.terms.margin_percent)}: {format_currency(result.margin_amount)}"
    )
    if result.terms.retention_percent > 0:
        lines.append(
            f"  Retention {format_percent(result.terms.retention_percent)}: "
            f"-{format_currency(result.retention_amount)}"
        )
    lines.append(f"  TOTAL: {format_currency(result.total)}")

    if payment is not None:
        lines.append("")
        lines.append("PAYMENT TERMS:")
        lines.append(f"  Due in {payment.days} days")
        if payment.requires_advance:
            lines.append(f"  Advance: {payment.advance_percent}%")
        else:
            lines.append("  No advance required")

    for warning in result.warnings:
        lines.append(f"WARNING: {warning}")

    return "\n".join(lines)
