"""Quote pricing pipeline: validate, price line items, assemble.

Used for live preview and for re-verifying persisted quotes; both paths go
through the same assembly so they reach the same total.
"""

from __future__ import annotations

import logging

from quote_engine.engine.assembler import assemble, round_money, exact_breakdown
from quote_engine.engine.labor import compute_labor
from quote_engine.engine.machinery import compute_machinery, compute_rentals
from quote_engine.engine.products import compute_disposables, compute_products, compute_subcontracts
from quote_engine.engine.transport import compute_transport
from quote_engine.engine.validator import validate_quote
from quote_engine.models import (
    DEFAULT_ENGINE_VERSION,
    CommercialTerms,
    EngineVersion,
    LineItem,
    QuoteComputation,
    QuoteInput,
    QuoteValidationError,
    TotalReconciliation,
)

logger = logging.getLogger(__name__)


def compute_quote(
    quote: QuoteInput,
    version: EngineVersion = DEFAULT_ENGINE_VERSION,
) -> QuoteComputation:
    """Compute the full breakdown and total for ``quote``.

    Raises QuoteValidationError before pricing anything if the input is not
    valid. Calculator errors propagate unchanged; nothing is defaulted.
    """
    errors = validate_quote(quote)
    if errors:
        logger.info("Quote rejected with %d validation error(s)", len(errors))
        raise QuoteValidationError(errors)

    employees = list(quote.employees)
    line_items: list[LineItem] = []
    line_items.extend(compute_labor(employees))
    line_items.extend(compute_products(list(quote.products), employees))
    line_items.extend(compute_disposables(list(quote.disposables)))
    line_items.extend(compute_subcontracts(list(quote.subcontracts)))
    line_items.extend(compute_transport(list(quote.transport_zones)))
    line_items.extend(compute_machinery(list(quote.machinery)))
    line_items.extend(compute_rentals(list(quote.rentals)))

    result = assemble(line_items, quote.terms, version)

    for warning in result.warnings:
        logger.warning(warning)
    logger.debug(
        "Computed quote (%s): %d line items, base=%d margin=%d retention=%d total=%d",
        version.value, len(result.line_items), result.base_subtotal,
        result.margin_amount, result.retention_amount, result.total,
    )
    return result


def reconcile_total(
    line_items: list[LineItem],
    terms: CommercialTerms,
    stored_total: int,
    version: EngineVersion = DEFAULT_ENGINE_VERSION,
) -> TotalReconciliation:
    """Replay assembly over persisted line items and compare with the stored total."""
    expected = round_money(exact_breakdown(line_items, terms, version).total)
    reconciliation = TotalReconciliation(
        expected_total=expected,
        stored_total=stored_total,
        engine_version=version,
    )
    if not reconciliation.matches:
        logger.warning(
            "Stored total %d differs from replayed total %d by %d (%s)",
            stored_total, expected, reconciliation.difference, version.value,
        )
    return reconciliation
