"""Validation, pricing and assembly engines."""
from quote_engine.engine.validator import validate_quote
from quote_engine.engine.calculator import compute_quote, reconcile_total
from quote_engine.engine.assembler import assemble
from quote_engine.engine.rate_resolver import resolve
from quote_engine.engine.labor import compute_labor
from quote_engine.engine.products import compute_disposables, compute_products, compute_subcontracts
from quote_engine.engine.machinery import compute_machinery, compute_rentals
from quote_engine.engine.transport import compute_transport

__all__ = [
    "validate_quote",
    "compute_quote",
    "reconcile_total",
    "assemble",
    "resolve",
    "compute_labor",
    "compute_products",
    "compute_disposables",
    "compute_subcontracts",
    "compute_machinery",
    "compute_rentals",
    "compute_transport",
]
