"""Deterministic quote pricing engine for events and catering quotes."""
from quote_engine.engine import assemble, compute_quote, reconcile_total

__version__ = "1.0.0"

__all__ = ["assemble", "compute_quote", "reconcile_total"]
