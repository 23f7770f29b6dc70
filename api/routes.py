"""API routes for the Quote Pricing Engine."""

from __future__ import annotations

from fastapi import APIRouter

from quote_engine.engine import compute_quote, reconcile_total
from quote_engine.engine.commercial import payment_terms
from quote_engine.models import (
    ConfigurationError,
    QuoteEngineError,
    QuoteValidationError,
    RateCoverageError,
)
from quote_engine.parsers import parse_engine_version, parse_persisted_quote, parse_quote_input
from quote_engine.report import computation_to_dict, render_summary

from api.schemas import QuoteRequest, QuoteResponse, VerifyRequest, VerifyResponse

router = APIRouter(prefix="/api/v1")


def _error_type(error: QuoteEngineError) -> str:
    if isinstance(error, QuoteValidationError):
        # Coverage gaps arrive wrapped; report them as such when nothing else failed
        if error.errors and all(isinstance(e, RateCoverageError) for e in error.errors):
            return "coverage_error"
        return "validation_error"
    if isinstance(error, RateCoverageError):
        return "coverage_error"
    if isinstance(error, ConfigurationError):
        return "configuration_error"
    return "input_error"


def _error_messages(error: QuoteEngineError) -> list[str]:
    if isinstance(error, QuoteValidationError):
        return [str(e) for e in error.errors]
    return [str(error)]


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.post("/quotes/compute", response_model=QuoteResponse)
async def compute(request: QuoteRequest):
    """Compute the breakdown and total of a quote.

    Used both for live preview and at save time; the same input always
    produces the same total.
    """
    try:
        data = request.model_dump(mode="python")
        quote = parse_quote_input(data)
        version = parse_engine_version(request.engine_version)
        result = compute_quote(quote, version)
    except QuoteEngineError as e:
        return QuoteResponse(
            success=False,
            error_type=_error_type(e),
            errors=_error_messages(e),
        )

    payment = payment_terms(result.total, quote.client_type)
    return QuoteResponse(
        success=True,
        total=result.total,
        breakdown=computation_to_dict(result, payment),
        summary=render_summary(result, payment),
        warnings=list(result.warnings),
    )


@router.post("/quotes/verify", response_model=VerifyResponse)
async def verify(request: VerifyRequest):
    """Replay assembly over stored line items and compare with the stored total."""
    try:
        line_items, terms, stored_total, version = parse_persisted_quote(
            request.model_dump(mode="python")
        )
        reconciliation = reconcile_total(line_items, terms, stored_total, version)
    except QuoteEngineError as e:
        return VerifyResponse(
            success=False,
            error_type=_error_type(e),
            errors=_error_messages(e),
        )

    return VerifyResponse(
        success=True,
        matches=reconciliation.matches,
        expected_total=reconciliation.expected_total,
        stored_total=reconciliation.stored_total,
        difference=reconciliation.difference,
    )
