"""CLI entry point.

Usage:
    python -m quote_engine compute --input quote.json [--out breakdown.json] [--summary]
    python -m quote_engine verify --input saved_quote.json
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer

from quote_engine.config import get_settings
from quote_engine.logging_config import setup_logging
from quote_engine.models import QuoteEngineError, QuoteValidationError

app = typer.Typer(help="Quote pricing engine.", no_args_is_help=True)


def _configure_logging() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON, stream=sys.stderr)


@app.command()
def compute(
    input_file: str = typer.Option(..., "--input", help="Path to quote input JSON"),
    out: Optional[str] = typer.Option(None, "--out", help="Write the breakdown JSON here instead of stdout"),
    engine_version: str = typer.Option("v2", "--engine-version", help="Assembly formula revision (v1 or v2)"),
    summary: bool = typer.Option(False, "--summary", help="Print a plain-text summary instead of JSON"),
) -> None:
    """Compute the breakdown and total of a quote."""
    from quote_engine.engine import compute_quote
    from quote_engine.engine.commercial import payment_terms
    from quote_engine.parsers import load_json, parse_engine_version, parse_quote_input
    from quote_engine.report import DecimalEncoder, computation_to_dict, render_summary, write_breakdown

    _configure_logging()

    try:
        quote = parse_quote_input(load_json(Path(input_file)))
        version = parse_engine_version(engine_version)
        result = compute_quote(quote, version)
        payment = payment_terms(result.total, quote.client_type)

        if out:
            write_breakdown(result, out, payment)
            typer.echo(f"Breakdown saved to: {out}")
            typer.echo(f"TOTAL: {result.total}")
        elif summary:
            typer.echo(render_summary(result, payment))
        else:
            typer.echo(json.dumps(computation_to_dict(result, payment), indent=2, cls=DecimalEncoder))

    except QuoteValidationError as e:
        typer.echo("QUOTE VALIDATION FAILED:", err=True)
        for error in e.errors:
            typer.echo(f"  ERROR: {error}", err=True)
        raise typer.Exit(1)

    except QuoteEngineError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)

    except OSError as e:
        typer.echo(f"FATAL ERROR: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def verify(
    input_file: str = typer.Option(..., "--input", help="Path to a saved quote JSON (line items, terms, total)"),
) -> None:
    """Replay assembly over a saved quote and compare with its stored total."""
    from quote_engine.engine import reconcile_total
    from quote_engine.parsers import load_json, parse_persisted_quote

    _configure_logging()

    try:
        line_items, terms, stored_total, version = parse_persisted_quote(load_json(Path(input_file)))
        reconciliation = reconcile_total(line_items, terms, stored_total, version)
    except QuoteEngineError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)
    except OSError as e:
        typer.echo(f"FATAL ERROR: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Engine version: {version.value}")
    typer.echo(f"Stored total:   {reconciliation.stored_total}")
    typer.echo(f"Replayed total: {reconciliation.expected_total}")
    if reconciliation.matches:
        typer.echo("MATCH: stored total reproduces exactly.")
    else:
        typer.echo(f"MISMATCH: difference {reconciliation.difference}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
