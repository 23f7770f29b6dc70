"""Input parsing layer."""
from quote_engine.parsers.quote_input import (
    load_json,
    parse_engine_version,
    parse_persisted_quote,
    parse_quote_input,
    parse_rate_table,
)

__all__ = [
    "load_json",
    "parse_engine_version",
    "parse_persisted_quote",
    "parse_quote_input",
    "parse_rate_table",
]
