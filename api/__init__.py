"""HTTP API for the quote pricing engine."""
