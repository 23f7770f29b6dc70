"""Rate tier resolution.

A tier covers the half-open range [min_hours, max_hours), so a value sitting
exactly on a boundary belongs to the upper tier.
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from quote_engine.models import (
    FlatPricing,
    PricingMode,
    RateCoverageError,
    RateTable,
    RateTier,
    TieredPricing,
    ValidationError,
)


def resolve(table: RateTable, hours: Decimal, ref_id: Optional[str] = None) -> RateTier:
    """Return the single tier of ``table`` whose range contains ``hours``."""
    if hours < 0:
        raise ValidationError(f"hours must be >= 0, got {hours}", ref_id)
    if hours < table.floor:
        raise RateCoverageError(hours, table.floor, ref_id)
    return table.tiers[_tier_index(table, hours)]


@lru_cache(maxsize=1024)
def _tier_index(table: RateTable, hours: Decimal) -> int:
    # Only the position is cached: equal tables can differ in Decimal scale
    for index, tier in enumerate(table.tiers):
        if tier.covers(hours):
            return index
    # Unreachable for a constructed table and hours >= floor
    raise RateCoverageError(hours, table.floor)


def resolve_rate(
    pricing: PricingMode,
    value: Decimal,
    ref_id: Optional[str] = None,
) -> tuple[Decimal, str]:
    """Unit rate and a short description for a priced entity."""
    if isinstance(pricing, FlatPricing):
        return pricing.rate, "flat rate"
    if isinstance(pricing, TieredPricing):
        tier = resolve(pricing.table, value, ref_id)
        return tier.rate, tier.description or tier.label
    raise ValidationError(f"unknown pricing mode {pricing!r}", ref_id)


def clear_cache() -> None:
    _tier_index.cache_clear()
