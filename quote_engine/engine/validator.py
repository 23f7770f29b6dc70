"""Layer 3 — Pre-flight validation.

Collects every problem with a quote before any calculator runs.
"""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import Optional

from quote_engine.engine.assembler import check_terms
from quote_engine.models import (
    PricingBasis,
    PricingMode,
    QuoteEngineError,
    QuoteInput,
    RateCoverageError,
    TieredPricing,
    ValidationError,
    contiguity_problems,
)

MAX_HOURS_PER_DAY = Decimal("24")


def _check_pricing(
    pricing: PricingMode,
    value: Optional[Decimal],
    ref_id: str,
) -> list[QuoteEngineError]:
    errors: list[QuoteEngineError] = []
    if isinstance(pricing, TieredPricing):
        problems = contiguity_problems(pricing.table.tiers)
        if problems:
            errors.append(ValidationError("rate table: " + "; ".join(problems), ref_id))
        elif value is not None and 0 <= value < pricing.table.floor:
            errors.append(RateCoverageError(value, pricing.table.floor, ref_id))
    elif pricing.rate < 0:
        errors.append(ValidationError(f"flat rate must be >= 0, got {pricing.rate}", ref_id))
    return errors


def _duplicates(ids: list[str], kind: str) -> list[QuoteEngineError]:
    return [
        ValidationError(f"{kind} appears {count} times", ref_id)
        for ref_id, count in Counter(ids).items() if count > 1
    ]


def validate_quote(quote: QuoteInput) -> list[QuoteEngineError]:
    """Return every validation error found in ``quote`` (empty when valid)."""
    errors: list[QuoteEngineError] = []

    # --- Employees ---
    for employee in quote.employees:
        ref = employee.employee_id
        if employee.hours <= 0:
            errors.append(ValidationError(f"hours must be > 0, got {employee.hours}", ref))

        if employee.is_multiday:
            for day, day_hours in enumerate(employee.daily_hours, start=1):
                if day_hours <= 0 or day_hours > MAX_HOURS_PER_DAY:
                    errors.append(ValidationError(
                        f"day {day}: hours must be in (0, 24], got {day_hours}", ref))
                else:
                    errors.extend(_check_pricing(employee.pricing, day_hours, ref))
            day_total = sum(employee.daily_hours, Decimal("0"))
            if day_total != employee.hours:
                errors.append(ValidationError(
                    f"daily hours add up to {day_total} but hours={employee.hours}", ref))
        else:
            if employee.hours > MAX_HOURS_PER_DAY:
                errors.append(ValidationError(
                    f"hours={employee.hours} > 24 for a single-day event", ref))
            if employee.hours > 0:
                errors.extend(_check_pricing(employee.pricing, employee.hours, ref))

        if employee.extra_cost < 0:
            errors.append(ValidationError(
                f"extra cost must be >= 0, got {employee.extra_cost}", ref))

    errors.extend(_duplicates([e.employee_id for e in quote.employees], "employee"))

    # --- Products ---
    for product in quote.products:
        ref = product.product_id
        if product.unit_count <= 0:
            errors.append(ValidationError(
                f"unit count must be > 0, got {product.unit_count}", ref))
        if product.basis == PricingBasis.DURATION and (
            product.event_hours is None or product.event_hours <= 0
        ):
            errors.append(ValidationError("duration-priced product needs event hours > 0", ref))
        if product.measurement_per_unit is not None and product.measurement_per_unit <= 0:
            errors.append(ValidationError(
                f"measurement per unit must be > 0, got {product.measurement_per_unit}", ref))

        key = product.tier_key
        if key is not None and key > 0:
            errors.extend(_check_pricing(product.pricing, key, ref))

    errors.extend(_duplicates([p.product_id for p in quote.products], "product"))

    # --- Machinery ---
    for item in quote.machinery:
        ref = item.machinery_id
        if item.hours <= 0:
            errors.append(ValidationError(f"hours must be > 0, got {item.hours}", ref))
        if item.hourly_rate < 0 or item.daily_rate < 0:
            errors.append(ValidationError("machine rates must be >= 0", ref))
        if item.requires_operator and item.operator_hourly_rate is None:
            errors.append(ValidationError("machine requires an operator but has no operator rate", ref))
        if item.operator_hourly_rate is not None and item.operator_hourly_rate < 0:
            errors.append(ValidationError(
                f"operator rate must be >= 0, got {item.operator_hourly_rate}", ref))
        if item.setup_cost < 0:
            errors.append(ValidationError(f"setup cost must be >= 0, got {item.setup_cost}", ref))

    errors.extend(_duplicates([m.machinery_id for m in quote.machinery], "machine"))

    # --- Rentals ---
    for rental in quote.rentals:
        ref = rental.rental_id
        if rental.custom_total is not None:
            if rental.custom_total < 0:
                errors.append(ValidationError(
                    f"custom total must be >= 0, got {rental.custom_total}", ref))
            continue
        if rental.hours <= 0:
            errors.append(ValidationError(f"hours must be > 0, got {rental.hours}", ref))
        if rental.hourly_rate < 0 or rental.daily_rate < 0:
            errors.append(ValidationError("machine rates must be >= 0", ref))
        if rental.requires_operator and rental.operator_hourly_rate is None:
            errors.append(ValidationError("machine requires an operator but has no operator rate", ref))
        for kind, cost in (
            ("operator", rental.operator_hourly_rate),
            ("setup", rental.setup_cost),
            ("delivery", rental.delivery_cost),
            ("pickup", rental.pickup_cost),
        ):
            if cost is not None and cost < 0:
                errors.append(ValidationError(f"{kind} cost must be >= 0, got {cost}", ref))

    errors.extend(_duplicates([r.rental_id for r in quote.rentals], "rental"))

    # --- Disposables and subcontracts ---
    for item in quote.disposables:
        if item.quantity < 0:
            errors.append(ValidationError(f"quantity must be >= 0, got {item.quantity}", item.item_id))
        if item.unit_price < 0:
            errors.append(ValidationError(f"unit price must be >= 0, got {item.unit_price}", item.item_id))
        if item.minimum_quantity < 0:
            errors.append(ValidationError(
                f"minimum quantity must be >= 0, got {item.minimum_quantity}", item.item_id))
        if item.custom_total is not None and item.custom_total < 0:
            errors.append(ValidationError(
                f"custom total must be >= 0, got {item.custom_total}", item.item_id))

    errors.extend(_duplicates([d.item_id for d in quote.disposables], "disposable item"))

    for sub in quote.subcontracts:
        if sub.price < 0:
            errors.append(ValidationError(f"price must be >= 0, got {sub.price}", sub.subcontract_id))

    errors.extend(_duplicates([s.subcontract_id for s in quote.subcontracts], "subcontract"))

    # --- Transport ---
    known_products = {p.product_id for p in quote.products}
    for zone in quote.transport_zones:
        ref = zone.zone_id
        if zone.base_cost < 0:
            errors.append(ValidationError(f"base cost must be >= 0, got {zone.base_cost}", ref))
        if zone.equipment_cost < 0:
            errors.append(ValidationError(f"equipment cost must be >= 0, got {zone.equipment_cost}", ref))
        if zone.allocations:
            served = [a.product_id for a in zone.allocations]
            for allocation in zone.allocations:
                if allocation.transport_count <= 0:
                    errors.append(ValidationError(
                        f"transport count for {allocation.product_id} must be > 0, "
                        f"got {allocation.transport_count}", ref))
        else:
            served = list(zone.product_ids)
            if zone.transport_count <= 0:
                errors.append(ValidationError(
                    f"transport count must be > 0, got {zone.transport_count}", ref))
        for product_id in sorted(set(served) - known_products):
            errors.append(ValidationError(f"transport serves unknown product {product_id}", ref))
        errors.extend(_duplicates(served, f"product on zone {ref}"))

    errors.extend(_duplicates([z.zone_id for z in quote.transport_zones], "transport zone"))

    # --- Commercial terms ---
    for problem in check_terms(quote.terms):
        errors.append(ValidationError(problem, "terms"))

    return errors
