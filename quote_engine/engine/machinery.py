"""Machinery line items with hourly vs. daily rate selection.

Business rules:
- The daily rate is only considered from DAILY_RATE_MIN_HOURS hours upward.
- Past that threshold it is used only when strictly cheaper than hours x
  hourly rate; a tie stays on the hourly rate.
- Operator time and setup are separate line items, never merged into the
  machine's own line.
- Third-party rentals follow the same rate rule and add delivery and pickup
  lines when those services are booked. A negotiated rental price replaces
  every computed component with a single line.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Union

from quote_engine.models import (
    LineCategory,
    LineItem,
    MachineryInput,
    MachineryRentalInput,
    ValidationError,
)

DAILY_RATE_MIN_HOURS = Decimal("8")

_ONE = Decimal("1")


def uses_daily_rate(item: Union[MachineryInput, MachineryRentalInput]) -> bool:
    hourly_total = item.hourly_rate * item.hours
    return item.hours >= DAILY_RATE_MIN_HOURS and item.daily_rate < hourly_total


def _line(ref_id: str, description: str, quantity: Decimal, unit_rate: Decimal) -> LineItem:
    return LineItem(
        category=LineCategory.MACHINERY,
        ref_id=ref_id,
        description=description,
        quantity=quantity,
        unit_rate=unit_rate,
        amount=unit_rate * quantity,
    )


def _time_lines(
    ref_id: str,
    label: str,
    item: Union[MachineryInput, MachineryRentalInput],
) -> list[LineItem]:
    """The machine's own line plus its operator line."""
    if item.hours <= 0:
        raise ValidationError(f"hours must be > 0, got {item.hours}", ref_id)
    if item.requires_operator and item.operator_hourly_rate is None:
        raise ValidationError("machine requires an operator but has no operator rate", ref_id)

    if uses_daily_rate(item):
        lines = [_line(ref_id, f"{label} - daily rate ({item.hours}h)", _ONE, item.daily_rate)]
    else:
        lines = [_line(ref_id, f"{label} - hourly rate", item.hours, item.hourly_rate)]

    if item.requires_operator:
        lines.append(_line(f"{ref_id}:operator", f"{label} - operator",
                           item.hours, item.operator_hourly_rate))
    return lines


def _fixed_line(ref_id: str, label: str, kind: str, cost: Optional[Decimal]) -> list[LineItem]:
    if not cost:
        return []
    if cost < 0:
        raise ValidationError(f"{kind} cost must be >= 0, got {cost}", ref_id)
    return [_line(f"{ref_id}:{kind}", f"{label} - {kind}", _ONE, cost)]


def compute_machinery(items: list[MachineryInput]) -> list[LineItem]:
    lines: list[LineItem] = []
    for item in items:
        label = item.name or item.machinery_id
        lines.extend(_time_lines(item.machinery_id, label, item))
        lines.extend(_fixed_line(item.machinery_id, label, "setup", item.setup_cost))
    return lines


def compute_rentals(rentals: list[MachineryRentalInput]) -> list[LineItem]:
    """Price machinery rented from suppliers."""
    lines: list[LineItem] = []
    for rental in rentals:
        ref = rental.rental_id
        label = rental.name or ref

        if rental.custom_total is not None:
            if rental.custom_total < 0:
                raise ValidationError(f"custom total must be >= 0, got {rental.custom_total}", ref)
            lines.append(_line(ref, f"{label} - rental (negotiated price)", _ONE, rental.custom_total))
            continue

        lines.extend(_time_lines(ref, f"{label} (rental)", rental))
        lines.extend(_fixed_line(ref, label, "setup", rental.setup_cost))
        if rental.include_delivery:
            lines.extend(_fixed_line(ref, label, "delivery", rental.delivery_cost))
        if rental.include_pickup:
            lines.extend(_fixed_line(ref, label, "pickup", rental.pickup_cost))
    return lines
