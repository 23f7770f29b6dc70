"""Labor line items, one per employee."""

from __future__ import annotations

from decimal import Decimal

from quote_engine.engine.rate_resolver import resolve_rate
from quote_engine.models import EmployeeInput, LineCategory, LineItem, ValidationError


def compute_labor(employees: list[EmployeeInput]) -> list[LineItem]:
    """Price every employee. Does not aggregate; the assembler does that."""
    items: list[LineItem] = []
    for employee in employees:
        items.append(_employee_line(employee))
        if employee.extra_cost:
            items.append(_extra_cost_line(employee))
    return items


def _employee_line(employee: EmployeeInput) -> LineItem:
    if employee.hours <= 0:
        raise ValidationError(f"hours must be > 0, got {employee.hours}", employee.employee_id)

    label = employee.name or employee.employee_id

    if employee.is_multiday:
        # Each day picks its own tier; the line shows the blended rate
        amount = Decimal("0")
        for day_hours in employee.daily_hours:
            if day_hours <= 0:
                raise ValidationError(
                    f"daily hours must be > 0, got {day_hours}", employee.employee_id
                )
            rate, _ = resolve_rate(employee.pricing, day_hours, employee.employee_id)
            amount += rate * day_hours
        hours = sum(employee.daily_hours, Decimal("0"))
        return LineItem(
            category=LineCategory.LABOR,
            ref_id=employee.employee_id,
            description=f"{label} ({employee.employee_type}) - {len(employee.daily_hours)} days",
            quantity=hours,
            unit_rate=amount / hours,
            amount=amount,
        )

    rate, tier_name = resolve_rate(employee.pricing, employee.hours, employee.employee_id)
    return LineItem(
        category=LineCategory.LABOR,
        ref_id=employee.employee_id,
        description=f"{label} ({employee.employee_type}) - {tier_name}",
        quantity=employee.hours,
        unit_rate=rate,
        amount=rate * employee.hours,
    )


def _extra_cost_line(employee: EmployeeInput) -> LineItem:
    if employee.extra_cost < 0:
        raise ValidationError(
            f"extra cost must be >= 0, got {employee.extra_cost}", employee.employee_id
        )
    reason = employee.extra_cost_reason or "extra cost"
    return LineItem(
        category=LineCategory.LABOR,
        ref_id=f"{employee.employee_id}:extra",
        description=f"{employee.name or employee.employee_id} - {reason}",
        quantity=Decimal("1"),
        unit_rate=employee.extra_cost,
        amount=employee.extra_cost,
    )
