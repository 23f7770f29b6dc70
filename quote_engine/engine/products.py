"""Product line items.

Products are billed whether or not any employee is attached to them; a
product nobody is assigned to carries the ``unattended`` flag so the caller
can warn about it. Disposable supplies and subcontracted services are billed
as product lines too.
"""

from __future__ import annotations

from decimal import Decimal

from quote_engine.engine.rate_resolver import resolve_rate
from quote_engine.models import (
    UNATTENDED,
    DisposableItemInput,
    EmployeeInput,
    LineCategory,
    LineItem,
    PricingBasis,
    ProductInput,
    SubcontractInput,
    ValidationError,
)


def compute_products(
    products: list[ProductInput],
    employees: list[EmployeeInput],
) -> list[LineItem]:
    """Price every product, flagging the ones no employee is associated with."""
    attended: set[str] = set()
    for employee in employees:
        attended.update(employee.selected_product_ids)

    return [_product_line(product, product.product_id in attended) for product in products]


def _billed_quantity(product: ProductInput) -> Decimal:
    if product.basis == PricingBasis.DURATION:
        if product.event_hours is None or product.event_hours <= 0:
            raise ValidationError(
                "duration-priced product needs event hours > 0", product.product_id
            )
        return product.unit_count * product.event_hours

    if product.measurement_per_unit is not None:
        if product.measurement_per_unit <= 0:
            raise ValidationError(
                f"measurement per unit must be > 0, got {product.measurement_per_unit}",
                product.product_id,
            )
        return product.unit_count * product.measurement_per_unit
    return product.unit_count


def _product_line(product: ProductInput, attended: bool) -> LineItem:
    if product.unit_count <= 0:
        raise ValidationError(
            f"unit count must be > 0, got {product.unit_count}", product.product_id
        )

    quantity = _billed_quantity(product)
    rate, tier_name = resolve_rate(product.pricing, product.tier_key, product.product_id)

    label = product.name or product.product_id
    if product.basis == PricingBasis.DURATION:
        description = f"{label} - {product.unit_count} x {product.event_hours}h ({tier_name})"
    elif product.measurement_per_unit is not None:
        description = f"{label} - {product.unit_count} x {product.measurement_per_unit} ({tier_name})"
    else:
        description = f"{label} ({tier_name})"

    return LineItem(
        category=LineCategory.PRODUCT,
        ref_id=product.product_id,
        description=description,
        quantity=quantity,
        unit_rate=rate,
        amount=rate * quantity,
        flags=() if attended else (UNATTENDED,),
    )


def compute_disposables(items: list[DisposableItemInput]) -> list[LineItem]:
    """Disposable supplies, billed at no less than their minimum quantity."""
    lines: list[LineItem] = []
    for item in items:
        ref = item.item_id
        label = item.name or ref
        if item.quantity < 0:
            raise ValidationError(f"quantity must be >= 0, got {item.quantity}", ref)

        if item.custom_total is not None:
            if item.custom_total < 0:
                raise ValidationError(f"custom total must be >= 0, got {item.custom_total}", ref)
            unit_rate = item.custom_total / item.quantity if item.quantity > 0 else item.custom_total
            lines.append(LineItem(
                category=LineCategory.PRODUCT,
                ref_id=ref,
                description=f"{label} (negotiated total)",
                quantity=item.quantity,
                unit_rate=unit_rate,
                amount=item.custom_total,
            ))
            continue

        if item.unit_price < 0:
            raise ValidationError(f"unit price must be >= 0, got {item.unit_price}", ref)
        quantity = item.billed_quantity
        description = label
        if quantity > item.quantity:
            description = f"{label} (minimum {item.minimum_quantity})"
        lines.append(LineItem(
            category=LineCategory.PRODUCT,
            ref_id=ref,
            description=description,
            quantity=quantity,
            unit_rate=item.unit_price,
            amount=item.unit_price * quantity,
        ))
    return lines


def compute_subcontracts(items: list[SubcontractInput]) -> list[LineItem]:
    lines: list[LineItem] = []
    for item in items:
        if item.price < 0:
            raise ValidationError(f"price must be >= 0, got {item.price}", item.subcontract_id)
        lines.append(LineItem(
            category=LineCategory.PRODUCT,
            ref_id=item.subcontract_id,
            description=f"{item.name or item.subcontract_id} (subcontract)",
            quantity=Decimal("1"),
            unit_rate=item.price,
            amount=item.price,
        ))
    return lines
