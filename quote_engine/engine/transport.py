"""Transport line items.

A zone's trips cost ``base_cost`` each, plus the equipment surcharge when
equipment travels with them. Transport is billed in the product category,
one line per product it serves.
"""

from __future__ import annotations

from decimal import Decimal

from quote_engine.models import LineCategory, LineItem, TransportZoneInput, ValidationError


def _check_zone(zone: TransportZoneInput) -> None:
    if zone.base_cost < 0:
        raise ValidationError(f"base cost must be >= 0, got {zone.base_cost}", zone.zone_id)
    if zone.include_equipment and zone.equipment_cost < 0:
        raise ValidationError(
            f"equipment cost must be >= 0, got {zone.equipment_cost}", zone.zone_id)


def _allocated_lines(zone: TransportZoneInput, label: str) -> list[LineItem]:
    lines = []
    for allocation in zone.allocations:
        if allocation.transport_count <= 0:
            raise ValidationError(
                f"transport count for {allocation.product_id} must be > 0, "
                f"got {allocation.transport_count}",
                zone.zone_id,
            )
        lines.append(LineItem(
            category=LineCategory.PRODUCT,
            ref_id=f"{zone.zone_id}:{allocation.product_id}",
            description=f"Transport {label} - {allocation.product_id}",
            quantity=allocation.transport_count,
            unit_rate=zone.cost_per_trip,
            amount=zone.cost_per_trip * allocation.transport_count,
        ))
    return lines


def _split_lines(zone: TransportZoneInput, label: str) -> list[LineItem]:
    if zone.transport_count <= 0:
        raise ValidationError(
            f"transport count must be > 0, got {zone.transport_count}", zone.zone_id)

    total = zone.cost_per_trip * zone.transport_count
    if not zone.product_ids:
        return [LineItem(
            category=LineCategory.PRODUCT,
            ref_id=zone.zone_id,
            description=f"Transport {label}",
            quantity=zone.transport_count,
            unit_rate=zone.cost_per_trip,
            amount=total,
        )]

    count = Decimal(len(zone.product_ids))
    share = total / count
    lines = []
    for index, product_id in enumerate(zone.product_ids):
        # The last share takes the division remainder so the lines sum to total
        amount = share if index < len(zone.product_ids) - 1 else total - share * (count - 1)
        lines.append(LineItem(
            category=LineCategory.PRODUCT,
            ref_id=f"{zone.zone_id}:{product_id}",
            description=f"Transport {label} - {product_id} (shared)",
            quantity=zone.transport_count / count,
            unit_rate=zone.cost_per_trip,
            amount=amount,
        ))
    return lines


def compute_transport(zones: list[TransportZoneInput]) -> list[LineItem]:
    """Price every transport zone booked on the quote."""
    lines: list[LineItem] = []
    for zone in zones:
        _check_zone(zone)
        label = zone.name or zone.zone_id
        if zone.allocations:
            lines.extend(_allocated_lines(zone, label))
        else:
            lines.extend(_split_lines(zone, label))
    return lines
