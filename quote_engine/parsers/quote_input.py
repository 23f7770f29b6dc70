"""Layer 1 — Quote input parser.

Turns plain data (decoded JSON, form payloads) into the canonical models.
Pricing is explicit: an entity carries either ``flat_rate`` or ``rate_table``,
never both.
"""

from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

from quote_engine.engine.commercial import default_terms
from quote_engine.models import (
    DEFAULT_ENGINE_VERSION,
    CommercialTerms,
    DisposableItemInput,
    EmployeeInput,
    EngineVersion,
    FlatPricing,
    LineCategory,
    LineItem,
    MachineryInput,
    MachineryRentalInput,
    PricingBasis,
    PricingMode,
    ProductInput,
    QuoteInput,
    RateTable,
    RateTier,
    SubcontractInput,
    TieredPricing,
    TransportAllocation,
    TransportZoneInput,
    ValidationError,
)

# Fixed brackets of the pre-flexible employee rate format
LEGACY_RATE_BRACKETS = (
    ("1-4h", Decimal("1"), Decimal("4"), "Servicio básico (1-4 horas)"),
    ("4-8h", Decimal("4"), Decimal("8"), "Servicio medio (4-8 horas)"),
    ("8h+", Decimal("8"), None, "Servicio extendido (8+ horas)"),
)


def to_decimal(value: Any, field_name: str, ref_id: Optional[str] = None) -> Decimal:
    """Convert a JSON number or numeric string to Decimal without float noise."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number, got {value!r}", ref_id)
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number, got {value!r}", ref_id)
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be finite, got {value!r}", ref_id)
    return result


def _optional_decimal(data: dict, key: str, ref_id: Optional[str] = None) -> Optional[Decimal]:
    value = data.get(key)
    if value is None:
        return None
    return to_decimal(value, key, ref_id)




def _require(data: dict, key: str, ref_id: Optional[str] = None) -> Any:
    if key not in data or data[key] is None:
        raise ValidationError(f"missing required field '{key}'", ref_id)
    return data[key]


def _object(value: Any, what: str, ref_id: Optional[str] = None) -> dict:
    if not isinstance(value, dict):
        raise ValidationError(f"{what} must be an object, got {type(value).__name__}", ref_id)
    return value


def _objects(data: dict, key: str, ref_id: Optional[str] = None) -> list[dict]:
    """The list under ``key`` (empty when absent), each entry checked to be an object."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{key} must be a list, got {type(value).__name__}", ref_id)
    return [_object(entry, f"{key} entry", ref_id) for entry in value]


def _ids(data: dict, key: str, ref_id: Optional[str] = None) -> tuple[str, ...]:
    value = data.get(key) or ()
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{key} must be a list, got {type(value).__name__}", ref_id)
    return tuple(str(v) for v in value)


def parse_rate_table(raw: Any, ref_id: Optional[str] = None) -> RateTable:
    """Build a RateTable from a list of tier dicts or the legacy bracket object.

    Raises ConfigurationError when the tiers are not contiguous.
    """
    if isinstance(raw, dict):
        tiers = []
        for key, min_hours, max_hours, description in LEGACY_RATE_BRACKETS:
            if key not in raw:
                raise ValidationError(f"legacy rate table is missing '{key}'", ref_id)
            tiers.append(RateTier(
                min_hours=min_hours,
                max_hours=max_hours,
                rate=to_decimal(raw[key], f"rate '{key}'", ref_id),
                description=description,
            ))
        return RateTable(tuple(tiers))

    if not isinstance(raw, list):
        raise ValidationError("rate_table must be a list of tiers", ref_id)

    tiers = []
    for tier in raw:
        tier = _object(tier, "rate tier", ref_id)
        max_hours = tier.get("max_hours")
        tiers.append(RateTier(
            min_hours=to_decimal(_require(tier, "min_hours", ref_id), "min_hours", ref_id),
            max_hours=None if max_hours is None else to_decimal(max_hours, "max_hours", ref_id),
            rate=to_decimal(_require(tier, "rate", ref_id), "rate", ref_id),
            description=tier.get("description") or "",
        ))
    return RateTable.from_tiers(tiers)


def parse_pricing(data: dict, ref_id: str) -> PricingMode:
    has_flat = data.get("flat_rate") is not None
    has_table = data.get("rate_table") is not None
    if has_flat and has_table:
        raise ValidationError("give either flat_rate or rate_table, not both", ref_id)
    if has_flat:
        return FlatPricing(to_decimal(data["flat_rate"], "flat_rate", ref_id))
    if has_table:
        return TieredPricing(parse_rate_table(data["rate_table"], ref_id))
    raise ValidationError("no pricing configured (flat_rate or rate_table)", ref_id)


def parse_employee(data: dict) -> EmployeeInput:
    ref = str(_require(data, "employee_id"))
    daily_hours = data.get("daily_hours") or ()
    if not isinstance(daily_hours, (list, tuple)):
        raise ValidationError("daily_hours must be a list", ref)
    return EmployeeInput(
        employee_id=ref,
        employee_type=str(data.get("employee_type") or ""),
        hours=to_decimal(_require(data, "hours", ref), "hours", ref),
        pricing=parse_pricing(data, ref),
        selected_product_ids=frozenset(_ids(data, "selected_product_ids", ref)),
        name=data.get("name") or "",
        extra_cost=_optional_decimal(data, "extra_cost", ref) or Decimal("0"),
        extra_cost_reason=data.get("extra_cost_reason") or "",
        daily_hours=tuple(to_decimal(h, "daily_hours", ref) for h in daily_hours),
    )


def parse_product(data: dict) -> ProductInput:
    ref = str(_require(data, "product_id"))
    try:
        basis = PricingBasis(data.get("basis") or PricingBasis.QUANTITY.value)
    except ValueError:
        raise ValidationError(f"unknown pricing basis {data.get('basis')!r}", ref)
    return ProductInput(
        product_id=ref,
        unit_count=to_decimal(_require(data, "unit_count", ref), "unit_count", ref),
        pricing=parse_pricing(data, ref),
        basis=basis,
        event_hours=_optional_decimal(data, "event_hours", ref),
        measurement_per_unit=_optional_decimal(data, "measurement_per_unit", ref),
        name=data.get("name") or "",
    )


def parse_machinery(data: dict) -> MachineryInput:
    ref = str(_require(data, "machinery_id"))
    return MachineryInput(
        machinery_id=ref,
        hours=to_decimal(_require(data, "hours", ref), "hours", ref),
        hourly_rate=to_decimal(_require(data, "hourly_rate", ref), "hourly_rate", ref),
        daily_rate=to_decimal(_require(data, "daily_rate", ref), "daily_rate", ref),
        requires_operator=bool(data.get("requires_operator", False)),
        operator_hourly_rate=_optional_decimal(data, "operator_hourly_rate", ref),
        setup_cost=_optional_decimal(data, "setup_cost", ref) or Decimal("0"),
        name=data.get("name") or "",
    )


def parse_rental(data: dict) -> MachineryRentalInput:
    ref = str(_require(data, "rental_id"))
    custom_total = _optional_decimal(data, "custom_total", ref)
    if custom_total is not None:
        # A negotiated price needs no rate data
        hours = _optional_decimal(data, "hours", ref) or Decimal("0")
        hourly_rate = _optional_decimal(data, "hourly_rate", ref) or Decimal("0")
        daily_rate = _optional_decimal(data, "daily_rate", ref) or Decimal("0")
    else:
        hours = to_decimal(_require(data, "hours", ref), "hours", ref)
        hourly_rate = to_decimal(_require(data, "hourly_rate", ref), "hourly_rate", ref)
        daily_rate = to_decimal(_require(data, "daily_rate", ref), "daily_rate", ref)
    return MachineryRentalInput(
        rental_id=ref,
        hours=hours,
        hourly_rate=hourly_rate,
        daily_rate=daily_rate,
        requires_operator=bool(data.get("requires_operator", False)),
        operator_hourly_rate=_optional_decimal(data, "operator_hourly_rate", ref),
        setup_cost=_optional_decimal(data, "setup_cost", ref) or Decimal("0"),
        delivery_cost=_optional_decimal(data, "delivery_cost", ref) or Decimal("0"),
        pickup_cost=_optional_decimal(data, "pickup_cost", ref) or Decimal("0"),
        include_delivery=bool(data.get("include_delivery", False)),
        include_pickup=bool(data.get("include_pickup", False)),
        custom_total=custom_total,
        name=data.get("name") or "",
    )


def parse_disposable(data: dict) -> DisposableItemInput:
    ref = str(_require(data, "item_id"))
    custom_total = _optional_decimal(data, "custom_total", ref)
    unit_price = _optional_decimal(data, "unit_price", ref)
    if unit_price is None:
        if custom_total is None:
            raise ValidationError("missing required field 'unit_price'", ref)
        unit_price = Decimal("0")
    return DisposableItemInput(
        item_id=ref,
        quantity=to_decimal(_require(data, "quantity", ref), "quantity", ref),
        unit_price=unit_price,
        minimum_quantity=_optional_decimal(data, "minimum_quantity", ref) or Decimal("0"),
        custom_total=custom_total,
        name=data.get("name") or "",
    )


def parse_subcontract(data: dict) -> SubcontractInput:
    ref = str(_require(data, "subcontract_id"))
    return SubcontractInput(
        subcontract_id=ref,
        price=to_decimal(_require(data, "price", ref), "price", ref),
        name=data.get("name") or "",
    )


def parse_transport_zone(data: dict) -> TransportZoneInput:
    ref = str(_require(data, "zone_id"))
    allocations = tuple(
        TransportAllocation(
            product_id=str(_require(a, "product_id", ref)),
            transport_count=to_decimal(_require(a, "transport_count", ref), "transport_count", ref),
        )
        for a in _objects(data, "allocations", ref)
    )
    transport_count = _optional_decimal(data, "transport_count", ref)
    return TransportZoneInput(
        zone_id=ref,
        base_cost=to_decimal(_require(data, "base_cost", ref), "base_cost", ref),
        transport_count=Decimal("1") if transport_count is None else transport_count,
        equipment_cost=_optional_decimal(data, "equipment_cost", ref) or Decimal("0"),
        include_equipment=bool(data.get("include_equipment", False)),
        product_ids=_ids(data, "product_ids", ref),
        allocations=allocations,
        name=data.get("name") or "",
    )


def parse_terms(data: Optional[dict], client_type: Optional[str] = None) -> CommercialTerms:
    """Explicit percentages win; anything missing falls back to client defaults."""
    data = _object(data or {}, "terms", "terms")
    retention = _optional_decimal(data, "retention_percent", "terms")
    retention_enabled = data.get("retention_enabled")
    if retention_enabled is None:
        retention_enabled = retention is not None
    return default_terms(
        client_type,
        margin_percent=_optional_decimal(data, "margin_percent", "terms"),
        retention_enabled=bool(retention_enabled),
        retention_percent=retention,
    )


def parse_quote_input(data: Any) -> QuoteInput:
    data = _object(data, "quote")
    client_type = data.get("client_type")
    return QuoteInput(
        employees=tuple(parse_employee(e) for e in _objects(data, "employees")),
        products=tuple(parse_product(p) for p in _objects(data, "products")),
        machinery=tuple(parse_machinery(m) for m in _objects(data, "machinery")),
        rentals=tuple(parse_rental(r) for r in _objects(data, "rentals")),
        disposables=tuple(parse_disposable(d) for d in _objects(data, "disposables")),
        subcontracts=tuple(parse_subcontract(s) for s in _objects(data, "subcontracts")),
        transport_zones=tuple(parse_transport_zone(z) for z in _objects(data, "transport_zones")),
        terms=parse_terms(data.get("terms"), client_type),
        client_type=client_type,
    )


def parse_engine_version(value: Optional[str]) -> EngineVersion:
    if not value:
        return DEFAULT_ENGINE_VERSION
    try:
        return EngineVersion(value)
    except ValueError:
        raise ValidationError(f"unknown engine version {value!r}")


def parse_line_item(data: dict) -> LineItem:
    """Rebuild a stored line item; ``exact_amount`` takes precedence over ``amount``."""
    ref = str(_require(data, "ref_id"))
    try:
        category = LineCategory(_require(data, "category", ref))
    except ValueError:
        raise ValidationError(f"unknown line category {data.get('category')!r}", ref)
    amount = data.get("exact_amount")
    if amount is None:
        amount = _require(data, "amount", ref)
    return LineItem(
        category=category,
        ref_id=ref,
        description=data.get("description") or "",
        quantity=to_decimal(data.get("quantity", 1), "quantity", ref),
        unit_rate=to_decimal(data.get("exact_unit_rate", data.get("unit_rate", 0)), "unit_rate", ref),
        amount=to_decimal(amount, "amount", ref),
        flags=_ids(data, "flags", ref),
    )


def parse_persisted_quote(data: Any) -> tuple[list[LineItem], CommercialTerms, int, EngineVersion]:
    """Stored line items, terms, total and engine version of a saved quote."""
    data = _object(data, "saved quote")
    terms_data = _object(_require(data, "terms"), "terms", "terms")
    terms = CommercialTerms(
        margin_percent=to_decimal(terms_data.get("margin_percent", 0), "margin_percent", "terms"),
        retention_percent=to_decimal(terms_data.get("retention_percent", 0), "retention_percent", "terms"),
    )
    total = to_decimal(_require(data, "total"), "total")
    if total != total.to_integral_value():
        raise ValidationError(f"stored total must be a whole amount, got {total}")
    return (
        [parse_line_item(item) for item in _objects(data, "line_items")],
        terms,
        int(total),
        parse_engine_version(data.get("engine_version")),
    )


def load_json(path: str | Path) -> Any:
    path = Path(path)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise ValidationError(f"{path.name} is not valid UTF-8: {e}")
    except json.JSONDecodeError as e:
        raise ValidationError(f"{path.name} is not valid JSON: {e}")
