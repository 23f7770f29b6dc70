"""Pydantic request/response models for the Quote API."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class RateTierIn(BaseModel):
    min_hours: Decimal
    max_hours: Decimal | None = None
    rate: Decimal
    description: str = ""


class EmployeeIn(BaseModel):
    employee_id: str
    employee_type: str = ""
    name: str = ""
    hours: Decimal
    flat_rate: Decimal | None = None
    # Tier list, or the legacy {"1-4h", "4-8h", "8h+"} object
    rate_table: list[RateTierIn] | dict[str, Decimal] | None = None
    selected_product_ids: list[str] = []
    extra_cost: Decimal | None = None
    extra_cost_reason: str = ""
    daily_hours: list[Decimal] = []


class ProductIn(BaseModel):
    product_id: str
    name: str = ""
    unit_count: Decimal
    flat_rate: Decimal | None = None
    rate_table: list[RateTierIn] | None = None
    basis: str = "quantity"
    event_hours: Decimal | None = None
    measurement_per_unit: Decimal | None = None


class MachineryIn(BaseModel):
    machinery_id: str
    name: str = ""
    hours: Decimal
    hourly_rate: Decimal
    daily_rate: Decimal
    requires_operator: bool = False
    operator_hourly_rate: Decimal | None = None
    setup_cost: Decimal | None = None


class RentalIn(BaseModel):
    rental_id: str
    name: str = ""
    hours: Decimal | None = None
    hourly_rate: Decimal | None = None
    daily_rate: Decimal | None = None
    requires_operator: bool = False
    operator_hourly_rate: Decimal | None = None
    setup_cost: Decimal | None = None
    delivery_cost: Decimal | None = None
    pickup_cost: Decimal | None = None
    include_delivery: bool = False
    include_pickup: bool = False
    custom_total: Decimal | None = None


class DisposableIn(BaseModel):
    item_id: str
    name: str = ""
    quantity: Decimal
    unit_price: Decimal | None = None
    minimum_quantity: Decimal | None = None
    custom_total: Decimal | None = None


class SubcontractIn(BaseModel):
    subcontract_id: str
    name: str = ""
    price: Decimal


class TransportAllocationIn(BaseModel):
    product_id: str
    transport_count: Decimal


class TransportZoneIn(BaseModel):
    zone_id: str
    name: str = ""
    base_cost: Decimal
    transport_count: Decimal | None = None
    equipment_cost: Decimal | None = None
    include_equipment: bool = False
    product_ids: list[str] = []
    allocations: list[TransportAllocationIn] = []


class TermsIn(BaseModel):
    margin_percent: Decimal | None = None
    retention_percent: Decimal | None = None
    retention_enabled: bool | None = None


class QuoteRequest(BaseModel):
    client_type: str | None = None
    employees: list[EmployeeIn] = []
    products: list[ProductIn] = []
    machinery: list[MachineryIn] = []
    rentals: list[RentalIn] = []
    disposables: list[DisposableIn] = []
    subcontracts: list[SubcontractIn] = []
    transport_zones: list[TransportZoneIn] = []
    terms: TermsIn = TermsIn()
    engine_version: str = "v2"


class LineItemIn(BaseModel):
    category: str
    ref_id: str
    description: str = ""
    quantity: Decimal = Decimal("1")
    unit_rate: Decimal = Decimal("0")
    amount: Decimal | None = None
    exact_amount: Decimal | None = None


class StoredTermsIn(BaseModel):
    margin_percent: Decimal = Decimal("0")
    retention_percent: Decimal = Decimal("0")


class VerifyRequest(BaseModel):
    line_items: list[LineItemIn]
    terms: StoredTermsIn
    total: int
    engine_version: str = "v2"


class QuoteResponse(BaseModel):
    success: bool
    total: int | None = None
    breakdown: dict | None = None
    summary: str | None = None
    warnings: list[str] | None = None
    error_type: str | None = None
    errors: list[str] | None = None


class VerifyResponse(BaseModel):
    success: bool
    matches: bool | None = None
    expected_total: int | None = None
    stored_total: int | None = None
    difference: int | None = None
    error_type: str | None = None
    errors: list[str] | None = None
