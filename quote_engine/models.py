"""Layer 2 — Canonical Data Model for the quote pricing engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Union


class LineCategory(Enum):
    LABOR = "labor"
    PRODUCT = "product"
    MACHINERY = "machinery"


class PricingBasis(Enum):
    """What a product's rate tier is keyed on."""
    QUANTITY = "quantity"
    DURATION = "duration"


class EngineVersion(Enum):
    """Assembly formula revision.

    V1 applies retention to the bare subtotal (quotes persisted before the
    retention fix). V2 applies retention to the margin-inclusive subtotal.
    """
    V1 = "v1"
    V2 = "v2"


DEFAULT_ENGINE_VERSION = EngineVersion.V2


# --- Errors ---

class QuoteEngineError(Exception):
    """Base class for every error raised by the engine."""


class ValidationError(QuoteEngineError):
    """Malformed or out-of-range input."""
    def __init__(self, message: str, ref_id: Optional[str] = None):
        self.message = message
        self.ref_id = ref_id
        super().__init__(f"{ref_id}: {message}" if ref_id else message)


class RateCoverageError(QuoteEngineError):
    """No tier of a rate table covers the requested hours/quantity."""
    def __init__(self, value: Decimal, floor: Decimal, ref_id: Optional[str] = None):
        self.value = value
        self.floor = floor
        self.ref_id = ref_id
        message = f"no rate tier covers {value} (table starts at {floor})"
        super().__init__(f"{ref_id}: {message}" if ref_id else message)


class ConfigurationError(QuoteEngineError):
    """A rate tier or rate table violates its construction invariant."""


class QuoteValidationError(QuoteEngineError):
    """Raised when pre-flight validation of a quote fails."""
    def __init__(self, errors: list[QuoteEngineError]):
        self.errors = errors
        super().__init__(f"Quote validation failed with {len(errors)} error(s):\n" +
                         "\n".join(f"  - {e}" for e in errors))


# --- Rate tables ---

@dataclass(frozen=True)
class RateTier:
    """One hour (or quantity) range with its unit rate."""
    min_hours: Decimal
    max_hours: Optional[Decimal]
    rate: Decimal
    description: str = ""

    def __post_init__(self) -> None:
        if self.min_hours < 0:
            raise ConfigurationError(f"Tier min_hours must be >= 0, got {self.min_hours}")
        if self.max_hours is not None and self.max_hours <= self.min_hours:
            raise ConfigurationError(
                f"Tier max_hours must be greater than min_hours, got {self.min_hours}-{self.max_hours}"
            )
        if self.rate < 0:
            raise ConfigurationError(f"Tier rate must be >= 0, got {self.rate}")

    def covers(self, hours: Decimal) -> bool:
        return self.min_hours <= hours and (self.max_hours is None or hours < self.max_hours)

    @property
    def label(self) -> str:
        if self.max_hours is None:
            return f"{self.min_hours}h+"
        return f"{self.min_hours}-{self.max_hours}h"


def contiguity_problems(tiers: Iterable[RateTier]) -> list[str]:
    """List every way a tier sequence breaks the contiguous-table invariant."""
    tiers = list(tiers)
    if not tiers:
        return ["rate table has no tiers"]

    problems: list[str] = []
    for current, following in zip(tiers, tiers[1:]):
        if current.max_hours is None:
            problems.append(f"tier {current.label} is open-ended but is not the last tier")
        elif current.max_hours < following.min_hours:
            problems.append(f"gap between {current.label} and {following.label}")
        elif current.max_hours > following.min_hours:
            problems.append(f"overlap between {current.label} and {following.label}")

    if tiers[-1].max_hours is not None:
        problems.append(f"last tier {tiers[-1].label} must be open-ended")
    return problems


@dataclass(frozen=True)
class RateTable:
    """Contiguous, non-overlapping tiers sorted by min_hours."""
    tiers: tuple[RateTier, ...]

    def __post_init__(self) -> None:
        problems = contiguity_problems(self.tiers)
        if problems:
            raise ConfigurationError("Invalid rate table: " + "; ".join(problems))

    @classmethod
    def from_tiers(cls, tiers: Iterable[RateTier]) -> "RateTable":
        return cls(tuple(sorted(tiers, key=lambda t: t.min_hours)))

    @property
    def floor(self) -> Decimal:
        return self.tiers[0].min_hours


@dataclass(frozen=True)
class FlatPricing:
    rate: Decimal


@dataclass(frozen=True)
class TieredPricing:
    table: RateTable


PricingMode = Union[FlatPricing, TieredPricing]


# --- Inputs ---

@dataclass(frozen=True)
class EmployeeInput:
    """One employee booked on a quote draft."""
    employee_id: str
    employee_type: str
    hours: Decimal
    pricing: PricingMode
    selected_product_ids: frozenset[str] = frozenset()
    name: str = ""
    extra_cost: Decimal = Decimal("0")
    extra_cost_reason: str = ""
    # One entry per event day; empty for single-day events
    daily_hours: tuple[Decimal, ...] = ()

    @property
    def is_multiday(self) -> bool:
        return len(self.daily_hours) > 1


@dataclass(frozen=True)
class ProductInput:
    product_id: str
    unit_count: Decimal
    pricing: PricingMode
    basis: PricingBasis = PricingBasis.QUANTITY
    event_hours: Optional[Decimal] = None
    measurement_per_unit: Optional[Decimal] = None
    name: str = ""

    @property
    def tier_key(self) -> Optional[Decimal]:
        """Value the product's rate tier is resolved against."""
        if self.basis == PricingBasis.DURATION:
            return self.event_hours
        return self.unit_count


@dataclass(frozen=True)
class MachineryInput:
    machinery_id: str
    hours: Decimal
    hourly_rate: Decimal
    daily_rate: Decimal
    requires_operator: bool = False
    operator_hourly_rate: Optional[Decimal] = None
    setup_cost: Decimal = Decimal("0")
    name: str = ""


@dataclass(frozen=True)
class MachineryRentalInput:
    """Machinery rented from a third party for the event."""
    rental_id: str
    hours: Decimal
    hourly_rate: Decimal
    daily_rate: Decimal
    requires_operator: bool = False
    operator_hourly_rate: Optional[Decimal] = None
    setup_cost: Decimal = Decimal("0")
    delivery_cost: Decimal = Decimal("0")
    pickup_cost: Decimal = Decimal("0")
    include_delivery: bool = False
    include_pickup: bool = False
    # Negotiated price replacing every computed component
    custom_total: Optional[Decimal] = None
    name: str = ""


@dataclass(frozen=True)
class DisposableItemInput:
    item_id: str
    quantity: Decimal
    unit_price: Decimal
    minimum_quantity: Decimal = Decimal("0")
    custom_total: Optional[Decimal] = None
    name: str = ""

    @property
    def billed_quantity(self) -> Decimal:
        return max(self.quantity, self.minimum_quantity)


@dataclass(frozen=True)
class SubcontractInput:
    """Event service bought from a supplier at a fixed price."""
    subcontract_id: str
    price: Decimal
    name: str = ""


@dataclass(frozen=True)
class TransportAllocation:
    product_id: str
    transport_count: Decimal


@dataclass(frozen=True)
class TransportZoneInput:
    """Trips to one delivery zone.

    With ``allocations`` every product is charged its own trip count.
    Otherwise the zone's trips are split evenly across ``product_ids``, or
    charged as a single line when no product is named.
    """
    zone_id: str
    base_cost: Decimal
    transport_count: Decimal = Decimal("1")
    equipment_cost: Decimal = Decimal("0")
    include_equipment: bool = False
    product_ids: tuple[str, ...] = ()
    allocations: tuple[TransportAllocation, ...] = ()
    name: str = ""

    @property
    def cost_per_trip(self) -> Decimal:
        if self.include_equipment:
            return self.base_cost + self.equipment_cost
        return self.base_cost


@dataclass(frozen=True)
class CommercialTerms:
    """Margin and retention percentages, both in [0, 100)."""
    margin_percent: Decimal = Decimal("0")
    retention_percent: Decimal = Decimal("0")


@dataclass(frozen=True)
class QuoteInput:
    """Everything compute_quote needs for one quote."""
    employees: tuple[EmployeeInput, ...] = ()
    products: tuple[ProductInput, ...] = ()
    machinery: tuple[MachineryInput, ...] = ()
    rentals: tuple[MachineryRentalInput, ...] = ()
    disposables: tuple[DisposableItemInput, ...] = ()
    subcontracts: tuple[SubcontractInput, ...] = ()
    transport_zones: tuple[TransportZoneInput, ...] = ()
    terms: CommercialTerms = field(default_factory=CommercialTerms)
    client_type: Optional[str] = None


# --- Outputs ---

UNATTENDED = "unattended"


@dataclass(frozen=True)
class LineItem:
    """One priced contribution to a quote. The amount is kept unrounded."""
    category: LineCategory
    ref_id: str
    description: str
    quantity: Decimal
    unit_rate: Decimal
    amount: Decimal
    flags: tuple[str, ...] = ()


@dataclass(frozen=True)
class QuoteComputation:
    """Final computed quote. Money fields are whole currency units."""
    labor_subtotal: int
    products_subtotal: int
    machinery_subtotal: int
    base_subtotal: int
    margin_amount: int
    retention_amount: int
    total: int
    line_items: tuple[LineItem, ...]
    terms: CommercialTerms
    engine_version: EngineVersion = DEFAULT_ENGINE_VERSION
    warnings: tuple[str, ...] = ()

    @property
    def unattended_product_ids(self) -> list[str]:
        return [
            item.ref_id for item in self.line_items
            if item.category == LineCategory.PRODUCT and UNATTENDED in item.flags
        ]

    def items_for(self, category: LineCategory) -> list[LineItem]:
        return [item for item in self.line_items if item.category == category]


@dataclass(frozen=True)
class TotalReconciliation:
    """Outcome of replaying assembly against a persisted total."""
    expected_total: int
    stored_total: int
    engine_version: EngineVersion

    @property
    def difference(self) -> int:
        return self.stored_total - self.expected_total

    @property
    def matches(self) -> bool:
        return self.difference == 0
