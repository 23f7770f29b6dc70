"""Commercial defaults and payment terms per client type."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from quote_engine.config import Settings, get_settings
from quote_engine.models import CommercialTerms

SOCIAL = "social"
CORPORATE = "corporativo"


@dataclass(frozen=True)
class PaymentTerms:
    days: int
    requires_advance: bool
    advance_percent: int


def default_margin(client_type: Optional[str], settings: Optional[Settings] = None) -> Decimal:
    settings = settings or get_settings()
    if client_type == CORPORATE:
        return settings.DEFAULT_MARGIN_CORPORATE
    if client_type == SOCIAL:
        return settings.DEFAULT_MARGIN_SOCIAL
    return settings.DEFAULT_MARGIN_OTHER


def default_terms(
    client_type: Optional[str],
    margin_percent: Optional[Decimal] = None,
    retention_enabled: bool = False,
    retention_percent: Optional[Decimal] = None,
    settings: Optional[Settings] = None,
) -> CommercialTerms:
    """Fill in whatever the caller left out with the client type's defaults.

    Retention only applies when explicitly enabled.
    """
    settings = settings or get_settings()
    margin = margin_percent if margin_percent is not None else default_margin(client_type, settings)
    if not retention_enabled:
        retention = Decimal("0")
    elif retention_percent is not None:
        retention = retention_percent
    else:
        retention = settings.DEFAULT_RETENTION_PERCENT
    return CommercialTerms(margin_percent=margin, retention_percent=retention)


def payment_terms(
    total: int,
    client_type: Optional[str],
    settings: Optional[Settings] = None,
) -> PaymentTerms:
    """Payment window and advance requirement for a computed total."""
    settings = settings or get_settings()
    days = settings.PAYMENT_DAYS_CORPORATE if client_type == CORPORATE else settings.PAYMENT_DAYS_SOCIAL
    requires_advance = total > settings.ADVANCE_THRESHOLD
    return PaymentTerms(
        days=days,
        requires_advance=requires_advance,
        advance_percent=settings.ADVANCE_PERCENT if requires_advance else 0,
    )
