"""Tests for client-type commercial defaults and payment terms."""

from decimal import Decimal

from quote_engine.config import Settings
from quote_engine.engine.commercial import (
    CORPORATE,
    SOCIAL,
    default_margin,
    default_terms,
    payment_terms,
)


def _settings(**kwargs) -> Settings:
    return Settings(**kwargs)


class TestDefaultTerms:
    def test_margin_per_client_type(self):
        settings = _settings()
        assert default_margin(CORPORATE, settings) == Decimal("30")
        assert default_margin(SOCIAL, settings) == Decimal("25")
        assert default_margin(None, settings) == Decimal("25")

    def test_explicit_margin_wins(self):
        terms = default_terms(CORPORATE, margin_percent=Decimal("12"), settings=_settings())
        assert terms.margin_percent == Decimal("12")

    def test_retention_off_by_default(self):
        terms = default_terms(SOCIAL, retention_percent=Decimal("4"), settings=_settings())
        assert terms.retention_percent == Decimal("0")

    def test_retention_enabled_default_percent(self):
        terms = default_terms(SOCIAL, retention_enabled=True, settings=_settings())
        assert terms.retention_percent == Decimal("4")

    def test_retention_enabled_explicit_percent(self):
        terms = default_terms(
            SOCIAL, retention_enabled=True, retention_percent=Decimal("2.5"), settings=_settings(),
        )
        assert terms.retention_percent == Decimal("2.5")

    def test_overridden_settings(self):
        settings = _settings(DEFAULT_MARGIN_CORPORATE=Decimal("35"))
        assert default_terms(CORPORATE, settings=settings).margin_percent == Decimal("35")


class TestPaymentTerms:
    def test_corporate_days(self):
        assert payment_terms(100000, CORPORATE, _settings()).days == 30

    def test_social_days(self):
        assert payment_terms(100000, SOCIAL, _settings()).days == 15

    def test_advance_above_threshold(self):
        terms = payment_terms(547200, CORPORATE, _settings())
        assert terms.requires_advance
        assert terms.advance_percent == 50

    def test_threshold_itself_needs_no_advance(self):
        terms = payment_terms(500000, SOCIAL, _settings())
        assert not terms.requires_advance
        assert terms.advance_percent == 0
