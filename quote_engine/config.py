from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Commercial defaults
    DEFAULT_MARGIN_SOCIAL: Decimal = Decimal("25")
    DEFAULT_MARGIN_CORPORATE: Decimal = Decimal("30")
    DEFAULT_MARGIN_OTHER: Decimal = Decimal("25")
    DEFAULT_RETENTION_PERCENT: Decimal = Decimal("4")

    # Payment terms
    PAYMENT_DAYS_SOCIAL: int = 15
    PAYMENT_DAYS_CORPORATE: int = 30
    ADVANCE_THRESHOLD: int = 500000
    ADVANCE_PERCENT: int = 50

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # API: comma-separated, "*" allows any origin
    ALLOWED_ORIGINS: str = ""

    model_config = SettingsConfigDict(env_prefix="QUOTE_ENGINE_", env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
