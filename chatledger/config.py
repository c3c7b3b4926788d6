from functools import lru_cache
from typing import Optional

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATEGORIES = (
    "🏠 Housing and utilities",
    "🛒 Groceries",
    "🍔 Outside food",
    "👖 Clothes and 👟 shoes",
    "🪥 Household",
    "🚌 Commuting",
    "🍿 Entertainment",
)

SUPPORTED_CURRENCIES = ("SGD", "USD", "EUR", "GBP", "AUD", "JPY", "MYR", "IDR", "INR", "CNY")

SUPPORTED_TIMEZONES = (
    "Asia/Singapore",
    "Asia/Jakarta",
    "Asia/Kolkata",
    "Asia/Tokyo",
    "Australia/Sydney",
    "Europe/London",
    "Europe/Berlin",
    "America/New_York",
    "America/Los_Angeles",
    "UTC",
)


class LedgerConfig(BaseModel):
    """Immutable configuration handed to the ledger core on every call."""

    model_config = ConfigDict(frozen=True)

    default_currency: str = "SGD"
    default_timezone: str = "Asia/Singapore"
    bot_mention: Optional[str] = None
    default_categories: tuple[str, ...] = DEFAULT_CATEGORIES
    supported_currencies: tuple[str, ...] = SUPPORTED_CURRENCIES
    supported_timezones: tuple[str, ...] = SUPPORTED_TIMEZONES


class Settings(BaseSettings):
    """Centralised application settings, sourced from environment variables or .env."""

    app_name: str = Field(default="ChatLedger")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    database_url: str = Field(alias="DATABASE_URL")
    direct_database_url: Optional[str] = Field(
        default=None,
        alias="DIRECT_DATABASE_URL",
        description="Optional direct Postgres connection string used for running migrations.",
    )
    auto_run_migrations: bool = Field(default=False, alias="AUTO_RUN_MIGRATIONS")
    telegram_bot_token: Optional[str] = Field(default=None, alias="TELEGRAM_BOT_TOKEN")
    telegram_webhook_secret: Optional[str] = Field(
        default=None, alias="TELEGRAM_WEBHOOK_SECRET"
    )
    backend_base_url: Optional[AnyHttpUrl] = Field(
        default=None,
        alias="BACKEND_BASE_URL",
        description="The public URL where FastAPI is reachable (used by Telegram webhooks).",
    )
    telegram_register_webhook_on_start: bool = Field(
        default=False, alias="TELEGRAM_REGISTER_WEBHOOK_ON_START"
    )
    bot_mention: Optional[str] = Field(
        default=None,
        alias="BOT_MENTION",
        description="Mention token (e.g. @chatledger_bot) that group messages must start with.",
    )
    default_currency: str = Field(default="SGD", alias="DEFAULT_CURRENCY", min_length=3, max_length=3)
    default_timezone: str = Field(default="Asia/Singapore", alias="DEFAULT_TIMEZONE")
    default_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORIES), alias="DEFAULT_CATEGORIES"
    )
    supported_currencies: list[str] = Field(
        default_factory=lambda: list(SUPPORTED_CURRENCIES), alias="SUPPORTED_CURRENCIES"
    )
    supported_timezones: list[str] = Field(
        default_factory=lambda: list(SUPPORTED_TIMEZONES), alias="SUPPORTED_TIMEZONES"
    )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("default_currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()

    @field_validator("supported_currencies")
    @classmethod
    def _upper_currencies(cls, value: list[str]) -> list[str]:
        return [code.strip().upper() for code in value if code.strip()]

    @model_validator(mode="after")
    def _default_currency_supported(self) -> "Settings":
        if self.default_currency not in self.supported_currencies:
            raise ValueError("DEFAULT_CURRENCY must be one of SUPPORTED_CURRENCIES")
        return self

    def ledger_config(self) -> LedgerConfig:
        """Snapshot of the values the ledger core depends on."""
        return LedgerConfig(
            default_currency=self.default_currency,
            default_timezone=self.default_timezone,
            bot_mention=self.bot_mention or None,
            default_categories=tuple(self.default_categories),
            supported_currencies=tuple(self.supported_currencies),
            supported_timezones=tuple(self.supported_timezones),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached accessor so imports share a single settings instance."""
    return Settings()  # type: ignore[call-arg]
