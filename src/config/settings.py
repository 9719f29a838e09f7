"""Environment configuration and validation.

This module defines strongly-typed application settings loaded from environment variables
(optionally via a local `.env` file).

The category catalog is validated here once at startup so every interpretation call receives a
well-formed, duplicate-free list.
"""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.intent.schema import DEFAULT_CATEGORIES


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    telegram_bot_token: str = Field(alias="TELEGRAM_BOT_TOKEN")
    database_url: str = Field(alias="DATABASE_URL")

    thinking_delay_s: float = Field(default=1.0, ge=0, alias="THINKING_DELAY_S")
    currency_symbol: str = Field(default="₹", min_length=1, alias="CURRENCY_SYMBOL")
    monthly_budget: float = Field(default=5000.0, gt=0, alias="MONTHLY_BUDGET")
    expense_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORIES),
        alias="EXPENSE_CATEGORIES",
    )
    default_bank_name: str = Field(default="Default Bank", min_length=1, alias="DEFAULT_BANK_NAME")

    @field_validator("expense_categories")
    @classmethod
    def validate_expense_categories(cls, value: list[str]) -> list[str]:
        """Validate the category catalog.

        Names are trimmed; the list must be non-empty and free of case-insensitive duplicates,
        because category lookups from chat text are case-insensitive.
        """

        cleaned = [name.strip() for name in value]
        if not cleaned or any(not name for name in cleaned):
            raise ValueError("EXPENSE_CATEGORIES must be a non-empty list of names")

        lowered = [name.lower() for name in cleaned]
        if len(set(lowered)) != len(lowered):
            raise ValueError("EXPENSE_CATEGORIES must not contain duplicates")
        return cleaned


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is missing or invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        # Raising here is fine: caller can decide how to handle startup errors.
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
