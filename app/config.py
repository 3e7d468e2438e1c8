from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.services.webhook_handler import WebhookConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables with validation."""

    model_config = SettingsConfigDict(
        env_file=(str(Path(__file__).resolve().parents[1] / ".env"), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    app_name: str = Field(default="Stripe Subscription Webhook", alias="APP_NAME")
    app_env: Literal["development", "staging", "production", "test"] = Field(
        default="production",
        alias="APP_ENV",
    )
    app_debug: bool = Field(default=False, alias="APP_DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    stripe_webhook_secret: Optional[SecretStr] = Field(default=None, alias="STRIPE_WEBHOOK_SECRET")
    stripe_signature_tolerance: int = Field(
        default=300,
        ge=0,
        alias="STRIPE_SIGNATURE_TOLERANCE",
    )

    # Supabase CLI refuses secrets prefixed with SUPABASE_, hence SERVICE_ROLE_KEY first.
    supabase_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_URL", "SUPABASE_PROJECT_URL"),
    )
    supabase_service_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices(
            "SERVICE_ROLE_KEY",
            "SUPABASE_SERVICE_ROLE_KEY",
            "SUPABASE_SERVICE_KEY",
        ),
    )
    subscribers_table: str = Field(default="unlocked_users", alias="SUBSCRIBERS_TABLE")
    subscription_period_days: int = Field(default=30, ge=1, alias="SUBSCRIPTION_PERIOD_DAYS")

    @field_validator("api_v1_prefix")
    @classmethod
    def validate_api_prefix(cls, value: str) -> str:
        """Ensure the API prefix starts with a slash and has no trailing slash."""
        normalized = value.strip()
        if not normalized.startswith("/"):
            raise ValueError("API_V1_PREFIX must start with '/'.")
        if len(normalized) > 1 and normalized.endswith("/"):
            normalized = normalized.rstrip("/")
        return normalized

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {value!r}.")
        return normalized

    @field_validator("stripe_webhook_secret", "supabase_service_key", "supabase_url", mode="before")
    @classmethod
    def blank_as_unset(cls, value):
        """Treat empty environment values the same as missing ones."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def webhook_config(self) -> WebhookConfig:
        """Build the handler configuration from the loaded settings."""
        return WebhookConfig(
            signing_secret=_reveal(self.stripe_webhook_secret),
            store_url=self.supabase_url,
            store_credential=_reveal(self.supabase_service_key),
            subscription_days=self.subscription_period_days,
        )

    def missing_settings(self) -> list[str]:
        """Names of required environment values that are not set."""
        missing = []
        if self.stripe_webhook_secret is None:
            missing.append("STRIPE_WEBHOOK_SECRET")
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if self.supabase_service_key is None:
            missing.append("SERVICE_ROLE_KEY")
        return missing


def _reveal(value: Optional[SecretStr]) -> Optional[str]:
    return value.get_secret_value() if value is not None else None


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()


settings: Settings = get_settings()
