"""
Centralised application settings.
Uses Pydantic Settings for validation and typing.
"""
from functools import lru_cache
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from beckah.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================
    # Environment
    # ==========================================
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]
    http_timeout_seconds: float = 30.0

    # ==========================================
    # Supabase
    # ==========================================
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_key: str | None = Field(
        default=None,
        description="Supabase service role key",
        validation_alias=AliasChoices("supabase_key", "supabase_service_role_key"),
    )

    # ==========================================
    # OpenAI (listing assistant)
    # ==========================================
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    assistant_temperature: float = 0.8
    assistant_max_tokens: int = 600

    # ==========================================
    # Gemini (pricing, text and image analysis)
    # ==========================================
    gemini_api_key: str | None = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.5-flash"
    gemini_vision_model: str = "gemini-2.0-flash-exp"

    # ==========================================
    # Groq (image analysis, OpenAI-compatible)
    # ==========================================
    groq_api_key: str | None = None
    groq_base_url: str = "https://api.groq.com/openai/v1"
    groq_vision_model: str = "llama-3.2-90b-vision-preview"

    # ==========================================
    # Stripe
    # ==========================================
    stripe_secret_key: str | None = None
    stripe_api_base: str = "https://api.stripe.com/v1"
    payment_currency: str = "usd"

    # ==========================================
    # Resend (transactional email)
    # ==========================================
    resend_api_key: str | None = None
    resend_api_url: str = "https://api.resend.com/emails"
    from_email: str = "onboarding@resend.dev"
    email_sender_name: str = "BECKAH EXCHANGE"
    site_url: str = "https://beckahex.org"

    # ==========================================
    # Marketplace rules
    # ==========================================
    default_suggested_price: float = 10.0
    platform_commission_rate: float = 0.10
    moderation_extra_keywords: list[str] = Field(default_factory=list)

    # ==========================================
    # Computed properties
    # ==========================================
    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def require(self, name: str) -> Any:
        """
        Return a setting that a request cannot proceed without.

        Raises:
            ConfigurationError: if the value is missing or empty
        """
        value = getattr(self, name)
        if not value:
            raise ConfigurationError(f"{name.upper()} is not configured", setting=name.upper())
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of: {valid}")
        return upper


@lru_cache
def get_settings() -> Settings:
    """Return the settings singleton."""
    return Settings()


# Alias for shorter imports
settings = get_settings()
