# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
# It provides a single Settings class with all configuration values.
#
# Usage:
#   from app.config import settings
#   print(settings.SUPABASE_URL)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
#
# Stripe and Plaid keys are optional at startup. Endpoints that need them
# answer with a configuration error until they are set.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


PLAID_BASE_URLS = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings are accessed via the global `settings` instance.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------
    # These are required - app won't start without them

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        default="",
        description="Legacy HS256 JWT secret used to verify Supabase access tokens"
    )

    # -------------------------------------------------------------------------
    # Stripe Connect
    # -------------------------------------------------------------------------

    STRIPE_SECRET_KEY: str = Field(
        default="",
        description="Stripe secret key used for Connect account management"
    )

    STRIPE_API_VERSION: str = Field(
        default="2025-08-27.basil",
        description="Pinned Stripe API version"
    )

    # -------------------------------------------------------------------------
    # Plaid
    # -------------------------------------------------------------------------

    PLAID_CLIENT_ID: str = Field(default="", description="Plaid client id")

    PLAID_SECRET: str = Field(default="", description="Plaid secret for PLAID_ENV")

    PLAID_ENV: Literal["sandbox", "development", "production"] = Field(
        default="sandbox",
        description="Plaid environment"
    )

    PLAID_TIMEOUT_SECONDS: float = Field(
        default=15.0,
        gt=0,
        description="HTTP timeout for Plaid API calls"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    APP_URL: str = Field(
        default="http://localhost:5175",
        description="Provider portal base URL (Stripe return links, Phase 2 links)"
    )

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    SECRET_KEY: str = Field(
        default="dev-secret-key-change-in-production",
        min_length=16,
        description="Secret key for signing Phase 2 onboarding tokens"
    )

    PHASE2_TOKEN_TTL_DAYS: int = Field(
        default=7,
        ge=1,
        le=90,
        description="Lifetime of Phase 2 onboarding tokens in days"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:5173,http://localhost:5175",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Image Upload Settings
    # -------------------------------------------------------------------------

    IMAGE_BUCKET: str = Field(
        default="business-images",
        description="Storage bucket for business logos and cover images"
    )

    MAX_IMAGE_SIZE_MB: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum image upload size in MB"
    )

    ALLOWED_IMAGE_TYPES: str = Field(
        default="image/jpeg,image/png,image/webp",
        description="Allowed image content types (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS string into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def allowed_image_types_list(self) -> list[str]:
        """
        Parse ALLOWED_IMAGE_TYPES string into a list.

        Example: "image/png, image/jpeg" -> ["image/png", "image/jpeg"]
        """
        return [t.strip().lower() for t in self.ALLOWED_IMAGE_TYPES.split(",") if t.strip()]

    @property
    def max_image_size_bytes(self) -> int:
        """Convert MB to bytes for upload size validation."""
        return self.MAX_IMAGE_SIZE_MB * 1024 * 1024

    @property
    def stripe_configured(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)

    @property
    def plaid_configured(self) -> bool:
        return bool(self.PLAID_CLIENT_ID and self.PLAID_SECRET)

    @property
    def plaid_base_url(self) -> str:
        return PLAID_BASE_URLS[self.PLAID_ENV]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
