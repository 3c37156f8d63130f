"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # PRICING
    # ===================
    currency_code: str = Field(
        default="INR",
        min_length=3,
        max_length=3,
        description="ISO currency code shown in price lookups"
    )
    currency_symbol: str = Field(
        default="₹",
        description="Symbol used in formatted prices"
    )
    default_location_codes: list[str] = Field(
        default=["110001", "400001", "560001", "600001", "700001"],
        description="Template columns when no codes are supplied or on file"
    )
    verify_products: bool = Field(
        default=False,
        description="Reject import candidates whose product is not in the catalog"
    )

    # ===================
    # LIMITS
    # ===================
    max_report_errors: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Maximum error strings kept in an import report"
    )
    bulk_lookup_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum products per bulk price lookup"
    )
    availability_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum products per availability check"
    )
    template_product_limit: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Maximum product rows in a generated template"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
