"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    PricingConfig: Explicit pricing options handed to services
    db: Function to get Supabase client
    get_supabase_client: Same as db
    check_connection: Health check function
"""

from config.settings import settings, get_settings, Settings
from config.pricing import PricingConfig
from config.database import (
    db,
    get_supabase_client,
    get_admin_client,
    check_connection,
    select_pages,
    PAGE_SIZE,
    DatabaseError,
    ConnectionError
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",
    "PricingConfig",

    # Database
    "db",
    "get_supabase_client",
    "get_admin_client",
    "check_connection",
    "select_pages",
    "PAGE_SIZE",
    "DatabaseError",
    "ConnectionError",
]
