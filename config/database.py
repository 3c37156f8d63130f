"""
Database connection management.

Provides Supabase client singleton for database operations.
"""

from supabase import create_client, Client
from functools import lru_cache
from typing import Callable, Optional
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)

# PostgREST caps unpaged selects at the project max-rows setting
PAGE_SIZE = 1000


class DatabaseError(Exception):
    """Base exception for database errors."""
    pass


class ConnectionError(DatabaseError):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Uses lru_cache to ensure only one client is created.
    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        ConnectionError: If connection fails
    """
    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )

        client = create_client(
            settings.supabase_url,
            settings.supabase_key
        )

        # Test connection with simple query
        client.table("location_serviceability").select("location_code").limit(1).execute()

        logger.info(
            "supabase_connected",
            status="success"
        )

        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise ConnectionError(f"Failed to connect to Supabase: {e}") from e


def get_admin_client() -> Optional[Client]:
    """
    Get Supabase client with service role key (admin access).

    Only available if SUPABASE_SERVICE_KEY is configured.
    Used by the import script, which writes past row-level security.

    Returns:
        Client: Admin Supabase client, or None if not configured
    """
    if not settings.supabase_service_key:
        logger.warning("admin_client_not_configured")
        return None

    try:
        return create_client(
            settings.supabase_url,
            settings.supabase_service_key
        )
    except Exception as e:
        logger.error(
            "admin_client_failed",
            error=str(e)
        )
        return None


# Convenience alias
db = get_supabase_client


# ===================
# HELPER FUNCTIONS
# ===================

def select_pages(build_query: Callable, page_size: int = PAGE_SIZE) -> list[dict]:
    """
    Run a select page by page until a short page comes back.

    build_query must return a fresh, ordered query on every call.
    """
    rows: list[dict] = []
    offset = 0
    while True:
        result = build_query().range(offset, offset + page_size - 1).execute()
        batch = result.data or []
        rows.extend(batch)
        if len(batch) < page_size:
            return rows
        offset += page_size


def check_connection() -> dict:
    """
    Check database connection health.

    Returns:
        dict: Connection status with details
    """
    try:
        client = get_supabase_client()

        prices = (
            client.table("location_prices")
            .select("id", count="exact")
            .eq("is_active", True)
            .execute()
        )
        locations = (
            client.table("location_serviceability")
            .select("location_code", count="exact")
            .execute()
        )

        return {
            "status": "healthy",
            "active_prices_count": prices.count,
            "locations_count": locations.count
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }
