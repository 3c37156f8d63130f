"""
Read-only view of the product catalog.

The catalog itself is managed elsewhere; pricing only needs to know which
products exist and how to label them in templates.
"""

from typing import Iterable, Optional
import structlog

from config import get_supabase_client
from services.interfaces import CatalogProduct
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

ID_CHUNK_SIZE = 200


class CatalogService:
    """
    Product lookups.

    Implements the ProductCatalog interface.
    """

    def __init__(self, client=None):
        self.db = client or get_supabase_client()
        self.table = "products"

    def exists(self, product_id: str) -> bool:
        """Check if an active product exists."""
        return product_id in self.existing_ids([product_id])

    def existing_ids(self, product_ids: Iterable[str]) -> set[str]:
        """Subset of product_ids that are active catalog products."""
        ids = sorted(set(product_ids))
        found: set[str] = set()

        try:
            for start in range(0, len(ids), ID_CHUNK_SIZE):
                result = (
                    self.db.table(self.table)
                    .select("id")
                    .in_("id", ids[start:start + ID_CHUNK_SIZE])
                    .eq("active", True)
                    .execute()
                )
                found.update(row["id"] for row in result.data or [])
        except Exception as e:
            logger.error("catalog_lookup_failed", count=len(ids), error=str(e))
            raise DatabaseError("select", str(e))

        return found

    def list_products(
        self,
        limit: int,
        product_id: Optional[str] = None,
    ) -> list[CatalogProduct]:
        """
        List active products ordered by SKU.

        Args:
            limit: Maximum products returned
            product_id: Restrict to a single product
        """
        logger.debug("listing_catalog_products", limit=limit, product_id=product_id)

        try:
            query = (
                self.db.table(self.table)
                .select("id,sku,title")
                .eq("active", True)
            )
            if product_id:
                query = query.eq("id", product_id)
            result = query.order("sku").limit(limit).execute()
        except Exception as e:
            logger.error("list_catalog_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return [
            CatalogProduct(
                id=row["id"],
                sku=row.get("sku"),
                title=row.get("title"),
            )
            for row in result.data or []
        ]


# Singleton instance for convenience
_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
