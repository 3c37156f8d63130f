"""
Location price store backed by Supabase.

Table `location_prices` carries a unique constraint on
(product_id, location_code), so there is at most one row per pair and
therefore at most one active price. Every write goes through a PostgREST
upsert (INSERT ... ON CONFLICT DO UPDATE), which is atomic per record.
"""

from datetime import datetime
from typing import Callable, Iterable, Optional
import structlog

from config import PAGE_SIZE, get_supabase_client, select_pages
from models.pricing import PriceRecord, PricingStatistics
from parsers.price_sheet_parser import PriceCandidate
from services.interfaces import BulkUpsertResult, RowError
from exceptions import (
    AppError,
    DatabaseError,
    PriceConflictError,
)

logger = structlog.get_logger(__name__)

ID_CHUNK_SIZE = 200
CONFLICT_COLUMNS = "product_id,location_code"
UNIQUE_VIOLATION = "23505"


class LocationPriceService:
    """
    Price persistence.

    Implements the PriceStore interface.
    """

    def __init__(self, client=None):
        self.db = client or get_supabase_client()
        self.table = "location_prices"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_active(self, product_id: str, location_code: str) -> Optional[PriceRecord]:
        """
        Get the active price for one pair.

        Returns:
            PriceRecord or None if the pair has no active price
        """
        logger.debug(
            "getting_active_price",
            product_id=product_id,
            location_code=location_code
        )

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("product_id", product_id)
                .eq("location_code", location_code)
                .eq("is_active", True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_active_price_failed",
                product_id=product_id,
                location_code=location_code,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return PriceRecord(**result.data[0])

    def list_active(
        self,
        product_id: Optional[str] = None,
        location_codes: Optional[Iterable[str]] = None,
        product_ids: Optional[Iterable[str]] = None,
    ) -> list[PriceRecord]:
        """
        List active prices, optionally narrowed by product and/or locations.

        An empty location_codes or product_ids collection matches nothing.
        """
        codes = list(location_codes) if location_codes is not None else None
        ids = sorted(set(product_ids)) if product_ids is not None else None
        if codes == [] or ids == []:
            return []

        def build():
            query = self.db.table(self.table).select("*").eq("is_active", True)
            if product_id:
                query = query.eq("product_id", product_id)
            if codes:
                query = query.in_("location_code", codes)
            if ids:
                query = query.in_("product_id", ids)
            return query.order("product_id").order("location_code")

        try:
            rows = self._select_pages(build)
        except Exception as e:
            logger.error("list_active_prices_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

        return [PriceRecord(**row) for row in rows]

    def statistics(self) -> PricingStatistics:
        """Counters over all active prices."""
        def build():
            return (
                self.db.table(self.table)
                .select("product_id,location_code,price_minor")
                .eq("is_active", True)
                .order("id")
            )

        try:
            rows = self._select_pages(build)
        except Exception as e:
            logger.error("price_statistics_failed", error=str(e))
            raise DatabaseError("select", str(e))

        if not rows:
            return PricingStatistics()

        prices = [int(row["price_minor"]) for row in rows]
        return PricingStatistics(
            total_prices=len(rows),
            total_products=len({row["product_id"] for row in rows}),
            total_locations=len({row["location_code"] for row in rows}),
            min_price_minor=min(prices),
            max_price_minor=max(prices),
            avg_price_minor=round(sum(prices) / len(prices)),
        )

    # ===================
    # WRITE OPERATIONS
    # ===================

    def bulk_upsert(self, candidates: list[PriceCandidate]) -> BulkUpsertResult:
        """
        Write candidates in order, one atomic upsert each.

        A pair with an active price is updated, anything else (new pair or
        previously deactivated row) is created. Repeated pairs resolve to the
        last occurrence. Failures are collected per candidate and do not stop
        the batch.

        Returns:
            BulkUpsertResult with created/updated/unchanged counts and errors

        Raises:
            DatabaseError: If existing prices cannot be read before writing
        """
        result = BulkUpsertResult()
        if not candidates:
            return result

        logger.info("bulk_upsert_prices", count=len(candidates))

        known = self._existing_rows({c.product_id for c in candidates})

        for candidate in candidates:
            prior = known.get(candidate.key)

            try:
                self._upsert_one(candidate)
            except AppError as e:
                logger.warning(
                    "price_upsert_failed",
                    product_id=candidate.product_id,
                    location_code=candidate.location_code,
                    row=candidate.row,
                    code=e.code
                )
                result.errors.append(RowError(
                    product_id=candidate.product_id,
                    location_code=candidate.location_code,
                    code=e.code,
                    message=e.message,
                    row=candidate.row,
                ))
                continue

            if prior is None or not prior.get("is_active"):
                result.created += 1
            else:
                result.updated += 1
                if prior.get("price_minor") == candidate.price_minor:
                    result.unchanged += 1

            known[candidate.key] = {
                "price_minor": candidate.price_minor,
                "is_active": True,
            }

        logger.info(
            "bulk_upsert_complete",
            created=result.created,
            updated=result.updated,
            unchanged=result.unchanged,
            failed=result.failed
        )
        return result

    def deactivate(self, product_id: str, location_code: str) -> bool:
        """
        Soft delete the active price for one pair.

        Returns:
            True if an active price was deactivated
        """
        logger.info("deactivating_price", product_id=product_id, location_code=location_code)

        try:
            result = (
                self.db.table(self.table)
                .update({"is_active": False, "updated_at": _now()})
                .eq("product_id", product_id)
                .eq("location_code", location_code)
                .eq("is_active", True)
                .execute()
            )
        except Exception as e:
            logger.error(
                "deactivate_price_failed",
                product_id=product_id,
                location_code=location_code,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

        return bool(result.data)

    def deactivate_product(self, product_id: str) -> int:
        """
        Soft delete every active price of a product removed from the catalog.

        Returns:
            Number of prices deactivated
        """
        logger.info("deactivating_product_prices", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .update({"is_active": False, "updated_at": _now()})
                .eq("product_id", product_id)
                .eq("is_active", True)
                .execute()
            )
        except Exception as e:
            logger.error("deactivate_product_prices_failed", product_id=product_id, error=str(e))
            raise DatabaseError("update", str(e))

        count = len(result.data or [])
        logger.info("product_prices_deactivated", product_id=product_id, count=count)
        return count

    # ===================
    # HELPERS
    # ===================

    def _upsert_one(self, candidate: PriceCandidate) -> None:
        payload = {
            "product_id": candidate.product_id,
            "location_code": candidate.location_code,
            "price_minor": candidate.price_minor,
            "sku": candidate.sku,
            "is_active": True,
            "updated_at": _now(),
        }
        try:
            (
                self.db.table(self.table)
                .upsert(payload, on_conflict=CONFLICT_COLUMNS)
                .execute()
            )
        except Exception as e:
            if _is_unique_violation(e):
                raise PriceConflictError(
                    candidate.product_id,
                    candidate.location_code,
                    reason=str(e)
                )
            raise DatabaseError(
                "upsert",
                str(e),
                details={
                    "product_id": candidate.product_id,
                    "location_code": candidate.location_code,
                }
            )

    def _existing_rows(self, product_ids: set[str]) -> dict[tuple[str, str], dict]:
        """Current rows (active or not) for the given products, keyed by pair."""
        ids = sorted(product_ids)
        rows: list[dict] = []

        try:
            for start in range(0, len(ids), ID_CHUNK_SIZE):
                chunk = ids[start:start + ID_CHUNK_SIZE]
                rows.extend(self._select_pages(
                    lambda chunk=chunk: (
                        self.db.table(self.table)
                        .select("product_id,location_code,price_minor,is_active")
                        .in_("product_id", chunk)
                        .order("id")
                    )
                ))
        except Exception as e:
            logger.error("existing_prices_lookup_failed", products=len(ids), error=str(e))
            raise DatabaseError("select", str(e))

        return {(row["product_id"], row["location_code"]): row for row in rows}

    def _select_pages(self, build_query: Callable) -> list[dict]:
        return select_pages(build_query, PAGE_SIZE)


def _now() -> str:
    return datetime.utcnow().isoformat()


def _is_unique_violation(error: Exception) -> bool:
    code = getattr(error, "code", None)
    if code == UNIQUE_VIOLATION:
        return True
    text = str(error).lower()
    return UNIQUE_VIOLATION in text or "duplicate key" in text


# Singleton instance for convenience
_location_price_service: Optional[LocationPriceService] = None


def get_location_price_service() -> LocationPriceService:
    """Get or create LocationPriceService instance."""
    global _location_price_service
    if _location_price_service is None:
        _location_price_service = LocationPriceService()
    return _location_price_service
