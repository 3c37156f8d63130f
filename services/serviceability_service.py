"""
Serviceability lookups by location code.

Rows in `location_serviceability` are maintained by coverage management;
this service only reads them.
"""

from typing import Optional
import structlog

from config import get_supabase_client, select_pages
from models.pricing import is_valid_location_code
from models.serviceability import CoverageStatistics, ServiceabilityRecord
from exceptions import (
    DatabaseError,
    InvalidSearchQueryError,
    ServiceabilityNotFoundError,
)

logger = structlog.get_logger(__name__)

MIN_SEARCH_LENGTH = 2
SEARCH_COLUMNS = ("city", "state")


class ServiceabilityService:
    """
    Delivery metadata per location.

    Implements the ServiceabilityIndex interface.
    """

    def __init__(self, client=None):
        self.db = client or get_supabase_client()
        self.table = "location_serviceability"

    def find(self, location_code: str) -> Optional[ServiceabilityRecord]:
        """Get the record for a location, or None if there is none."""
        if not is_valid_location_code(location_code):
            return None

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("location_code", location_code)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_serviceability_failed",
                location_code=location_code,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            return None
        return ServiceabilityRecord(**result.data[0])

    def get(self, location_code: str) -> ServiceabilityRecord:
        """
        Get the record for a location.

        Raises:
            ServiceabilityNotFoundError: If the location has no record
        """
        record = self.find(location_code)
        if record is None:
            raise ServiceabilityNotFoundError(location_code)
        return record

    def is_serviceable(self, location_code: str) -> bool:
        """False when the location has no record or is marked unserviceable."""
        record = self.find(location_code)
        serviceable = record is not None and record.serviceable
        logger.debug(
            "serviceability_checked",
            location_code=location_code,
            known=record is not None,
            serviceable=serviceable
        )
        return serviceable

    def list_serviceable_codes(self) -> list[str]:
        """Sorted codes of every serviceable location."""
        try:
            rows = select_pages(
                lambda: (
                    self.db.table(self.table)
                    .select("location_code")
                    .eq("serviceable", True)
                    .order("location_code")
                )
            )
        except Exception as e:
            logger.error("list_serviceable_codes_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return sorted({row["location_code"] for row in rows})

    def search(self, query: str, limit: int = 50) -> list[ServiceabilityRecord]:
        """
        Serviceable locations whose city or state contains the query.

        Case-insensitive substring match. Results are sorted by location
        code and capped at limit.

        Raises:
            InvalidSearchQueryError: If the query is shorter than 2 characters
        """
        term = (query or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise InvalidSearchQueryError(term, MIN_SEARCH_LENGTH)

        logger.debug("searching_locations", query=term, limit=limit)

        pattern = f"%{term}%"
        matches: dict[str, ServiceabilityRecord] = {}
        try:
            for column in SEARCH_COLUMNS:
                result = (
                    self.db.table(self.table)
                    .select("*")
                    .ilike(column, pattern)
                    .eq("serviceable", True)
                    .order("location_code")
                    .limit(limit)
                    .execute()
                )
                for row in result.data or []:
                    matches.setdefault(row["location_code"], ServiceabilityRecord(**row))
        except Exception as e:
            logger.error("search_locations_failed", query=term, error=str(e))
            raise DatabaseError("select", str(e))

        return [matches[code] for code in sorted(matches)][:limit]

    def coverage(self) -> CoverageStatistics:
        """Counters over every location on file."""
        try:
            rows = select_pages(
                lambda: (
                    self.db.table(self.table)
                    .select("location_code,serviceable,cod_available,delivery_days,city,state")
                    .order("location_code")
                )
            )
        except Exception as e:
            logger.error("coverage_statistics_failed", error=str(e))
            raise DatabaseError("select", str(e))

        if not rows:
            return CoverageStatistics()

        records = [ServiceabilityRecord(**row) for row in rows]
        return CoverageStatistics(
            total_locations=len(records),
            serviceable_locations=sum(1 for r in records if r.serviceable),
            cod_available_locations=sum(1 for r in records if r.cod_available),
            avg_delivery_days=round(sum(r.delivery_days for r in records) / len(records), 1),
            unique_states=len({r.state for r in records if r.state}),
            unique_cities=len({r.city for r in records if r.city}),
        )


# Singleton instance for convenience
_serviceability_service: Optional[ServiceabilityService] = None


def get_serviceability_service() -> ServiceabilityService:
    """Get or create ServiceabilityService instance."""
    global _serviceability_service
    if _serviceability_service is None:
        _serviceability_service = ServiceabilityService()
    return _serviceability_service
