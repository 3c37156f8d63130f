"""
Collaborator interfaces the pricing services depend on.

Services receive these as constructor arguments; the Supabase-backed
implementations live in their own modules.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from models.pricing import PriceRecord, PricingStatistics
from models.serviceability import ServiceabilityRecord
from parsers.price_sheet_parser import PriceCandidate


@dataclass(frozen=True)
class CatalogProduct:
    """Product fields needed for templates and existence checks."""
    id: str
    sku: Optional[str] = None
    title: Optional[str] = None


@dataclass
class RowError:
    """A candidate the store could not write."""
    product_id: str
    location_code: str
    code: str
    message: str
    row: Optional[int] = None

    def describe(self) -> str:
        prefix = f"Row {self.row}: " if self.row is not None else ""
        return f"{prefix}{self.code} for {self.product_id} at {self.location_code}: {self.message}"


@dataclass
class BulkUpsertResult:
    """Outcome of a best-effort bulk upsert."""
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: list[RowError] = field(default_factory=list)

    @property
    def written(self) -> int:
        return self.created + self.updated

    @property
    def failed(self) -> int:
        return len(self.errors)


class PriceStore(Protocol):
    """Keyed store holding at most one active price per (product, location)."""

    def get_active(self, product_id: str, location_code: str) -> Optional[PriceRecord]:
        ...

    def list_active(
        self,
        product_id: Optional[str] = None,
        location_codes: Optional[Iterable[str]] = None,
        product_ids: Optional[Iterable[str]] = None,
    ) -> list[PriceRecord]:
        ...

    def bulk_upsert(self, candidates: list[PriceCandidate]) -> BulkUpsertResult:
        ...

    def deactivate(self, product_id: str, location_code: str) -> bool:
        ...

    def deactivate_product(self, product_id: str) -> int:
        ...

    def statistics(self) -> PricingStatistics:
        ...


class ServiceabilityIndex(Protocol):
    """Read-only delivery metadata keyed by location code."""

    def find(self, location_code: str) -> Optional[ServiceabilityRecord]:
        ...

    def get(self, location_code: str) -> ServiceabilityRecord:
        ...

    def is_serviceable(self, location_code: str) -> bool:
        ...

    def list_serviceable_codes(self) -> list[str]:
        ...


class ProductCatalog(Protocol):
    """Product existence and listing, owned by the catalog."""

    def exists(self, product_id: str) -> bool:
        ...

    def existing_ids(self, product_ids: Iterable[str]) -> set[str]:
        ...

    def list_products(
        self,
        limit: int,
        product_id: Optional[str] = None,
    ) -> list[CatalogProduct]:
        ...
