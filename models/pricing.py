"""
Location price schemas for validation and serialization.
"""

import re
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from models.base import BaseSchema, TimestampMixin

# Six ASCII digits. \d would also accept non-ASCII digits.
LOCATION_CODE_PATTERN = re.compile(r"[0-9]{6}")


def is_valid_location_code(value: Optional[str]) -> bool:
    """True if value is a six-digit location code."""
    if not value:
        return False
    return LOCATION_CODE_PATTERN.fullmatch(value) is not None


def _check_location_code(value: str) -> str:
    value = value.strip()
    if not is_valid_location_code(value):
        raise ValueError("location_code must be exactly 6 digits")
    return value


class PriceRecord(BaseSchema, TimestampMixin):
    """
    Price of one product at one delivery location.

    At most one active record exists per (product_id, location_code).
    """

    id: Optional[str] = Field(None, description="Row UUID")
    product_id: str = Field(..., min_length=1, description="Catalog product ID")
    location_code: str = Field(..., description="6-digit location code")
    price_minor: int = Field(..., ge=0, description="Price in minor units (paise)")
    sku: Optional[str] = Field(None, description="SKU at time of import")
    is_active: bool = Field(True, description="Inactive rows are kept for audit")

    @field_validator("location_code")
    @classmethod
    def location_code_format(cls, v: str) -> str:
        return _check_location_code(v)

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.location_code)


class ProductPricesResponse(BaseSchema):
    """All active prices for one product."""

    product_id: str
    data: list[PriceRecord]
    total: int


class ResolvedPrice(BaseSchema):
    """Effective price and delivery terms for a (product, location) pair."""

    product_id: str
    location_code: str
    price_minor: int = Field(..., ge=0)
    delivery_days: int = Field(..., ge=1)
    cod_available: bool


class PriceLookupResponse(BaseSchema):
    """
    Storefront price lookup.

    Display fields are derived from price_minor, never stored.
    """

    product_id: str
    location_code: str
    price: Decimal = Field(..., description="Price in major units")
    price_minor: int
    price_formatted: str
    currency: str
    delivery_days: int
    cod_available: bool


class BulkPriceRequest(BaseSchema):
    """Price several products for one location (cart pricing)."""

    product_ids: list[str] = Field(..., min_length=1)
    location_code: str

    @field_validator("location_code")
    @classmethod
    def location_code_format(cls, v: str) -> str:
        return _check_location_code(v)


class BulkPriceSummary(BaseSchema):
    products_requested: int
    products_available: int
    products_unavailable: int
    total_minor: int
    total_formatted: str


class BulkPriceResponse(BaseSchema):
    location_code: str
    is_serviceable: bool = True
    summary: BulkPriceSummary
    prices: list[PriceLookupResponse]
    unavailable_products: list[str]


class AvailabilityRequest(BulkPriceRequest):
    """Same payload as a bulk lookup; answers yes/no per product."""


class ProductAvailability(BaseSchema):
    product_id: str
    is_available: bool


class AvailabilityResponse(BaseSchema):
    location_code: str
    products_checked: int
    products_available: int
    availability: list[ProductAvailability]


class PricingStatistics(BaseSchema):
    """Dashboard counters over active prices."""

    total_prices: int = 0
    total_products: int = 0
    total_locations: int = 0
    min_price_minor: Optional[int] = None
    max_price_minor: Optional[int] = None
    avg_price_minor: Optional[int] = None


class ImportReport(BaseSchema):
    """
    Result of one price sheet import.

    Not persisted. `imported` counts every successful write (created +
    updated); `unchanged` is the subset of updates that rewrote the same
    price, so a re-uploaded template shows imported == unchanged.
    """

    imported: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    total_rows_processed: int = 0
    rows_skipped: int = 0
    cells_skipped: int = 0
    cells_invalid: int = 0
    errors: list[str] = Field(default_factory=list)
    errors_truncated: int = 0

    @property
    def has_errors(self) -> bool:
        return self.failed > 0 or self.cells_invalid > 0 or self.rows_skipped > 0


class ImportResponse(ImportReport):
    """Upload endpoint response: the import report plus a summary line."""

    filename: Optional[str] = None
    message: str = ""


class PriceRemovalResponse(BaseSchema):
    """Result of an explicit removal or a catalog cascade."""

    product_id: str
    location_code: Optional[str] = None
    deactivated: int = Field(..., ge=0, description="Active prices switched off")
