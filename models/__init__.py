"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
)
from models.pricing import (
    LOCATION_CODE_PATTERN,
    is_valid_location_code,
    PriceRecord,
    ProductPricesResponse,
    ResolvedPrice,
    PriceLookupResponse,
    BulkPriceRequest,
    BulkPriceSummary,
    BulkPriceResponse,
    AvailabilityRequest,
    ProductAvailability,
    AvailabilityResponse,
    PricingStatistics,
    ImportReport,
    ImportResponse,
    PriceRemovalResponse,
)
from models.serviceability import (
    DEFAULT_DELIVERY_DAYS,
    ServiceabilityRecord,
    ServiceabilityResponse,
    LocationSearchResponse,
    CoverageStatistics,
    StatisticsResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",

    # Pricing
    "LOCATION_CODE_PATTERN",
    "is_valid_location_code",
    "PriceRecord",
    "ProductPricesResponse",
    "ResolvedPrice",
    "PriceLookupResponse",
    "BulkPriceRequest",
    "BulkPriceSummary",
    "BulkPriceResponse",
    "AvailabilityRequest",
    "ProductAvailability",
    "AvailabilityResponse",
    "PricingStatistics",
    "ImportReport",
    "ImportResponse",
    "PriceRemovalResponse",

    # Serviceability
    "DEFAULT_DELIVERY_DAYS",
    "ServiceabilityRecord",
    "ServiceabilityResponse",
    "LocationSearchResponse",
    "CoverageStatistics",
    "StatisticsResponse",
]
