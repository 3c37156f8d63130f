"""
Location serviceability schemas.
"""

from typing import Optional

from pydantic import Field, field_validator

from models.base import BaseSchema, TimestampMixin
from models.pricing import PricingStatistics, is_valid_location_code

DEFAULT_DELIVERY_DAYS = 3


class ServiceabilityRecord(BaseSchema, TimestampMixin):
    """
    Delivery capability for a location, independent of any product.

    serviceable=False blocks pricing at the location even when prices exist.
    """

    location_code: str = Field(..., description="6-digit location code")
    delivery_days: int = Field(DEFAULT_DELIVERY_DAYS, ge=1, description="Estimated delivery days")
    cod_available: bool = Field(True, description="Cash on delivery accepted")
    serviceable: bool = Field(True, description="Deliveries accepted")
    region_code: Optional[str] = Field(None, description="Grouping code, e.g. IN-DEL")
    city: Optional[str] = None
    state: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("location_code")
    @classmethod
    def location_code_format(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_location_code(v):
            raise ValueError("location_code must be exactly 6 digits")
        return v

    @field_validator("delivery_days", mode="before")
    @classmethod
    def default_delivery_days(cls, v):
        """Stored NULL means the default lead time."""
        return DEFAULT_DELIVERY_DAYS if v is None else v


class ServiceabilityResponse(BaseSchema):
    """Storefront serviceability check."""

    location_code: str
    is_serviceable: bool
    delivery_days: Optional[int] = None
    cod_available: Optional[bool] = None
    city: Optional[str] = None
    state: Optional[str] = None

    @classmethod
    def from_record(cls, record: ServiceabilityRecord) -> "ServiceabilityResponse":
        return cls(
            location_code=record.location_code,
            is_serviceable=record.serviceable,
            delivery_days=record.delivery_days,
            cod_available=record.cod_available,
            city=record.city,
            state=record.state,
        )


class LocationSearchResponse(BaseSchema):
    """Serviceable locations whose city or state matches a search term."""

    query: str
    results_count: int = Field(..., ge=0)
    results: list[ServiceabilityResponse] = Field(default_factory=list)


class CoverageStatistics(BaseSchema):
    """Counters over the serviceability table."""

    total_locations: int = 0
    serviceable_locations: int = 0
    cod_available_locations: int = 0
    avg_delivery_days: Optional[float] = None
    unique_states: int = 0
    unique_cities: int = 0


class StatisticsResponse(PricingStatistics):
    """Admin dashboard: price counters plus location coverage."""

    coverage: CoverageStatistics = Field(default_factory=CoverageStatistics)
