"""
Storefront location pricing routes.

Price lookup, serviceability check and search, cart pricing and
availability.
Mounted under /api/store/location-pricing.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
import structlog

from models.pricing import (
    AvailabilityRequest,
    AvailabilityResponse,
    BulkPriceRequest,
    BulkPriceResponse,
    BulkPriceSummary,
    PriceLookupResponse,
    ProductAvailability,
    is_valid_location_code,
)
from models.serviceability import LocationSearchResponse, ServiceabilityResponse
from services.price_resolver import PriceResolver, get_price_resolver
from services.serviceability_service import (
    ServiceabilityService,
    get_serviceability_service,
)
from utils.money import format_price
from exceptions import (
    AppError,
    InvalidLocationCodeError,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("/products/{product_id}", response_model=PriceLookupResponse)
async def get_product_price(
    product_id: str,
    location_code: str = Query(..., description="6-digit delivery location code"),
    resolver: PriceResolver = Depends(get_price_resolver),
):
    """
    Price of a product at a delivery location.

    Raises:
        404: LOCATION_NOT_SERVICEABLE or PRICE_NOT_FOUND
        422: location_code is not 6 digits
    """
    try:
        resolved = resolver.resolve(product_id, location_code)
        return resolver.to_lookup(resolved)

    except Exception as e:
        return handle_error(e)


@router.get("/serviceability", response_model=LocationSearchResponse)
async def search_locations(
    q: str = Query(..., description="City or state name, at least 2 characters"),
    limit: int = Query(50, ge=1, le=200, description="Maximum results"),
    service: ServiceabilityService = Depends(get_serviceability_service),
):
    """
    Find serviceable locations by city or state.

    Raises:
        422: INVALID_SEARCH_QUERY when q is shorter than 2 characters
    """
    try:
        records = service.search(q, limit=limit)
        return LocationSearchResponse(
            query=q.strip(),
            results_count=len(records),
            results=[ServiceabilityResponse.from_record(r) for r in records],
        )

    except Exception as e:
        return handle_error(e)


@router.get("/serviceability/{location_code}", response_model=ServiceabilityResponse)
async def check_serviceability(
    location_code: str,
    service: ServiceabilityService = Depends(get_serviceability_service),
):
    """
    Delivery terms for a location.

    A location on file but switched off is returned with
    is_serviceable=false; an unknown location is a 404.
    """
    try:
        if not is_valid_location_code(location_code):
            raise InvalidLocationCodeError(location_code)

        record = service.get(location_code)
        return ServiceabilityResponse.from_record(record)

    except Exception as e:
        return handle_error(e)


@router.post("/bulk", response_model=BulkPriceResponse)
async def get_bulk_prices(
    data: BulkPriceRequest,
    resolver: PriceResolver = Depends(get_price_resolver),
):
    """
    Price a cart's worth of products at one location.

    Products without a price are listed in unavailable_products.

    Raises:
        404: Location not serviceable
        422: More than the bulk lookup limit of products
    """
    try:
        resolution = resolver.resolve_many(data.product_ids, data.location_code)
        prices = [resolver.to_lookup(price) for price in resolution.prices]
        total = resolution.total_minor

        return BulkPriceResponse(
            location_code=resolution.location_code,
            summary=BulkPriceSummary(
                products_requested=len(prices) + len(resolution.unavailable_products),
                products_available=len(prices),
                products_unavailable=len(resolution.unavailable_products),
                total_minor=total,
                total_formatted=format_price(total, resolver.config.currency_symbol),
            ),
            prices=prices,
            unavailable_products=resolution.unavailable_products,
        )

    except Exception as e:
        return handle_error(e)


@router.post("/availability", response_model=AvailabilityResponse)
async def check_availability(
    data: AvailabilityRequest,
    resolver: PriceResolver = Depends(get_price_resolver),
):
    """
    Whether each product can be bought at a location.

    Every product is unavailable at a location that is not serviceable.
    """
    try:
        available = resolver.check_availability(data.product_ids, data.location_code)

        return AvailabilityResponse(
            location_code=data.location_code,
            products_checked=len(available),
            products_available=sum(1 for ok in available.values() if ok),
            availability=[
                ProductAvailability(product_id=product_id, is_available=ok)
                for product_id, ok in available.items()
            ],
        )

    except Exception as e:
        return handle_error(e)
