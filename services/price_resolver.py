"""
Price resolution for the storefront.

Answers "what does this product cost at this location, and can it be
delivered there". Serviceability is checked before price: a location that
is not serviceable never yields a price, even if one is stored.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence
import structlog

from config.pricing import PricingConfig
from models.pricing import (
    PriceLookupResponse,
    ResolvedPrice,
    is_valid_location_code,
)
from services.interfaces import PriceStore, ServiceabilityIndex
from utils.money import format_price, to_major_units
from exceptions import (
    InvalidLocationCodeError,
    LocationNotServiceableError,
    PriceNotFoundError,
    TooManyProductsError,
)

logger = structlog.get_logger(__name__)


@dataclass
class BulkResolution:
    """Prices for several products at one location."""
    location_code: str
    prices: list[ResolvedPrice] = field(default_factory=list)
    unavailable_products: list[str] = field(default_factory=list)

    @property
    def total_minor(self) -> int:
        return sum(price.price_minor for price in self.prices)


class PriceResolver:
    """
    Resolves effective prices from a PriceStore and a ServiceabilityIndex.

    Never falls back to a base price; callers decide what to show when
    resolution fails.
    """

    def __init__(
        self,
        price_store: PriceStore,
        serviceability: ServiceabilityIndex,
        config: Optional[PricingConfig] = None,
    ):
        self.price_store = price_store
        self.serviceability = serviceability
        self.config = config or PricingConfig()

    def resolve(self, product_id: str, location_code: str) -> ResolvedPrice:
        """
        Resolve the price of a product at a location.

        Raises:
            InvalidLocationCodeError: location_code is not 6 digits
            LocationNotServiceableError: location unknown or not serviceable
            PriceNotFoundError: no active price for the pair
        """
        location_code = _check_code(location_code)
        record = self.serviceability.find(location_code)

        if record is None or not record.serviceable:
            logger.info(
                "price_resolution_not_serviceable",
                product_id=product_id,
                location_code=location_code
            )
            raise LocationNotServiceableError(location_code)

        price = self.price_store.get_active(product_id, location_code)
        if price is None:
            logger.info(
                "price_resolution_not_found",
                product_id=product_id,
                location_code=location_code
            )
            raise PriceNotFoundError(product_id, location_code)

        return ResolvedPrice(
            product_id=product_id,
            location_code=location_code,
            price_minor=price.price_minor,
            delivery_days=record.delivery_days,
            cod_available=record.cod_available,
        )

    def resolve_many(
        self,
        product_ids: Sequence[str],
        location_code: str,
    ) -> BulkResolution:
        """
        Resolve several products at one location (cart pricing).

        The location is checked once. Products without an active price are
        listed as unavailable rather than raising.

        Raises:
            InvalidLocationCodeError: location_code is not 6 digits
            TooManyProductsError: more than bulk_lookup_limit products
            LocationNotServiceableError: location unknown or not serviceable
        """
        location_code = _check_code(location_code)
        product_ids = _unique(product_ids)
        if len(product_ids) > self.config.bulk_lookup_limit:
            raise TooManyProductsError(len(product_ids), self.config.bulk_lookup_limit)

        record = self.serviceability.find(location_code)
        if record is None or not record.serviceable:
            raise LocationNotServiceableError(location_code)

        by_product = {
            price.product_id: price
            for price in self.price_store.list_active(
                location_codes=[location_code], product_ids=product_ids
            )
        }

        resolution = BulkResolution(location_code=location_code)
        for product_id in product_ids:
            price = by_product.get(product_id)
            if price is None:
                resolution.unavailable_products.append(product_id)
                continue
            resolution.prices.append(ResolvedPrice(
                product_id=product_id,
                location_code=location_code,
                price_minor=price.price_minor,
                delivery_days=record.delivery_days,
                cod_available=record.cod_available,
            ))

        logger.info(
            "bulk_prices_resolved",
            location_code=location_code,
            requested=len(product_ids),
            available=len(resolution.prices)
        )
        return resolution

    def check_availability(
        self,
        product_ids: Sequence[str],
        location_code: str,
    ) -> dict[str, bool]:
        """
        Whether each product can be bought at a location.

        An unserviceable location answers False for every product.

        Raises:
            InvalidLocationCodeError: location_code is not 6 digits
            TooManyProductsError: more than availability_limit products
        """
        location_code = _check_code(location_code)
        product_ids = _unique(product_ids)
        if len(product_ids) > self.config.availability_limit:
            raise TooManyProductsError(len(product_ids), self.config.availability_limit)

        if not self.serviceability.is_serviceable(location_code):
            return {product_id: False for product_id in product_ids}

        priced = {
            price.product_id
            for price in self.price_store.list_active(
                location_codes=[location_code], product_ids=product_ids
            )
        }
        return {product_id: product_id in priced for product_id in product_ids}

    def to_lookup(self, resolved: ResolvedPrice) -> PriceLookupResponse:
        """Storefront view of a resolved price with display fields."""
        return PriceLookupResponse(
            product_id=resolved.product_id,
            location_code=resolved.location_code,
            price=to_major_units(resolved.price_minor),
            price_minor=resolved.price_minor,
            price_formatted=format_price(resolved.price_minor, self.config.currency_symbol),
            currency=self.config.currency_code,
            delivery_days=resolved.delivery_days,
            cod_available=resolved.cod_available,
        )


def _check_code(location_code: str) -> str:
    code = (location_code or "").strip()
    if not is_valid_location_code(code):
        raise InvalidLocationCodeError(location_code)
    return code


def _unique(product_ids: Sequence[str]) -> list[str]:
    """Strip blanks and repeats, keeping first-seen order."""
    seen: dict[str, None] = {}
    for product_id in product_ids:
        product_id = (product_id or "").strip()
        if product_id:
            seen.setdefault(product_id)
    return list(seen)


# Singleton instance for convenience
_price_resolver: Optional[PriceResolver] = None


def get_price_resolver() -> PriceResolver:
    """Get or create PriceResolver wired to the Supabase-backed services."""
    global _price_resolver
    if _price_resolver is None:
        from services.price_store import get_location_price_service
        from services.serviceability_service import get_serviceability_service

        _price_resolver = PriceResolver(
            price_store=get_location_price_service(),
            serviceability=get_serviceability_service(),
            config=PricingConfig.from_settings(),
        )
    return _price_resolver
