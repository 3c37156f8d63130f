"""
Unit tests for PriceResolver.

Resolution order: location code format, then serviceability, then price.
"""

from decimal import Decimal
import pytest
from unittest.mock import patch

from config.pricing import PricingConfig
from services.price_resolver import PriceResolver
from services.price_store import LocationPriceService
from services.serviceability_service import ServiceabilityService
from exceptions import (
    InvalidLocationCodeError,
    LocationNotServiceableError,
    NotFoundError,
    PriceNotFoundError,
    TooManyProductsError,
)


@pytest.fixture
def resolver(mock_supabase, seeded_locations, seeded_prices):
    return PriceResolver(
        price_store=LocationPriceService(client=mock_supabase),
        serviceability=ServiceabilityService(client=mock_supabase),
        config=PricingConfig(bulk_lookup_limit=3, availability_limit=4),
    )


class TestResolve:

    def test_returns_price_with_delivery_terms(self, resolver):
        resolved = resolver.resolve("prod_shirt", "400001")

        assert resolved.price_minor == 309900
        assert resolved.delivery_days == 4
        assert resolved.cod_available is False

    def test_not_serviceable_wins_over_existing_price(self, resolver):
        # prod_shirt has an active price at 999999
        with pytest.raises(LocationNotServiceableError) as exc_info:
            resolver.resolve("prod_shirt", "999999")
        assert not isinstance(exc_info.value, NotFoundError)

    def test_unknown_location_not_serviceable(self, resolver):
        with pytest.raises(LocationNotServiceableError):
            resolver.resolve("prod_shirt", "560001")

    def test_missing_price(self, resolver):
        with pytest.raises(PriceNotFoundError) as exc_info:
            resolver.resolve("prod_pants", "400001")
        assert exc_info.value.details["location_code"] == "400001"

    @pytest.mark.parametrize("code", ["11000", "1100011", "11000A", ""])
    def test_invalid_location_code(self, resolver, code):
        with pytest.raises(InvalidLocationCodeError):
            resolver.resolve("prod_shirt", code)

    def test_to_lookup_display_fields(self, resolver):
        lookup = resolver.to_lookup(resolver.resolve("prod_shirt", "110001"))

        assert lookup.price == Decimal("2999.00")
        assert lookup.price_formatted == "₹2999.00"
        assert lookup.currency == "INR"
        assert lookup.delivery_days == 2


class TestResolveMany:

    def test_splits_available_and_unavailable(self, resolver):
        result = resolver.resolve_many(["prod_shirt", "prod_pants", "prod_none"], "110001")

        assert [p.product_id for p in result.prices] == ["prod_shirt", "prod_pants"]
        assert result.unavailable_products == ["prod_none"]
        assert result.total_minor == 299900 + 149950

    def test_only_requested_products_are_fetched(self, resolver):
        store = resolver.price_store
        with patch.object(store, "list_active", wraps=store.list_active) as list_active:
            resolver.resolve_many(["prod_pants"], "110001")
            resolver.check_availability(["prod_pants"], "110001")

        assert list_active.call_count == 2
        for call in list_active.call_args_list:
            assert call.kwargs["product_ids"] == ["prod_pants"]
            assert call.kwargs["location_codes"] == ["110001"]

    def test_duplicates_counted_once(self, resolver):
        result = resolver.resolve_many(["prod_shirt", "prod_shirt", " "], "110001")

        assert len(result.prices) == 1

    def test_limit_enforced(self, resolver):
        with pytest.raises(TooManyProductsError) as exc_info:
            resolver.resolve_many(["a", "b", "c", "d"], "110001")
        assert exc_info.value.details == {"limit": 3, "requested": 4}

    def test_unserviceable_location(self, resolver):
        with pytest.raises(LocationNotServiceableError):
            resolver.resolve_many(["prod_shirt"], "999999")


class TestCheckAvailability:

    def test_per_product_flags(self, resolver):
        result = resolver.check_availability(["prod_shirt", "prod_pants"], "400001")

        assert result == {"prod_shirt": True, "prod_pants": False}

    def test_unserviceable_location_all_false(self, resolver):
        result = resolver.check_availability(["prod_shirt"], "999999")

        assert result == {"prod_shirt": False}

    def test_limit_enforced(self, resolver):
        with pytest.raises(TooManyProductsError):
            resolver.check_availability(["a", "b", "c", "d", "e"], "110001")
