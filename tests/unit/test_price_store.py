"""
Unit tests for LocationPriceService.

Runs against the in-memory Supabase fake, which enforces the
(product_id, location_code) unique constraint like the real table.
"""

import pytest

from parsers.price_sheet_parser import PriceCandidate
from services.price_store import LocationPriceService, PAGE_SIZE
from exceptions import DatabaseError
from tests.conftest import MockUniqueViolation
from tests.factories import PriceRecordFactory


def candidate(product_id="prod_1", location_code="110001", price_minor=299900, row=2):
    return PriceCandidate(
        product_id=product_id,
        location_code=location_code,
        price_minor=price_minor,
        sku="SHIRT-001",
        row=row,
    )


@pytest.fixture
def store(mock_supabase):
    return LocationPriceService(client=mock_supabase)


def active_rows(mock_supabase, product_id=None):
    return [
        row for row in mock_supabase.rows("location_prices")
        if row["is_active"] and (product_id is None or row["product_id"] == product_id)
    ]


# ===================
# READS
# ===================

class TestGetActive:

    def test_returns_active_price(self, store, seeded_prices):
        price = store.get_active("prod_shirt", "110001")

        assert price is not None
        assert price.price_minor == 299900

    def test_inactive_price_is_none(self, store, mock_supabase):
        mock_supabase.set_table_data("location_prices", [
            PriceRecordFactory.create(product_id="prod_1", is_active=False)
        ])

        assert store.get_active("prod_1", "110001") is None

    def test_database_failure_wrapped(self, store, mock_supabase):
        mock_supabase.fail("location_prices", "select", RuntimeError("connection reset"))

        with pytest.raises(DatabaseError):
            store.get_active("prod_1", "110001")


class TestListActive:

    def test_filters_by_product(self, store, seeded_prices):
        prices = store.list_active(product_id="prod_shirt")

        assert [p.location_code for p in prices] == ["110001", "400001", "999999"]

    def test_filters_by_locations(self, store, seeded_prices):
        prices = store.list_active(location_codes=["110001"])

        assert {p.product_id for p in prices} == {"prod_shirt", "prod_pants"}

    def test_empty_location_list_returns_nothing(self, store, seeded_prices):
        assert store.list_active(location_codes=[]) == []

    def test_filters_by_products_and_location(self, store, seeded_prices):
        prices = store.list_active(location_codes=["110001"], product_ids=["prod_pants", "prod_none"])

        assert [(p.product_id, p.price_minor) for p in prices] == [("prod_pants", 149950)]

    def test_empty_product_list_returns_nothing(self, store, seeded_prices, mock_supabase):
        assert store.list_active(product_ids=[]) == []
        assert ("location_prices", "select") not in mock_supabase.calls

    def test_pages_through_large_results(self, store, mock_supabase):
        mock_supabase.set_table_data("location_prices", [
            PriceRecordFactory.create(product_id=f"prod_{i:05d}", price_minor=100 + i)
            for i in range(PAGE_SIZE + 5)
        ])

        prices = store.list_active(location_codes=["110001"])

        assert len(prices) == PAGE_SIZE + 5


class TestStatistics:

    def test_counts_active_prices(self, store, seeded_prices, mock_supabase):
        mock_supabase.table("location_prices").rows.append(
            PriceRecordFactory.create(product_id="prod_old", price_minor=1, is_active=False)
        )

        stats = store.statistics()

        assert stats.total_prices == 4
        assert stats.total_products == 2
        assert stats.total_locations == 3
        assert stats.min_price_minor == 149950
        assert stats.max_price_minor == 309900

    def test_empty_store(self, store):
        stats = store.statistics()

        assert stats.total_prices == 0
        assert stats.avg_price_minor is None


# ===================
# BULK UPSERT
# ===================

class TestBulkUpsert:

    def test_new_pair_is_created(self, store, mock_supabase):
        result = store.bulk_upsert([candidate()])

        assert result.created == 1
        assert result.updated == 0
        assert result.errors == []
        rows = active_rows(mock_supabase)
        assert len(rows) == 1
        assert rows[0]["price_minor"] == 299900

    def test_rerun_updates_without_new_rows(self, store, mock_supabase):
        store.bulk_upsert([candidate()])

        result = store.bulk_upsert([candidate()])

        assert result.created == 0
        assert result.updated == 1
        assert result.unchanged == 1
        assert len(mock_supabase.rows("location_prices")) == 1

    def test_changed_price_is_updated(self, store, mock_supabase):
        store.bulk_upsert([candidate(price_minor=100)])

        result = store.bulk_upsert([candidate(price_minor=200)])

        assert result.updated == 1
        assert result.unchanged == 0
        assert active_rows(mock_supabase)[0]["price_minor"] == 200

    def test_last_write_wins_within_batch(self, store, mock_supabase):
        result = store.bulk_upsert([
            candidate(price_minor=100, row=2),
            candidate(price_minor=300, row=5),
        ])

        assert result.created == 1
        assert result.updated == 1
        rows = active_rows(mock_supabase)
        assert len(rows) == 1
        assert rows[0]["price_minor"] == 300

    def test_inactive_row_reactivated_as_created(self, store, mock_supabase):
        mock_supabase.set_table_data("location_prices", [
            PriceRecordFactory.create(product_id="prod_1", price_minor=50, is_active=False)
        ])

        result = store.bulk_upsert([candidate(price_minor=75)])

        assert result.created == 1
        rows = mock_supabase.rows("location_prices")
        assert len(rows) == 1
        assert rows[0]["is_active"] is True
        assert rows[0]["price_minor"] == 75

    def test_at_most_one_active_per_pair(self, store, mock_supabase):
        store.bulk_upsert([candidate("p1", "110001"), candidate("p1", "400001")])
        store.bulk_upsert([candidate("p1", "110001", 5), candidate("p2", "110001")])
        store.bulk_upsert([candidate("p1", "110001", 6)])

        pairs = [(r["product_id"], r["location_code"]) for r in active_rows(mock_supabase)]
        assert len(pairs) == len(set(pairs)) == 3

    def test_failures_collected_per_candidate(self, store, mock_supabase):
        mock_supabase.fail(
            "location_prices",
            "upsert",
            MockUniqueViolation('duplicate key value violates unique constraint')
        )

        result = store.bulk_upsert([candidate("p1"), candidate("p2", row=3)])

        assert result.failed == 2
        assert result.written == 0
        assert result.errors[0].code == "PRICE_CONFLICT"
        assert result.errors[1].row == 3
        assert result.errors[1].describe().startswith("Row 3: PRICE_CONFLICT for p2 at 110001")

    def test_other_write_failures_are_database_errors(self, store, mock_supabase):
        mock_supabase.fail("location_prices", "upsert", RuntimeError("timeout"))

        result = store.bulk_upsert([candidate()])

        assert result.errors[0].code == "DATABASE_ERROR"

    def test_empty_batch_touches_nothing(self, store, mock_supabase):
        result = store.bulk_upsert([])

        assert result.written == 0
        assert mock_supabase.calls == []


# ===================
# DEACTIVATION
# ===================

class TestDeactivate:

    def test_deactivate_pair(self, store, seeded_prices, mock_supabase):
        assert store.deactivate("prod_shirt", "110001") is True

        assert store.get_active("prod_shirt", "110001") is None
        assert store.get_active("prod_shirt", "400001") is not None

    def test_deactivate_missing_pair(self, store, seeded_prices):
        assert store.deactivate("prod_shirt", "560001") is False

    def test_deactivate_product_cascade(self, store, seeded_prices, mock_supabase):
        count = store.deactivate_product("prod_shirt")

        assert count == 3
        assert active_rows(mock_supabase, "prod_shirt") == []
        assert len(active_rows(mock_supabase, "prod_pants")) == 1

    def test_deactivate_product_without_prices(self, store):
        assert store.deactivate_product("prod_unknown") == 0
