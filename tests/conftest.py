"""
Shared test fixtures.

The Supabase fake keeps rows per table in memory and applies the filters,
ordering and paging the services use, so service tests exercise real query
results instead of canned responses.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

# Settings are created at import time
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "development")

import copy
import itertools
import re
import pytest
from unittest.mock import patch
from datetime import datetime
from typing import Generator, Optional

from config.pricing import PricingConfig
from tests.factories import (
    PriceRecordFactory,
    ProductFactory,
    ServiceabilityFactory,
)

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: int = None):
        self.data = data if data is not None else []
        if count is not None:
            self.count = count
        elif isinstance(self.data, list):
            self.count = len(self.data)
        else:
            self.count = 1 if self.data else 0


class MockUniqueViolation(Exception):
    """Raised like a PostgREST 23505 error."""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "23505"


class MockSupabaseQuery:
    """Chainable query builder over one table's rows."""

    def __init__(self, table: "MockSupabaseTable", action: str = "select", payload=None, **options):
        self._table = table
        self._action = action
        self._payload = payload
        self._options = options
        self._filters = []
        self._order = []
        self._range = None
        self._limit = None
        self._is_single = False
        self._count = None

    # Filters

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        allowed = set(values)
        self._filters.append(lambda row: row.get(column) in allowed)
        return self

    def ilike(self, column, pattern):
        # SQL LIKE wildcards: % any run, _ one character
        regex = re.compile(
            "".join(".*" if c == "%" else "." if c == "_" else re.escape(c) for c in pattern),
            re.IGNORECASE | re.DOTALL,
        )
        self._filters.append(
            lambda row: row.get(column) is not None and regex.fullmatch(str(row[column])) is not None
        )
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._order.append((column, desc))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def single(self):
        self._is_single = True
        return self

    def select(self, *args, count: Optional[str] = None, **kwargs):
        self._count = count
        return self

    # Execution

    def execute(self) -> MockSupabaseResponse:
        self._table.client.calls.append((self._table.name, self._action))
        self._table.client.raise_if_failing(self._table.name, self._action)

        if self._action == "insert":
            return MockSupabaseResponse(self._table.insert_rows(self._payload))
        if self._action == "upsert":
            return MockSupabaseResponse(
                self._table.upsert_rows(self._payload, self._options.get("on_conflict"))
            )

        matched = [row for row in self._table.rows if all(f(row) for f in self._filters)]

        if self._action == "update":
            for row in matched:
                row.update(self._payload)
            return MockSupabaseResponse(copy.deepcopy(matched))
        if self._action == "delete":
            self._table.rows = [row for row in self._table.rows if row not in matched]
            return MockSupabaseResponse(copy.deepcopy(matched))

        total = len(matched)
        for column, desc in reversed(self._order):
            matched.sort(key=lambda row: (row.get(column) is None, row.get(column)), reverse=desc)
        if self._range is not None:
            start, end = self._range
            matched = matched[start:end + 1]
        if self._limit is not None:
            matched = matched[:self._limit]

        data = copy.deepcopy(matched)
        if self._is_single:
            return MockSupabaseResponse(data[0] if data else None)
        return MockSupabaseResponse(data, count=total if self._count else None)


class MockSupabaseTable:
    """In-memory table with optional unique constraints."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self.client = client
        self.name = name
        self.rows: list[dict] = []
        self.unique: list[tuple[str, ...]] = []
        self._ids = itertools.count(1)

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self).select(*args, **kwargs)

    def insert(self, data):
        return MockSupabaseQuery(self, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self, "update", data)

    def upsert(self, data, on_conflict: Optional[str] = None, **kwargs):
        return MockSupabaseQuery(self, "upsert", data, on_conflict=on_conflict)

    def delete(self):
        return MockSupabaseQuery(self, "delete")

    def _stamp(self, row: dict) -> dict:
        now = datetime.utcnow().isoformat()
        row.setdefault("id", f"{self.name}-{next(self._ids)}")
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        return row

    def _conflict(self, row: dict, columns: tuple[str, ...]) -> Optional[dict]:
        for existing in self.rows:
            if all(existing.get(c) == row.get(c) for c in columns):
                return existing
        return None

    def insert_rows(self, data) -> list[dict]:
        items = [data] if isinstance(data, dict) else data
        written = []
        for item in items:
            row = self._stamp(dict(item))
            for columns in self.unique:
                if self._conflict(row, columns):
                    raise MockUniqueViolation(
                        f'duplicate key value violates unique constraint "{self.name}_{"_".join(columns)}_key"'
                    )
            self.rows.append(row)
            written.append(copy.deepcopy(row))
        return written

    def upsert_rows(self, data, on_conflict: Optional[str]) -> list[dict]:
        items = [data] if isinstance(data, dict) else data
        columns = tuple(c.strip() for c in on_conflict.split(",")) if on_conflict else ("id",)
        written = []
        for item in items:
            existing = self._conflict(item, columns)
            if existing is not None:
                existing.update(item)
                written.append(copy.deepcopy(existing))
            else:
                written.extend(self.insert_rows(item))
        return written


class MockSupabaseClient:
    """Mock Supabase client holding every table in memory."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}
        self._failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str]] = []
        self.add_unique("location_prices", "product_id", "location_code")
        self.add_unique("location_serviceability", "location_code")

    def table(self, name: str) -> MockSupabaseTable:
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable(self, name)
        return self._tables[name]

    def set_table_data(self, table_name: str, data: list):
        """Replace a table's rows."""
        table = self.table(table_name)
        table.rows = [table._stamp(dict(row)) for row in data]

    def rows(self, table_name: str) -> list[dict]:
        return copy.deepcopy(self.table(table_name).rows)

    def add_unique(self, table_name: str, *columns: str):
        self.table(table_name).unique.append(tuple(columns))

    def fail(self, table_name: str, action: str, error: Exception):
        """Make every `action` on the table raise `error`."""
        self._failures[(table_name, action)] = error

    def raise_if_failing(self, table_name: str, action: str):
        error = self._failures.get((table_name, action))
        if error is not None:
            raise error


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("location_prices", [
                PriceRecordFactory.create(product_id="prod_1")
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Any service constructed inside the test gets the mock.
    """
    with patch("services.price_store.get_supabase_client", return_value=mock_supabase), \
            patch("services.serviceability_service.get_supabase_client", return_value=mock_supabase), \
            patch("services.catalog_service.get_supabase_client", return_value=mock_supabase):
        yield mock_supabase


@pytest.fixture
def pricing_config() -> PricingConfig:
    """Config with the production defaults."""
    return PricingConfig()


@pytest.fixture
def seeded_locations(mock_supabase) -> list[dict]:
    """Two serviceable locations and one switched off."""
    rows = [
        ServiceabilityFactory.create(
            location_code="110001", delivery_days=2, city="New Delhi", state="Delhi"
        ),
        ServiceabilityFactory.create(
            location_code="400001", delivery_days=4, cod_available=False,
            city="Mumbai", state="Maharashtra"
        ),
        ServiceabilityFactory.create(
            location_code="999999", serviceable=False, city="Delhi Cantonment", state="Delhi"
        ),
    ]
    mock_supabase.set_table_data("location_serviceability", rows)
    return rows


@pytest.fixture
def seeded_products(mock_supabase) -> list[dict]:
    rows = [
        ProductFactory.create(id="prod_shirt", sku="SHIRT-001", title="Cotton Shirt"),
        ProductFactory.create(id="prod_pants", sku="PANTS-001", title="Linen Pants"),
    ]
    mock_supabase.set_table_data("products", rows)
    return rows


@pytest.fixture
def seeded_prices(mock_supabase) -> list[dict]:
    rows = [
        PriceRecordFactory.create(product_id="prod_shirt", location_code="110001", price_minor=299900),
        PriceRecordFactory.create(product_id="prod_shirt", location_code="400001", price_minor=309900),
        PriceRecordFactory.create(product_id="prod_shirt", location_code="999999", price_minor=289900),
        PriceRecordFactory.create(product_id="prod_pants", location_code="110001", price_minor=149950),
    ]
    mock_supabase.set_table_data("location_prices", rows)
    return rows
