"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Settings are loaded at import time; tests never talk to a real project
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import patch
from typing import Generator

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    Filters (eq, neq, in_, gte, lte), order and range are applied to the
    configured rows, so services see only the rows a real query would
    return. Like PostgREST, no response carries more than the client's
    max_rows.
    """

    def __init__(self, client, table: str, data: list = None, count: int = None):
        self._client = client
        self._table = table
        self._data = [dict(row) for row in (data or [])]
        self._count = count
        self._is_single = False
        self._inserted = None
        self._deleting = False
        self._range = None

    def _filter(self, predicate):
        self._data = [row for row in self._data if predicate(row)]
        return self

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        # Simulate insert - add sequential ids
        rows = [data] if isinstance(data, dict) else list(data)
        stored = []
        for row in rows:
            item = dict(row)
            item.setdefault("id", f"{self._table}-{self._client.next_id()}")
            stored.append(item)
        self._inserted = stored
        self._data = stored
        return self

    def delete(self):
        self._deleting = True
        return self

    def eq(self, column, value):
        return self._filter(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._filter(lambda row: row.get(column) != value)

    def in_(self, column, values):
        values = list(values)
        return self._filter(lambda row: row.get(column) in values)

    def gte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row[column] >= value)

    def lte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row[column] <= value)

    def single(self):
        self._is_single = True
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._data.sort(key=lambda row: (row.get(column) is None, row.get(column)), reverse=desc)
        return self

    def range(self, start: int, end: int):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._data = self._data[:count]
        return self

    def execute(self) -> MockSupabaseResponse:
        error = self._client.errors.get(self._table)
        if error is not None:
            raise error
        if self._inserted is not None:
            self._client.inserted.setdefault(self._table, []).extend(self._inserted)
        if self._deleting:
            self._client.deleted.setdefault(self._table, []).extend(self._data)
        if self._is_single:
            data = self._data[0] if self._data else None
            return MockSupabaseResponse(
                data=data,
                count=1 if data else 0
            )
        self._client.executions[self._table] = self._client.executions.get(self._table, 0) + 1
        data = self._data
        if self._range is not None:
            data = data[self._range[0]:self._range[1] + 1]
        data = data[:self._client.max_rows]
        return MockSupabaseResponse(
            data=data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, client, name: str, data: list = None, count: int = None):
        self._client = client
        self._name = name
        self._data = data or []
        self._count = count

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery(self._client, self._name, self._data, self._count)

    def select(self, *args, **kwargs):
        return self._query().select(*args, **kwargs)

    def insert(self, data):
        return self._query().insert(data)

    def delete(self):
        return self._query().delete()


class MockSupabaseClient:
    """Mock Supabase client that records writes."""

    def __init__(self, max_rows: int = 1000):
        self._tables = {}
        self._ids = 0
        self.max_rows = max_rows
        self.executions = {}
        self.errors = {}
        self.inserted = {}
        self.deleted = {}

    def next_id(self) -> int:
        self._ids += 1
        return self._ids

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count}

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query against a table raise ``error``."""
        self.errors[table_name] = error

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None})
        return MockSupabaseTable(self, name, config["data"], config["count"])


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"code": "SEMI-1", "name": "Base cream", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database clients with the mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Services created now read from the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.catalog_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.manufacture_order_service.get_admin_client", return_value=None):
                with patch("services.manufacture_order_service.get_supabase_client", return_value=mock_supabase):
                    yield mock_supabase


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Startup checks the catalog connection, so the client is created with
    the database patched.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    healthy = {"status": "healthy", "products_count": 0, "templates_count": 0}
    with patch("main.check_connection", return_value=healthy):
        yield TestClient(app)
