"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add project directory to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Settings are loaded at import time and require Supabase credentials
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime
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
    """Mock Supabase query builder with chainable methods."""

    def __init__(
        self,
        table: str = "",
        data: list = None,
        count: int = None,
        writes: list = None
    ):
        self._table = table
        self._data = data or []
        self._count = count
        self._is_single = False
        self._writes = writes if writes is not None else []
        self._op = "select"
        self._payload = None
        self._filters = {}

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        self._op = "insert"
        self._payload = data
        # Simulate insert - add id and timestamps
        if isinstance(data, dict):
            data = [data]
        rows = []
        for item in data:
            row = dict(item)
            row.setdefault("id", "test-uuid-123")
            row["created_at"] = datetime.utcnow().isoformat() + "Z"
            rows.append(row)
        self._data = rows
        return self

    def update(self, data):
        self._op = "update"
        self._payload = data
        # Simulate update - merge with existing data
        updated_data = [{**item, **data} for item in self._data]
        self._data = updated_data if updated_data else [data]
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column, value):
        self._filters[column] = value
        return self

    def neq(self, column, value):
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, **kwargs):
        return self

    def range(self, start, end):
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._op != "select":
            self._writes.append({
                "table": self._table,
                "op": self._op,
                "payload": self._payload,
                "filters": dict(self._filters)
            })

        if self._is_single:
            # Return first item or empty for single()
            data = self._data[0] if self._data else None
            return MockSupabaseResponse(
                data=data,
                count=1 if data else 0
            )
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, name: str, data: list = None, count: int = None, writes: list = None):
        self._name = name
        self._data = data or []
        self._count = count
        self._writes = writes

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery(self._name, self._data.copy(), self._count, self._writes)

    def select(self, *args, **kwargs):
        return self._query()

    def insert(self, data):
        return self._query().insert(data)

    def update(self, data):
        # For update, pass the existing data so it can be merged
        return self._query().update(data)

    def delete(self):
        return self._query().delete()


class MockSupabaseClient:
    """Mock Supabase client that records every write."""

    def __init__(self):
        self._tables = {}
        self.writes = []

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count}

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None})
        return MockSupabaseTable(name, config["data"], config["count"], self.writes)

    def writes_to(self, table_name: str, op: str = None) -> list:
        """Recorded writes for a table, optionally of one operation."""
        return [
            w for w in self.writes
            if w["table"] == table_name and (op is None or w["op"] == op)
        ]


# ===================
# FIXTURES
# ===================

@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop cached service instances so each test builds its own."""
    import services.product_service as product_service
    import services.unit_service as unit_service
    import services.product_unit_service as product_unit_service
    import services.pricing_workspace as pricing_workspace

    product_service._product_service = None
    unit_service._unit_service = None
    product_unit_service._product_unit_service = None
    pricing_workspace._pricing_workspace = None
    yield
    product_service._product_service = None
    unit_service._unit_service = None
    product_unit_service._product_unit_service = None
    pricing_workspace._pricing_workspace = None


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "name": "Widget", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.product_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.unit_service.get_supabase_client", return_value=mock_supabase):
                with patch("services.product_unit_service.get_supabase_client", return_value=mock_supabase):
                    yield mock_supabase


@pytest.fixture
def sample_product_data() -> dict:
    """Sample product data for testing."""
    return {
        "id": "test-uuid-123",
        "code": "WID-001",
        "name": "Widget",
        "cost": 10.0,
        "price": 15.0,
        "max_discount_percent": 10.0,
        "category_id": "cat-1",
        "group_id": "grp-1",
        "main_unit_id": "unit-cx",
        "active": True
    }


@pytest.fixture
def sample_units_list() -> list:
    """Box of 12, pack of 6, single item."""
    return [
        {"id": "unit-cx", "value": "CX", "label": "Box", "package_quantity": 12},
        {"id": "unit-pct", "value": "PCT", "label": "Pack", "package_quantity": 6},
        {"id": "unit-un", "value": "UN", "label": "Unit", "package_quantity": 1},
    ]


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/units")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)


@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("units", [...])
            response = test_client_with_mock_db.get("/api/units")
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)
