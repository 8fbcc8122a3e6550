"""
Shared test fixtures.
"""

import os
import re
import sys
import threading
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime
from typing import Callable, Generator, Optional

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockAPIError(Exception):
    """Stand-in for postgrest's APIError (carries a Postgres error code)."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder that filters the table's rows."""

    def __init__(self, table: "MockSupabaseTable"):
        self._table = table
        self._filters: list[Callable[[dict], bool]] = []
        self._insert = None
        self._order = None
        self._limit = None
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        self._insert = data
        return self

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column, pattern):
        regex = re.compile(
            "".join(".*" if ch == "%" else "." if ch == "_" else re.escape(ch) for ch in pattern),
            re.IGNORECASE
        )
        self._filters.append(lambda row: regex.fullmatch(str(row.get(column) or "")) is not None)
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, desc: bool = False):
        self._order = (column, desc)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._insert is not None:
            return MockSupabaseResponse(data=self._table.insert_rows(self._insert))

        rows = [dict(row) for row in self._table.snapshot() if all(f(row) for f in self._filters)]
        if self._order:
            column, desc = self._order
            rows.sort(key=lambda row: row.get(column) or 0, reverse=desc)
        count = len(rows)
        if self._limit is not None:
            rows = rows[:self._limit]

        if self._is_single:
            return MockSupabaseResponse(data=rows[0] if rows else None, count=1 if rows else 0)
        return MockSupabaseResponse(data=rows, count=count)


class MockSupabaseTable:
    """In-memory table with auto ids, unique keys and injectable insert failures."""

    def __init__(self, name: str, data: list = None):
        self.name = name
        self.rows: list[dict] = [dict(row) for row in (data or [])]
        self.unique_keys: list[tuple[str, ...]] = []
        self.insert_failure: Optional[Callable[[dict], Optional[Exception]]] = None
        self.returns_inserted = True
        self.insert_attempts = 0
        self._lock = threading.Lock()
        self._next_id = max((row.get("id", 0) for row in self.rows), default=0) + 1

    def snapshot(self) -> list[dict]:
        with self._lock:
            return list(self.rows)

    def insert_rows(self, data) -> list[dict]:
        items = data if isinstance(data, list) else [data]
        created = []
        with self._lock:
            for item in items:
                self.insert_attempts += 1
                if self.insert_failure:
                    error = self.insert_failure(item)
                    if error is not None:
                        raise error
                for key in self.unique_keys:
                    if any(all(row.get(c) == item.get(c) for c in key) for row in self.rows):
                        raise MockAPIError(
                            f'duplicate key value violates unique constraint "{self.name}_key"',
                            code="23505"
                        )
                row = {**item, "id": self._next_id, "created_at": datetime.utcnow().isoformat() + "Z"}
                self._next_id += 1
                self.rows.append(row)
                created.append(dict(row))
        return created if self.returns_inserted else []

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self).select(*args, **kwargs)

    def insert(self, data):
        return MockSupabaseQuery(self).insert(data)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure rows for a table."""
        self._tables[table_name] = MockSupabaseTable(table_name, data)

    def add_unique_key(self, table_name: str, *columns: str):
        """Reject inserts that repeat these column values."""
        self.get_table(table_name).unique_keys.append(tuple(columns))

    def fail_inserts(self, table_name: str, when: Callable[[dict], Optional[Exception]]):
        """when(row) returns the exception to raise, or None to accept the row."""
        self.get_table(table_name).insert_failure = when

    def drop_insert_results(self, table_name: str):
        """Store inserted rows but answer with empty data."""
        self.get_table(table_name).returns_inserted = False

    def get_table(self, name: str) -> MockSupabaseTable:
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable(name)
        return self._tables[name]

    def rows(self, name: str) -> list[dict]:
        return self.get_table(name).snapshot()

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        return self.get_table(name)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("orders", [
                {"id": 1, "order_number": "1001", "user_id": 7, ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("orders", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    import services.import_history_service as history_module

    history_module._service = None
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.repositories.get_supabase_client", return_value=mock_supabase):
            with patch("services.import_history_service.get_supabase_client", return_value=mock_supabase):
                yield mock_supabase
    history_module._service = None


@pytest.fixture(autouse=True)
def clear_import_sessions() -> Generator:
    """Every test starts with an empty session store."""
    from services import import_session_store

    import_session_store.clear_sessions()
    yield
    import_session_store.clear_sessions()


@pytest.fixture
def owner_id() -> int:
    """Owner the imported rows belong to."""
    return 7


@pytest.fixture
def sample_order_items_csv() -> str:
    """Two-row order item export: one resolvable order, one junk key."""
    return (
        "Order Number,Description,Sell Price (excl VAT)\n"
        "1001,Choc cake,450\n"
        "ABC,Vanilla,300\n"
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/imports/types")
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
            mock_supabase.set_table_data("orders", [...])
            response = test_client_with_mock_db.post("/api/imports/order-items/upload", ...)
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)
