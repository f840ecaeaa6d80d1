# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - An in-memory stand-in for the Supabase query builder (FakeSupabase)
# - A TestClient with auth dependencies overridden
# =============================================================================

import os
from typing import Any
from unittest.mock import MagicMock
from uuid import UUID

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("SECRET_KEY", "test-phase2-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("PLAID_CLIENT_ID", "test-plaid-client")
os.environ.setdefault("PLAID_SECRET", "test-plaid-secret")
os.environ.setdefault("APP_URL", "https://portal.example.com")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest

from lib.supabase_client import NO_ROWS_CODE, SupabaseClient


BUSINESS_ID = "11111111-1111-1111-1111-111111111111"
USER_ID = "22222222-2222-2222-2222-222222222222"
ADMIN_ID = "33333333-3333-3333-3333-333333333333"


# =============================================================================
# Fake Supabase
# =============================================================================

class FakeResponse:
    def __init__(self, data: Any = None, count: int | None = None):
        self.data = data
        self.count = count


class FakeQuery:
    """Records one PostgREST builder chain and answers from FakeSupabase."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.operation = "select"
        self.columns = "*"
        self.payload: Any = None
        self.filters: list[tuple] = []
        self.options: dict[str, Any] = {}
        self.is_single = False

    def select(self, columns: str = "*", count: str | None = None):
        self.columns = columns
        self.options["count"] = count
        return self

    def insert(self, payload):
        self.operation, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.operation, self.payload = "update", payload
        return self

    def upsert(self, payload, on_conflict: str | None = None):
        self.operation, self.payload = "upsert", payload
        self.options["on_conflict"] = on_conflict
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def _filter(self, op: str, *args):
        self.filters.append((op, *args))
        return self

    def eq(self, column, value):
        return self._filter("eq", column, value)

    def neq(self, column, value):
        return self._filter("neq", column, value)

    def in_(self, column, values):
        return self._filter("in", column, list(values))

    def ilike(self, column, pattern):
        return self._filter("ilike", column, pattern)

    def or_(self, expression):
        return self._filter("or", expression)

    def gte(self, column, value):
        return self._filter("gte", column, value)

    def lte(self, column, value):
        return self._filter("lte", column, value)

    def order(self, column, desc: bool = False):
        self.options["order"] = (column, desc)
        return self

    def range(self, start, end):
        self.options["range"] = (start, end)
        return self

    def limit(self, size):
        self.options["limit"] = size
        return self

    def single(self):
        self.is_single = True
        return self

    def execute(self):
        return self.db._execute(self)

    def eq_value(self, column):
        for entry in self.filters:
            if entry[0] == "eq" and entry[1] == column:
                return entry[2]
        return None


class FakeSupabase:
    """
    In-memory Supabase client.

    Results are queued per (table, operation). A queue with one entry answers
    every matching call; longer queues are consumed in order. Writes without
    a queued result echo their payload back.
    """

    def __init__(self):
        self.queries: list[FakeQuery] = []
        self.rpc_calls: list[tuple[str, dict]] = []
        self._results: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self._rpc_results: dict[str, dict[str, Any]] = {}
        self.auth = MagicMock()
        self.storage = MagicMock()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def set_result(
        self,
        table: str,
        operation: str = "select",
        data: Any = None,
        count: int | None = None,
        error: Exception | None = None,
    ) -> None:
        self._results.setdefault((table, operation), []).append(
            {"data": data, "count": count, "error": error}
        )

    def set_rpc(self, name: str, data: Any = None, error: Exception | None = None) -> None:
        self._rpc_results[name] = {"data": data, "error": error}

    def rpc(self, name: str, params: dict):
        self.rpc_calls.append((name, params))
        result = self._rpc_results.get(name, {"data": None, "error": None})
        call = MagicMock()
        if result["error"]:
            call.execute.side_effect = result["error"]
        else:
            call.execute.return_value = FakeResponse(result["data"])
        return call

    def calls(self, table: str, operation: str | None = None) -> list[FakeQuery]:
        return [
            q for q in self.queries
            if q.table == table and (operation is None or q.operation == operation)
        ]

    def _execute(self, query: FakeQuery) -> FakeResponse:
        self.queries.append(query)
        queue = self._results.get((query.table, query.operation))

        if queue:
            result = queue.pop(0) if len(queue) > 1 else queue[0]
            if result["error"]:
                raise result["error"]
            data, count = result["data"], result["count"]
        elif query.operation in ("insert", "update", "upsert"):
            payload = query.payload
            data = [dict(row) for row in payload] if isinstance(payload, list) else [dict(payload)]
            count = None
        else:
            data, count = [], None

        if query.is_single:
            rows = data if isinstance(data, list) else ([data] if data else [])
            if not rows:
                raise Exception(f"{{'code': '{NO_ROWS_CODE}', 'message': 'no rows returned'}}")
            return FakeResponse(rows[0])

        if count is None and query.options.get("count") and isinstance(data, list):
            count = len(data)
        return FakeResponse(data, count)


@pytest.fixture
def fake_db():
    """Install a FakeSupabase as the shared client for the test."""
    original = SupabaseClient._instance
    db = FakeSupabase()
    SupabaseClient._instance = db
    yield db
    SupabaseClient._instance = original


def auth_user(user_id: str = USER_ID, email: str = "owner@example.com", **metadata) -> MagicMock:
    """Shape returned by client.auth.admin.get_user_by_id."""
    response = MagicMock()
    response.user.id = user_id
    response.user.email = email
    response.user.user_metadata = metadata
    response.user.last_sign_in_at = "2024-05-01T12:00:00Z"
    return response


# =============================================================================
# API Client
# =============================================================================

@pytest.fixture
def api_client(fake_db):
    """TestClient with an admin and a signed-in owner stubbed in."""
    from fastapi.testclient import TestClient

    from app.auth import get_admin_user, get_onboarding_access
    from app.auth.models import AdminUser, OnboardingAccess
    from app.main import app

    app.dependency_overrides[get_admin_user] = lambda: AdminUser(
        id=UUID(ADMIN_ID), email="admin@example.com", role="super_admin"
    )
    app.dependency_overrides[get_onboarding_access] = lambda: OnboardingAccess(
        user_id=USER_ID, email="owner@example.com"
    )
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_business():
    return {
        "id": BUSINESS_ID,
        "business_name": "Glow Mobile Spa",
        "business_type": "independent",
        "contact_email": "hello@glow.example.com",
        "phone": "+15555550100",
        "verification_status": "approved",
        "business_hours": {
            "Monday": {"open": "08:00", "close": "16:00", "closed": False},
            "Sunday": {"open": "09:00", "close": "17:00", "closed": True},
        },
        "setup_completed": False,
        "owner_user_id": USER_ID,
    }
