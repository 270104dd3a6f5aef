"""
Pytest configuration and fixtures for the health tracker.

This module provides:
- An in-memory stand-in for the Supabase data service
- A session provider factory fed by each browser's stored tokens
- Flask test clients: one signed in, one anonymous
"""

import itertools
import random
from datetime import datetime

import pytest

from models.health_entry import HealthEntry, WorkoutType
from notifications import ToastQueue

# Fixed "now" used across stats/chart tests: Wednesday 2024-01-10, 15:30 local
NOW = datetime(2024, 1, 10, 15, 30)


# ============================================================
# FAKES
# ============================================================

class FakeDataService:
    """Table-style CRUD kept in dicts; any operation can be made to fail."""

    def __init__(self, user=None):
        self.tables = {"health_entries": [], "workout_types": [], "mind_maps": []}
        self.user = user
        self.fail = set()
        self.calls = []
        self._ids = itertools.count(1)

    def _check(self, op, table):
        self.calls.append((op, table))
        if op in self.fail or (op, table) in self.fail:
            raise RuntimeError(f"{op} on {table} failed")

    def select(self, table, order_by, ascending=True):
        self._check("select", table)
        rows = [dict(r) for r in self.tables[table]]
        return sorted(rows, key=lambda r: r.get(order_by) or "", reverse=not ascending)

    def insert(self, table, row):
        self._check("insert", table)
        stored = dict(row)
        stored.setdefault("id", f"id-{next(self._ids)}")
        stored.setdefault("updated_at", "2024-01-10T12:00:00+00:00")
        self.tables[table].append(stored)
        return dict(stored)

    def update(self, table, record_id, fields):
        self._check("update", table)
        for row in self.tables[table]:
            if row["id"] == record_id:
                row.update(fields)
                return dict(row)
        raise LookupError(record_id)

    def delete(self, table, record_id):
        self._check("delete", table)
        self.tables[table] = [r for r in self.tables[table] if r["id"] != record_id]

    def get_user(self):
        self.calls.append(("get_user", None))
        return self.user

    def writes(self):
        return [c for c in self.calls if c[0] in ("insert", "update", "delete")]


class FakeSubscription:
    def __init__(self):
        self.active = True

    def unsubscribe(self):
        self.active = False


class FakeSessionProvider:
    def __init__(self, session=None, error=None):
        self.session = session
        self.error = error
        self.callbacks = []
        self.subscriptions = []

    def get_session(self):
        if self.error:
            raise self.error
        return self.session

    def subscribe(self, callback):
        self.callbacks.append(callback)
        sub = FakeSubscription()
        self.subscriptions.append(sub)
        return sub

    def emit(self, event, session):
        self.session = session
        for cb in self.callbacks:
            cb(event, session)


# ============================================================
# DATA FIXTURES
# ============================================================

@pytest.fixture
def workout_rows():
    return [
        {"id": "w1", "name": "Running", "category": "Cardio", "calories_per_minute": 11.4},
        {"id": "w2", "name": "Yoga", "category": "Flexibility", "calories_per_minute": 3.5},
        {"id": "w3", "name": "Cycling", "category": "Cardio", "calories_per_minute": 8.5},
    ]


@pytest.fixture
def workout_types(workout_rows):
    return [WorkoutType.from_record(r) for r in workout_rows]


@pytest.fixture
def entry_rows():
    return [
        {"id": "e1", "user_id": "u1", "entry_date": "2024-01-10", "calories_consumed": 2100,
         "calories_burned": 400, "sleep_hours": 7.5, "sleep_quality": 4, "workout_minutes": 35,
         "workout_type": "Running", "notes": "felt good"},
        {"id": "e2", "user_id": "u1", "entry_date": "2024-01-08", "calories_consumed": 1900,
         "calories_burned": 250, "sleep_hours": 6.0, "sleep_quality": 3, "workout_minutes": 20,
         "workout_type": "Yoga", "notes": ""},
        {"id": "e3", "user_id": "u1", "entry_date": "2023-12-20", "calories_consumed": 2500,
         "calories_burned": 0, "sleep_hours": 8.0, "sleep_quality": 5, "workout_minutes": 0,
         "workout_type": "", "notes": "holiday"},
    ]


@pytest.fixture
def entries(entry_rows):
    return [HealthEntry.from_record(r) for r in entry_rows]


@pytest.fixture
def data_service(entry_rows, workout_rows):
    svc = FakeDataService(user={"id": "u1", "email": "me@example.com"})
    svc.tables["health_entries"] = [dict(r) for r in entry_rows]
    svc.tables["workout_types"] = [dict(r) for r in workout_rows]
    return svc


@pytest.fixture
def toasts():
    return ToastQueue()


@pytest.fixture
def rng():
    return random.Random(42)


# ============================================================
# APP FIXTURES
# ============================================================

TEST_CONFIG = {"TESTING": True, "RATELIMIT_ENABLED": False, "SECRET_KEY": "test"}

# What a signed-in browser carries in its Flask session
SIGNED_IN_TOKENS = {"access_token": "token", "refresh_token": "refresh",
                    "user_id": "u1", "email": "me@example.com"}


class FakeAuth:
    """Session provider factory: one provider per request, fed the browser's tokens."""

    def __init__(self):
        self.error = None
        self.providers = []

    def __call__(self, client, tokens):
        provider = FakeSessionProvider(session=tokens, error=self.error)
        self.providers.append(provider)
        return provider


@pytest.fixture
def auth():
    return FakeAuth()


@pytest.fixture
def app(data_service, auth):
    from app import create_app

    return create_app(
        config=TEST_CONFIG,
        client_factory=lambda: None,
        data_service_factory=lambda client: data_service,
        session_provider_factory=auth,
    )


def sign_in(test_client, tokens=SIGNED_IN_TOKENS):
    from auth_utils import AUTH_SESSION_KEY

    with test_client.session_transaction() as sess:
        sess[AUTH_SESSION_KEY] = dict(tokens)
    return test_client


@pytest.fixture
def client(app):
    return sign_in(app.test_client())


@pytest.fixture
def anon_client(app):
    return app.test_client()
