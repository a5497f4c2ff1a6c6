"""Shared fixtures: an in-memory stand-in for the Supabase table API and seeded groups."""

import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from app.modules.auth.service import clear_auth_cache
from app.modules.foods.service import FoodStore
from app.modules.geo.service import GeoLocator
from app.modules.groups.service import MembershipService
from app.modules.invitations.service import InvitationService
from app.modules.ratings.service import RatingService

ADMIN_ID = "user-admin"
MEMBER_ID = "user-member"
READER_ID = "user-reader"
OUTSIDER_ID = "user-outsider"

UNIQUE_KEYS = {
    "group_members": [("group_id", "user_id")],
    "invitations": [("token",)],
    "ratings": [("food_id",)],
    "profiles": [("id",)],
}

# ON DELETE CASCADE foreign keys, parent table -> [(child table, child column)]
CASCADES = {
    "groups": [
        ("group_members", "group_id"),
        ("invitations", "group_id"),
        ("foods", "group_id"),
        ("recommend_history", "group_id"),
    ],
}

KNOWN_ADDRESSES = {
    "taipei 101": (25.0339, 121.5645),
    "taipei main station": (25.0478, 121.5170),
}


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.orders = []
        self.row_limit = None

    def select(self, *columns, **kwargs):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def upsert(self, payload, on_conflict=""):
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        return self.db.execute(self)


class FakeSupabase:
    """Just enough of supabase.Client for the services: table() query builders and an auth mock."""

    def __init__(self):
        self.tables = defaultdict(list)
        self.failures = {}
        self.auth = MagicMock()
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def table(self, name):
        return FakeQuery(self, name)

    def fail(self, table, op, code="XX000", message="backend unavailable"):
        """Make every `op` on `table` raise like PostgREST does."""
        self.failures[(table, op)] = {"code": code, "message": message}

    def rows(self, table):
        return self.tables[table]

    def seed(self, table, **row):
        return self._insert(table, [row])[0]

    def execute(self, query):
        failure = self.failures.get((query.table, query.op))
        if failure:
            raise APIError(dict(failure))
        handler = getattr(self, f"_do_{query.op}")
        return FakeResponse(handler(query))

    def _tick(self):
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def _check_unique(self, table, row, ignore=None):
        for key in UNIQUE_KEYS.get(table, []):
            for existing in self.tables[table]:
                if existing is ignore:
                    continue
                if all(existing.get(col) == row.get(col) for col in key):
                    raise APIError({
                        "code": "23505",
                        "message": f'duplicate key value violates unique constraint on {table} {key}'
                    })

    def _insert(self, table, payload):
        rows = payload if isinstance(payload, list) else [payload]
        inserted = []
        for data in rows:
            row = dict(data)
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", self._tick())
            self._check_unique(table, row)
            self.tables[table].append(row)
            inserted.append(dict(row))
        return inserted

    def _do_insert(self, query):
        return self._insert(query.table, query.payload)

    def _do_update(self, query):
        updated = []
        for row in self.tables[query.table]:
            if query.matches(row):
                row.update(query.payload)
                updated.append(dict(row))
        return updated

    def _do_upsert(self, query):
        rows = query.payload if isinstance(query.payload, list) else [query.payload]
        key = [c.strip() for c in (query.on_conflict or "id").split(",")]
        result = []
        for data in rows:
            existing = next(
                (r for r in self.tables[query.table] if all(r.get(c) == data.get(c) for c in key)),
                None
            )
            if existing is not None:
                existing.update(data)
                result.append(dict(existing))
            else:
                result.extend(self._insert(query.table, [data]))
        return result

    def _do_delete(self, query):
        kept, deleted = [], []
        for row in self.tables[query.table]:
            (deleted if query.matches(row) else kept).append(row)
        self.tables[query.table] = kept
        for child, column in CASCADES.get(query.table, []):
            ids = {row["id"] for row in deleted}
            self.tables[child] = [r for r in self.tables[child] if r.get(column) not in ids]
        return [dict(row) for row in deleted]

    def _do_select(self, query):
        rows = [dict(r) for r in self.tables[query.table] if query.matches(r)]
        for column, desc in reversed(query.orders):
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        if query.row_limit is not None:
            rows = rows[:query.row_limit]
        return rows


def geocoding_handler(request: httpx.Request) -> httpx.Response:
    address = request.url.params.get("address", "").strip().lower()
    if address == "server error":
        return httpx.Response(500, json={"status": "UNKNOWN_ERROR"})
    if address == "network down":
        raise httpx.ConnectError("connection refused", request=request)
    if address not in KNOWN_ADDRESSES:
        return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
    lat, lng = KNOWN_ADDRESSES[address]
    return httpx.Response(200, json={
        "status": "OK",
        "results": [{"geometry": {"location": {"lat": lat, "lng": lng}}}],
    })


@pytest.fixture(autouse=True)
def _reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def geocoding_calls():
    return []


@pytest.fixture
def geolocator(geocoding_calls):
    def handler(request):
        geocoding_calls.append(request.url.params.get("address"))
        return geocoding_handler(request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return GeoLocator(api_key="test-key", client=client, url="https://geocode.test/json")


@pytest.fixture
def memberships(fake_db):
    return MembershipService(fake_db, protect_last_admin=False)


@pytest.fixture
def invitations(fake_db, memberships):
    return InvitationService(fake_db, memberships, min_role="")


@pytest.fixture
def food_store(fake_db, geolocator, memberships):
    return FoodStore(fake_db, geolocator, memberships)


@pytest.fixture
def ratings(fake_db, memberships):
    return RatingService(fake_db, memberships)


@pytest.fixture
def group(fake_db, memberships):
    """A group with an admin, a member and a read-only member."""
    created = memberships.create_group("Lunch crew", "Weekday lunches", ADMIN_ID)
    fake_db.seed("group_members", group_id=created.id, user_id=MEMBER_ID, role="member")
    fake_db.seed("group_members", group_id=created.id, user_id=READER_ID, role="readonly")
    return created
