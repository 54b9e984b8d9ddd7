import re
import uuid
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from brain_db.core.http import get_http_client
from brain_db.core.token_cache import TokenCache, get_token_cache
from brain_db.database.supabase_client import get_supabase, get_supabase_admin
from brain_db.main import app


def _ilike(value: Any, pattern: str) -> bool:
    regex = "^" + re.escape(pattern.lower()).replace("%", ".*") + "$"
    return value is not None and re.match(regex, str(value).lower()) is not None


class FakeQuery:
    """The subset of the postgrest query builder the services use."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.orders: List[tuple] = []
        self.action = "select"
        self.payload: Any = None
        self.start = 0
        self.stop: Optional[int] = None

    def select(self, columns: str = "*"):
        self.action = "select"
        return self

    def insert(self, payload):
        self.action, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.action, self.payload = "update", payload
        return self

    def upsert(self, payload):
        self.action, self.payload = "upsert", payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def ilike(self, column, pattern):
        self.filters.append(lambda row: _ilike(row.get(column), pattern))
        return self

    def contains(self, column, values):
        self.filters.append(lambda row: all(v in (row.get(column) or []) for v in values))
        return self

    def or_(self, expression):
        clauses = []
        for part in expression.split(","):
            column, op, pattern = part.split(".", 2)
            assert op == "ilike"
            clauses.append((column, pattern))
        self.filters.append(lambda row: any(_ilike(row.get(c), p) for c, p in clauses))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self.stop = self.start + count
        return self

    def offset(self, count):
        size = None if self.stop is None else self.stop - self.start
        self.start = count
        self.stop = None if size is None else count + size
        return self

    def range(self, start, end):
        self.start, self.stop = start, end + 1
        return self

    def _matching(self) -> List[Dict[str, Any]]:
        return [row for row in self.db.rows(self.table) if all(f(row) for f in self.filters)]

    def execute(self):
        if self.db.fail_tables.get(self.table):
            raise RuntimeError(self.db.fail_tables[self.table])
        rows = self.db.rows(self.table)
        if self.action == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [{"id": str(uuid.uuid4()), **row} for row in new_rows]
            rows.extend(created)
            return SimpleNamespace(data=[dict(r) for r in created])
        if self.action == "upsert":
            row = dict(self.payload)
            existing = next((r for r in rows if r.get("id") == row.get("id")), None)
            if existing:
                existing.update(row)
                return SimpleNamespace(data=[dict(existing)])
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])
        matching = self._matching()
        if self.action == "update":
            for row in matching:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in matching])
        if self.action == "delete":
            self.db.tables[self.table] = [r for r in rows if r not in matching]
            return SimpleNamespace(data=[dict(r) for r in matching])
        for column, desc in reversed(self.orders):
            matching.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        return SimpleNamespace(data=[dict(r) for r in matching[self.start:self.stop]])


class FakeBucket:
    def __init__(self, name: str):
        self.name = name
        self.objects: Dict[str, Dict[str, Any]] = {}

    def upload(self, path, content, options=None):
        self.objects[path] = {"content": content, "options": options or {}}
        return SimpleNamespace(path=path)

    def list(self, folder, options=None):
        prefix = f"{folder}/"
        listed = []
        for path, obj in self.objects.items():
            if path.startswith(prefix):
                listed.append({
                    "name": path[len(prefix):],
                    "created_at": "2024-05-01T10:00:00+00:00",
                    "metadata": {
                        "size": len(obj["content"]),
                        "mimetype": obj["options"].get("content-type"),
                    },
                })
        return listed

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.buckets: Dict[str, FakeBucket] = {}

    def from_(self, name):
        return self.buckets.setdefault(name, FakeBucket(name))


class FakeAuthAdmin:
    def __init__(self):
        self.users: List[SimpleNamespace] = []

    def create_user(self, attributes):
        user = SimpleNamespace(id=str(uuid.uuid4()), email=attributes["email"], email_confirmed_at=None)
        self.users.append(user)
        return SimpleNamespace(user=user)

    def list_users(self):
        return list(self.users)


class FakeAuth:
    def __init__(self):
        self.admin = FakeAuthAdmin()
        self.tokens: Dict[str, SimpleNamespace] = {}

    def get_user(self, jwt=None):
        user = self.tokens.get(jwt)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=user)


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_tables: Dict[str, str] = {}
        self.storage = FakeStorage()
        self.auth = FakeAuth()

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, *rows: Dict[str, Any]) -> None:
        self.rows(table).extend(dict(r) for r in rows)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def token_cache():
    clock = SimpleNamespace(now=1_000_000.0)
    cache = TokenCache(clock=lambda: clock.now)
    cache.clock = clock
    return cache


@pytest.fixture
def vendor_requests():
    return []


@pytest.fixture
def vendor_routes():
    """(method, url substring) -> response factory taking the request."""
    return {}


@pytest.fixture
def http_client(vendor_routes, vendor_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        vendor_requests.append(request)
        for (method, fragment), respond in vendor_routes.items():
            if request.method == method and fragment in str(request.url):
                return respond(request)
        return httpx.Response(404, text=f"no route for {request.method} {request.url}")

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def client(fake_supabase, token_cache, http_client):
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_supabase_admin] = lambda: fake_supabase
    app.dependency_overrides[get_token_cache] = lambda: token_cache
    app.dependency_overrides[get_http_client] = lambda: http_client
    yield TestClient(app)
    app.dependency_overrides.clear()
