"""Shared fakes and fixtures.

FakeSupabase mimics the slice of supabase-py the console uses: a PostgREST
builder that applies eq / ilike / is-null / order / range to in-memory rows
and records every call, plus a scriptable auth client.
"""

import threading
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from bridge_console.core.permissions import resolve_scope
from bridge_console.core.query_cache import CachePolicy, QueryCache
from bridge_console.modules.auth.schemas import Profile


class FakeAPIError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.calls: List[tuple] = []
        self._filters = []
        self._orders = []
        self._range = None
        self._limit = None
        self._count = None
        self.head = False
        self._negate = False
        self._op = "select"
        self._payload = None

    def _record(self, *call):
        self.calls.append(call)
        return self

    def select(self, *columns, count=None, head=None):
        self._count = count
        self.head = bool(head)
        return self._record("select", columns, count)

    def insert(self, payload):
        self._op = "insert"
        self._payload = payload
        return self._record("insert", payload)

    def delete(self):
        self._op = "delete"
        return self._record("delete")

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self._record("eq", column, value)

    def ilike(self, column, pattern):
        needle = pattern.strip("%").lower()
        self._filters.append(lambda row: needle in (row.get(column) or "").lower())
        return self._record("ilike", column, pattern)

    @property
    def not_(self):
        self._negate = True
        return self

    def is_(self, column, value):
        negate, self._negate = self._negate, False
        if value == "null":
            self._filters.append(lambda row: (row.get(column) is None) != negate)
        return self._record("not.is" if negate else "is", column, value)

    def order(self, column, desc=False, nullsfirst=None):
        self._orders.append((column, desc, desc if nullsfirst is None else nullsfirst))
        return self._record("order", column, desc, nullsfirst)

    def range(self, start, end):
        self._range = (start, end)
        return self._record("range", start, end)

    def limit(self, size):
        self._limit = size
        return self._record("limit", size)

    def execute(self):
        with self.db.lock:
            self.db.executed.append(self)
        if self.table in self.db.failures:
            raise FakeAPIError(self.db.failures[self.table])

        table_rows = self.db.tables.setdefault(self.table, [])
        if self._op == "insert":
            table_rows.append(dict(self._payload))
            return FakeResponse([dict(self._payload)])

        rows = [row for row in table_rows if all(f(row) for f in self._filters)]
        if self._op == "delete":
            self.db.tables[self.table] = [row for row in table_rows if row not in rows]
            return FakeResponse(rows)

        for column, desc, nulls_first in reversed(self._orders):
            present = sorted((r for r in rows if r.get(column) is not None), key=lambda r: r[column], reverse=desc)
            missing = [r for r in rows if r.get(column) is None]
            rows = missing + present if nulls_first else present + missing

        total = len(rows)
        if self._range is not None:
            rows = rows[self._range[0]:self._range[1] + 1]
        if self._limit is not None:
            rows = rows[:self._limit]
        if self.head:
            rows = []
        return FakeResponse([dict(r) for r in rows], total if self._count else None)


class FakeSubscription:
    def __init__(self, auth: "FakeAuth", callback):
        self.auth = auth
        self.callback = callback

    def unsubscribe(self):
        self.auth.listeners.remove(self.callback)


class FakeAdminAuth:
    def __init__(self, auth: "FakeAuth"):
        self.auth = auth

    def sign_out(self, jwt, scope="global"):
        self.auth.calls.append(("admin.sign_out", jwt))


class FakeAuth:
    def __init__(self, owner: Optional["FakeSupabase"] = None):
        self.owner = owner
        self.session = None
        self.listeners = []
        self.calls: List[tuple] = []
        self.users_by_token: Dict[str, Any] = {}
        self.sign_in_error: Optional[Exception] = None
        self.sign_up_user = SimpleNamespace(id="new-user", email="new@example.com")
        self.admin = FakeAdminAuth(self)

    def get_session(self):
        self.calls.append(("get_session",))
        return self.session

    def on_auth_state_change(self, callback):
        self.listeners.append(callback)
        return FakeSubscription(self, callback)

    def emit(self, event, session):
        self.session = session
        if self.owner is not None:
            # supabase-py swaps the PostgREST bearer of the emitting client
            token = session.access_token if session else FakeSupabase.ANON_KEY
            self.owner.headers["Authorization"] = f"Bearer {token}"
        for listener in list(self.listeners):
            listener(event, session)

    def sign_in_with_password(self, credentials):
        self.calls.append(("sign_in_with_password", credentials["email"]))
        if self.sign_in_error is not None:
            raise self.sign_in_error
        user = SimpleNamespace(id="u-client", email=credentials["email"])
        session = SimpleNamespace(user=user, access_token="token-123")
        self.emit("SIGNED_IN", session)
        return SimpleNamespace(user=user, session=session)

    def sign_up(self, payload):
        self.calls.append(("sign_up", payload))
        return SimpleNamespace(user=self.sign_up_user, session=None)

    def sign_out(self):
        self.calls.append(("sign_out",))
        self.emit("SIGNED_OUT", None)

    def reset_password_for_email(self, email, options=None):
        self.calls.append(("reset_password_for_email", email, options))

    def get_user(self, jwt=None):
        self.calls.append(("get_user", jwt))
        user = self.users_by_token.get(jwt)
        if user is None:
            raise FakeAPIError("invalid JWT")
        return SimpleNamespace(user=user)


class FakeSupabase:
    ANON_KEY = "anon-key"

    def __init__(self):
        self.headers = {"Authorization": f"Bearer {self.ANON_KEY}"}
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failures: Dict[str, str] = {}
        self.executed: List[FakeQuery] = []
        self.table_calls: List[str] = []
        self.auth = FakeAuth(self)
        self.lock = threading.Lock()

    def table(self, name: str) -> FakeQuery:
        with self.lock:
            self.table_calls.append(name)
        return FakeQuery(self, name)

    def queries_on(self, table: str) -> List[FakeQuery]:
        return [q for q in self.executed if q.table == table]


def make_license_rows(client_id: str, statuses: Dict[str, int], start: int = 0) -> List[Dict[str, Any]]:
    rows = []
    n = start
    for status, count in statuses.items():
        for _ in range(count):
            rows.append({
                "id": f"lic-{n}",
                "name": f"License {n}",
                "editor": "Contoso",
                "status": status,
                "expiry_date": f"2027-{(n % 12) + 1:02d}-15",
                "cost": 100,
                "client_id": client_id,
                "client_name": f"Client {client_id}",
            })
            n += 1
    return rows


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def admin_scope():
    return resolve_scope(Profile(id="u-admin", role="admin"))


@pytest.fixture
def client_scope():
    return resolve_scope(Profile(id="u-client", role="client", client_id="C1"))


@pytest.fixture
def instant_cache() -> QueryCache:
    """Cache that never waits between retries."""
    return QueryCache(CachePolicy(retry_base_delay=0, retry_max_delay=0))
