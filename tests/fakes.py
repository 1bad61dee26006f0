"""
In-memory stand-in for the Supabase client used by the tests.
Implements the subset of the query builder, storage and auth APIs the
application calls.
"""
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional
import copy
import uuid

from postgrest.exceptions import APIError
from supabase import AuthError

PUBLIC_URL_BASE = "https://fake-project.supabase.co/storage/v1/object/public"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def not_found_error() -> APIError:
    return APIError({
        "message": "JSON object requested, multiple (or no) rows returned",
        "code": "PGRST116",
        "details": "The result contains 0 rows",
        "hint": None,
    })


def api_error(message: str = "new row violates check constraint", code: str = "23514") -> APIError:
    return APIError({"message": message, "code": code, "details": None, "hint": None})


class FakeQuery:
    def __init__(self, client: "FakeSupabaseClient", table: str):
        self.client = client
        self.table = table
        self.action = "select"
        self.payload: Any = None
        self.filters: List[tuple] = []
        self.ordering: Optional[tuple] = None
        self.is_single = False
        self.on_conflict: Optional[str] = None

    def select(self, *columns):
        self.action = "select"
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def upsert(self, payload, on_conflict: str = ""):
        self.action = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc: bool = False):
        self.ordering = (column, desc)
        return self

    def single(self):
        self.is_single = True
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        self.client.calls.append((self.table, self.action, copy.deepcopy(self.payload), list(self.filters)))

        error = self.client.pop_failure(self.table)
        if error is not None:
            raise error

        rows = self.client.tables.setdefault(self.table, [])

        if self.action == "select":
            result = [copy.deepcopy(r) for r in rows if self._matches(r)]
            if self.ordering:
                column, desc = self.ordering
                result.sort(key=lambda r: r.get(column), reverse=desc)
            if self.is_single:
                if len(result) != 1:
                    raise not_found_error()
                return SimpleNamespace(data=result[0])
            return SimpleNamespace(data=result)

        if self.action == "insert":
            row = {"id": str(uuid.uuid4()), "created_at": _now(), **copy.deepcopy(self.payload)}
            rows.append(row)
            return SimpleNamespace(data=[copy.deepcopy(row)])

        if self.action == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated)

        if self.action == "upsert":
            existing = next((r for r in rows if r.get(self.on_conflict) == self.payload.get(self.on_conflict)), None)
            if existing is not None:
                existing.update(copy.deepcopy(self.payload))
                return SimpleNamespace(data=[copy.deepcopy(existing)])
            row = {"id": str(uuid.uuid4()), **copy.deepcopy(self.payload)}
            rows.append(row)
            return SimpleNamespace(data=[copy.deepcopy(row)])

        if self.action == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.client.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=removed)

        raise AssertionError(f"Unsupported action {self.action}")


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path: str, content: bytes, file_options: Optional[dict] = None):
        if self.storage.fail_uploads:
            raise RuntimeError("The resource already exists")
        self.storage.objects[(self.name, path)] = (content, file_options or {})
        return SimpleNamespace(path=path)

    def get_public_url(self, path: str) -> str:
        return f"{PUBLIC_URL_BASE}/{self.name}/{path}"


class FakeStorage:
    def __init__(self):
        self.objects: Dict[tuple, tuple] = {}
        self.fail_uploads = False

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self, bucket)


class FakeAuth:
    def __init__(self, users: Optional[Dict[str, str]] = None):
        self.users = dict(users or {})
        self.session: Optional[Any] = None
        self.callbacks: List[Callable] = []

    def _notify(self, event: str) -> None:
        for callback in list(self.callbacks):
            callback(event, self.session)

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)

        def unsubscribe():
            if callback in self.callbacks:
                self.callbacks.remove(callback)

        return SimpleNamespace(id=str(uuid.uuid4()), callback=callback, unsubscribe=unsubscribe)

    def get_session(self):
        return self.session

    def sign_in_with_password(self, credentials: dict):
        email = credentials["email"]
        if self.users.get(email) != credentials["password"]:
            raise AuthError("Invalid login credentials", "invalid_credentials")
        user = SimpleNamespace(id=str(uuid.uuid4()), email=email)
        self.session = SimpleNamespace(access_token="fake-access-token", user=user)
        self._notify("SIGNED_IN")
        return SimpleNamespace(user=user, session=self.session)

    def sign_out(self):
        self.session = None
        self._notify("SIGNED_OUT")


class FakeSupabaseClient:
    def __init__(self, users: Optional[Dict[str, str]] = None):
        self.tables: Dict[str, List[dict]] = {}
        self.calls: List[tuple] = []
        self.failures: Dict[str, List[Exception]] = {}
        self.storage = FakeStorage()
        self.auth = FakeAuth(users)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail_next(self, table: str, error: Optional[Exception] = None, times: int = 1) -> None:
        """Make the next `times` requests on `table` raise `error`."""
        self.failures.setdefault(table, []).extend([error or api_error()] * times)

    def pop_failure(self, table: str) -> Optional[Exception]:
        queued = self.failures.get(table)
        if queued:
            return queued.pop(0)
        return None

    def seed(self, table: str, *rows: dict) -> List[dict]:
        stored = []
        for row in rows:
            full = {"id": str(uuid.uuid4()), "created_at": _now(), **row}
            self.tables.setdefault(table, []).append(full)
            stored.append(copy.deepcopy(full))
        return stored

    def calls_for(self, table: str, action: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == table and c[1] == action]
