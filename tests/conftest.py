"""Shared fixtures: in-memory row store, recording event sink, actors, clock."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
import os
from typing import Any

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from portal_api.engagement import Actor, EngineContext, Role, SchemaCapabilities  # noqa: E402
from portal_api.store import (  # noqa: E402
    ConstraintViolationError,
    MissingColumnError,
    MissingTableError,
    StoreUnavailableError,
)
from portal_shared.contracts import EngagementEvent  # noqa: E402
from portal_shared.models import new_id  # noqa: E402

START = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)


class FakeRowStore:
    """In-memory stand-in for ``RowStore``.

    Simulates the schema shapes of older deployments: columns that do not
    exist yet, CHECK constraints with a narrower vocabulary, missing tables
    and an unreachable database.
    """

    def __init__(self):
        self.tables: dict[str, dict[str, dict[str, Any]]] = {}
        self.missing_columns: dict[str, set[str]] = {}
        self.missing_tables: set[str] = set()
        self.unavailable_tables: set[str] = set()
        self.checks: dict[tuple[str, str], set[Any]] = {}
        self.updates: list[tuple[str, str, dict[str, Any]]] = []

    # Schema simulation

    def drop_columns(self, table: str, *columns: str) -> None:
        self.missing_columns.setdefault(table, set()).update(columns)

    def restrict(self, table: str, column: str, allowed: set[Any]) -> None:
        self.checks[(table, column)] = allowed

    def seed(self, table: str, **values: Any) -> dict[str, Any]:
        row = {"id": new_id(), **values}
        self.tables.setdefault(table, {})[row["id"]] = row
        return dict(row)

    def rows(self, table: str) -> list[dict[str, Any]]:
        return [dict(row) for row in self.tables.get(table, {}).values()]

    def _check(self, table: str, keys) -> None:
        if table in self.unavailable_tables:
            raise StoreUnavailableError("connection refused", table=table)
        if table in self.missing_tables:
            raise MissingTableError(f'relation "{table}" does not exist', table=table)
        missing = self.missing_columns.get(table, set()) & set(keys)
        if missing:
            raise MissingColumnError(
                f'column "{sorted(missing)[0]}" of relation "{table}" does not exist', table=table
            )

    def _validate(self, table: str, values: dict[str, Any]) -> None:
        for (check_table, column), allowed in self.checks.items():
            if check_table == table and column in values and values[column] not in allowed:
                raise ConstraintViolationError(
                    f'new row for relation "{table}" violates check constraint '
                    f'"{table}_{column}_check"',
                    table=table,
                )

    # RowStore interface

    async def get_row(self, table_name: str, row_id: str) -> dict[str, Any] | None:
        self._check(table_name, ["id"])
        row = self.tables.get(table_name, {}).get(row_id)
        return dict(row) if row is not None else None

    async def select_rows(
        self,
        table_name: str,
        *,
        columns: list[str] | None = None,
        where: dict[str, Any] | None = None,
        where_in: dict[str, list[Any]] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        where = where or {}
        where_in = where_in or {}
        self._check(table_name, [*(columns or []), *where, *where_in])
        if any(not values for values in where_in.values()):
            return []

        rows = [
            row
            for row in self.tables.get(table_name, {}).values()
            if all(row.get(k) == v for k, v in where.items())
            and all(row.get(k) in v for k, v in where_in.items())
        ]
        if order_by:
            rows.sort(
                key=lambda r: (r.get(order_by) is not None, r.get(order_by)), reverse=descending
            )
        if limit is not None:
            rows = rows[:limit]
        if columns:
            return [{c: row.get(c) for c in columns} for row in rows]
        return [dict(row) for row in rows]

    async def insert_row(self, table_name: str, values: dict[str, Any]) -> dict[str, Any]:
        values = {"id": new_id(), **values}
        self._check(table_name, values)
        self._validate(table_name, values)
        self.tables.setdefault(table_name, {})[values["id"]] = dict(values)
        return dict(values)

    async def update_row(
        self,
        table_name: str,
        row_id: str,
        values: dict[str, Any],
        *,
        expect: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        expect = expect or {}
        self.updates.append((table_name, row_id, dict(values)))
        self._check(table_name, [*values, *expect])
        self._validate(table_name, values)
        row = self.tables.get(table_name, {}).get(row_id)
        if row is None or any(row.get(k) != v for k, v in expect.items()):
            return None
        row.update(values)
        return dict(row)

    async def delete_row(self, table_name: str, row_id: str) -> bool:
        self._check(table_name, ["id"])
        return self.tables.get(table_name, {}).pop(row_id, None) is not None


class RecordingEventSink:
    def __init__(self, fail: bool = False):
        self.events: list[EngagementEvent] = []
        self.fail = fail

    async def emit(self, event: EngagementEvent) -> None:
        if self.fail:
            raise RuntimeError("notification table unavailable")
        self.events.append(event)


def ticking_clock(
    start: datetime = START, step: timedelta = timedelta(seconds=1)
) -> Callable[[], datetime]:
    """Clock that advances by ``step`` on every call."""
    state = {"now": start - step}

    def clock() -> datetime:
        state["now"] += step
        return state["now"]

    return clock


@pytest.fixture
def store() -> FakeRowStore:
    return FakeRowStore()


@pytest.fixture
def sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return ticking_clock()


@pytest.fixture
def ctx(store, sink, clock) -> EngineContext:
    return EngineContext(
        store=store,
        events=sink,
        capabilities=SchemaCapabilities(),
        clock=clock,
    )


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="admin-1", role=Role.ADMIN)


@pytest.fixture
def client_actor() -> Actor:
    return Actor(user_id="user-1", role=Role.CLIENT, client_id="client-1")


@pytest.fixture
def other_client() -> Actor:
    return Actor(user_id="user-2", role=Role.CLIENT, client_id="client-2")


@pytest.fixture
def make_project(store) -> Callable[..., dict[str, Any]]:
    """Seed a project owned by client-1."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> dict[str, Any]:
        counter["n"] += 1
        values = {
            "client_id": "client-1",
            "title": f"Project {counter['n']}",
            "status": "REQUEST_RECEIVED",
            "notes": None,
            "requested_budget": None,
            "budget_status": None,
            "proposed_budget": None,
            "created_at": START + timedelta(minutes=counter["n"]),
        }
        values.update(overrides)
        return store.seed("projects", **values)

    return _make


@pytest.fixture
def pending_project(make_project) -> dict[str, Any]:
    return make_project(
        title="Launch Event",
        requested_budget=Decimal("10000"),
        budget_status="PENDING",
    )


@pytest.fixture
def failing_sink() -> RecordingEventSink:
    return RecordingEventSink(fail=True)
