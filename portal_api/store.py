"""Row store over SQLAlchemy Core.

The engine treats persistence as an opaque store of rows: get, select,
insert, update and delete filtered by equality, ``IN`` and ordering. Statements
are built with lightweight ``table()``/``column()`` constructs so the same code
runs against every schema shape that may be deployed. Column types are borrowed
from the declared models (the newest shape) for bind and result conversion.

Driver errors are translated into a small taxonomy so callers can tell a
statement that does not fit the deployed schema (``SchemaShapeError``) from a
store that is down.
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
import json
from typing import Any
import uuid

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Numeric,
    column,
    delete,
    insert,
    literal_column,
    select,
    table,
    update,
)
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.sql.expression import ColumnElement, TableClause
import structlog

from portal_shared.models import Base, new_id

logger = structlog.get_logger(__name__)

Row = dict[str, Any]

# PostgreSQL SQLSTATE codes
_UNDEFINED_COLUMN = "42703"
_UNDEFINED_TABLE = "42P01"
_CHECK_VIOLATION = "23514"


class StoreError(Exception):
    """Base class for row store failures."""

    def __init__(self, message: str, table: str | None = None):
        super().__init__(message)
        self.table = table


class SchemaShapeError(StoreError):
    """The statement does not fit the schema shape that is deployed."""


class MissingColumnError(SchemaShapeError):
    """A referenced column does not exist (not migrated yet)."""


class ConstraintViolationError(SchemaShapeError):
    """A CHECK constraint rejected the written values."""


class MissingTableError(StoreError):
    """The table does not exist (not migrated yet)."""


class StoreUnavailableError(StoreError):
    """The database could not be reached."""


def classify_db_error(exc: DBAPIError, table_name: str) -> StoreError:
    """Translate a driver error into the store taxonomy.

    Uses the SQLSTATE when the driver exposes one and falls back to the
    message text (SQLite has no SQLSTATE).
    """
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    message = str(orig) if orig is not None else str(exc)
    lowered = message.lower()

    if (
        code == _UNDEFINED_COLUMN
        or "no such column" in lowered
        or "has no column named" in lowered
        or ("column" in lowered and "does not exist" in lowered)
    ):
        return MissingColumnError(message, table=table_name)
    if code == _CHECK_VIOLATION or "check constraint" in lowered:
        return ConstraintViolationError(message, table=table_name)
    if (
        code == _UNDEFINED_TABLE
        or "no such table" in lowered
        or ("relation" in lowered and "does not exist" in lowered)
    ):
        return MissingTableError(message, table=table_name)
    if exc.connection_invalidated:
        return StoreUnavailableError(message, table=table_name)
    return StoreError(message, table=table_name)


@contextmanager
def _translate_errors(table_name: str) -> Iterator[None]:
    try:
        yield
    except DBAPIError as e:
        error = classify_db_error(e, table_name)
        logger.debug(
            "store_statement_failed",
            table=table_name,
            error_type=type(error).__name__,
            error=str(error),
        )
        raise error from e
    except (OSError, TimeoutError) as e:
        raise StoreUnavailableError(str(e), table=table_name) from e


def _table(name: str, keys: Iterable[str]) -> TableClause:
    declared = Base.metadata.tables.get(name)
    columns = []
    for key in dict.fromkeys(keys):
        declared_column = declared.c.get(key) if declared is not None else None
        columns.append(column(key, declared_column.type if declared_column is not None else None))
    return table(name, *columns)


def _decode_row(name: str, row: Any) -> Row:
    """Normalize raw driver values using the declared column types."""
    # asyncpg hands uuid columns back as uuid.UUID; the engine compares ids as text
    decoded = {
        key: str(value) if isinstance(value, uuid.UUID) else value
        for key, value in dict(row).items()
    }
    declared = Base.metadata.tables.get(name)
    if declared is None:
        return decoded

    for key, value in decoded.items():
        declared_column = declared.c.get(key)
        if declared_column is None or value is None:
            continue
        if isinstance(declared_column.type, JSON) and isinstance(value, str):
            decoded[key] = json.loads(value)
        elif isinstance(declared_column.type, Numeric) and not isinstance(value, Decimal):
            decoded[key] = Decimal(str(value))
        # Drivers without native temporal types (SQLite) hand back ISO strings
        elif isinstance(declared_column.type, DateTime) and isinstance(value, str):
            decoded[key] = datetime.fromisoformat(value)
        elif isinstance(declared_column.type, Date) and isinstance(value, str):
            decoded[key] = date.fromisoformat(value)
    return decoded


def _conditions(t: TableClause, where: dict[str, Any]) -> list[ColumnElement[bool]]:
    return [
        t.c[key].is_(None) if value is None else t.c[key] == value for key, value in where.items()
    ]


class RowStore:
    """Async row access; every call runs in its own transaction.

    Separate connections per call let independent reads run concurrently
    (``asyncio.gather``) on one store.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def get_row(self, table_name: str, row_id: str) -> Row | None:
        rows = await self.select_rows(table_name, where={"id": row_id}, limit=1)
        return rows[0] if rows else None

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
    ) -> list[Row]:
        """Select rows by equality and ``IN`` filters.

        Args:
            table_name: Table to read
            columns: Columns to return; all columns when omitted
            where: Equality filters (``None`` matches NULL)
            where_in: Membership filters; an empty list matches nothing
            order_by: Column to sort by
            descending: Sort direction
            limit: Maximum number of rows
        """
        where = where or {}
        where_in = where_in or {}
        if any(not values for values in where_in.values()):
            return []

        keys = [*(columns or []), *where, *where_in, *([order_by] if order_by else [])]
        t = _table(table_name, keys)

        if columns:
            query = select(*[t.c[key] for key in columns])
        else:
            query = select(literal_column("*")).select_from(t)
        query = query.where(*_conditions(t, where))
        for key, values in where_in.items():
            query = query.where(t.c[key].in_(values))
        if order_by:
            query = query.order_by(t.c[order_by].desc() if descending else t.c[order_by].asc())
        if limit is not None:
            query = query.limit(limit)

        with _translate_errors(table_name):
            async with self._engine.connect() as conn:
                result = await conn.execute(query)
                return [_decode_row(table_name, row) for row in result.mappings().all()]

    async def insert_row(self, table_name: str, values: dict[str, Any]) -> Row:
        """Insert a row and return it as stored. Generates ``id`` when missing."""
        values = {"id": new_id(), **values}
        t = _table(table_name, values)
        with _translate_errors(table_name):
            async with self._engine.begin() as conn:
                await conn.execute(insert(t).values(**values))
                result = await conn.execute(
                    select(literal_column("*")).select_from(t).where(t.c.id == values["id"])
                )
                return _decode_row(table_name, result.mappings().one())

    async def update_row(
        self,
        table_name: str,
        row_id: str,
        values: dict[str, Any],
        *,
        expect: dict[str, Any] | None = None,
    ) -> Row | None:
        """Update one row in a single statement and return it as stored.

        Args:
            table_name: Table to write
            row_id: Primary key of the row
            values: Columns to set
            expect: Extra equality guards (compare-and-set); the update only
                applies when the row still holds these values

        Returns:
            The updated row, or None when no row matched id and guards
        """
        expect = expect or {}
        t = _table(table_name, ["id", *values, *expect])
        statement = update(t).where(t.c.id == row_id, *_conditions(t, expect)).values(**values)

        with _translate_errors(table_name):
            async with self._engine.begin() as conn:
                result = await conn.execute(statement)
                if result.rowcount == 0:
                    return None
                fetched = await conn.execute(
                    select(literal_column("*")).select_from(t).where(t.c.id == row_id)
                )
                return _decode_row(table_name, fetched.mappings().one())

    async def delete_row(self, table_name: str, row_id: str) -> bool:
        """Delete one row. Returns False when nothing matched."""
        t = _table(table_name, ["id"])
        with _translate_errors(table_name):
            async with self._engine.begin() as conn:
                result = await conn.execute(delete(t).where(t.c.id == row_id))
                return result.rowcount > 0
