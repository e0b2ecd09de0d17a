"""In-memory store capability.

``MemoryStore`` implements the fluent builder protocol over plain dicts. It mirrors the
behavior of the PostgREST builder closely enough for tests and local development:

- inserts return the stored rows and assign an increasing integer primary key when missing
- updates and deletes return the rows they touched
- ``select("*", count="exact", head=True)`` returns no rows and the exact count
- ``range(start, end)`` is inclusive on both ends
"""

import inspect
import itertools
from collections.abc import Mapping, Sequence
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from sqlbridge.utils.logging import get_logger

__all__ = ("MemoryQuery", "MemoryRPC", "MemoryResponse", "MemoryStore", "MemoryStoreError")

logger = get_logger("adapters.memory")

UNIQUE_VIOLATION = "23505"
UNDEFINED_TABLE = "42P01"
UNDEFINED_FUNCTION = "42883"
UNSUPPORTED_FEATURE = "0A000"


class MemoryStoreError(RuntimeError):
    """Failure raised by the in-memory store, shaped like a PostgREST API error."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


@dataclass
class MemoryResponse:
    data: Any = field(default_factory=list)
    count: Optional[int] = None


@dataclass
class _Table:
    rows: "list[dict[str, Any]]" = field(default_factory=list)
    sequence: "itertools.count[int]" = field(default_factory=lambda: itertools.count(1))


def _values_equal(stored: Any, expected: Any) -> bool:
    # Booleans never equal numbers, as in a typed Postgres column.
    if isinstance(stored, bool) is not isinstance(expected, bool):
        return False
    return bool(stored == expected)


def _sort_key(column: str) -> "Callable[[dict[str, Any]], tuple[bool, Any]]":
    def _key(row: "dict[str, Any]") -> "tuple[bool, Any]":
        value = row.get(column)
        return (value is None, value)

    return _key


class MemoryQuery:
    """A single builder chain against one table."""

    __slots__ = (
        "_columns",
        "_count",
        "_filters",
        "_head",
        "_limit",
        "_offset",
        "_operation",
        "_order",
        "_payload",
        "_store",
        "_table",
    )

    def __init__(self, store: "MemoryStore", table: str) -> None:
        self._store = store
        self._table = table
        self._operation = "select"
        self._columns: Optional[list[str]] = None
        self._count: Optional[str] = None
        self._head = False
        self._payload: Any = None
        self._filters: list[tuple[str, Any]] = []
        self._order: list[tuple[str, bool]] = []
        self._limit: Optional[int] = None
        self._offset = 0

    def select(self, *columns: str, count: Optional[str] = None, head: Optional[bool] = None) -> "MemoryQuery":
        self._operation = "select"
        names = [name.strip() for column in columns for name in column.split(",") if name.strip()]
        self._columns = None if not names or names == ["*"] else names
        self._count = count
        self._head = bool(head)
        return self

    def insert(self, record: "Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]") -> "MemoryQuery":
        self._operation = "insert"
        self._payload = [dict(record)] if isinstance(record, Mapping) else [dict(item) for item in record]
        return self

    def update(self, record: "Mapping[str, Any]") -> "MemoryQuery":
        self._operation = "update"
        self._payload = dict(record)
        return self

    def delete(self) -> "MemoryQuery":
        self._operation = "delete"
        return self

    def eq(self, column: str, value: Any) -> "MemoryQuery":
        self._filters.append((column, value))
        return self

    def order(self, column: str, *, desc: bool = False) -> "MemoryQuery":
        self._order.append((column, desc))
        return self

    def limit(self, size: int) -> "MemoryQuery":
        self._limit = size
        return self

    def range(self, start: int, end: int) -> "MemoryQuery":
        self._offset = start
        self._limit = max(end - start + 1, 0)
        return self

    def _matches(self, row: "dict[str, Any]") -> bool:
        return all(column in row and _values_equal(row[column], value) for column, value in self._filters)

    def _project(self, row: "dict[str, Any]") -> "dict[str, Any]":
        if self._columns is None:
            return deepcopy(row)
        for column in self._columns:
            if "(" in column:
                msg = f"Embedded resource {column!r} is not supported by the in-memory store"
                raise MemoryStoreError(msg, UNSUPPORTED_FEATURE)
        return {column: deepcopy(row.get(column)) for column in self._columns}

    def _run_select(self, table: _Table) -> MemoryResponse:
        matched = [row for row in table.rows if self._matches(row)]
        for column, descending in reversed(self._order):
            matched.sort(key=_sort_key(column), reverse=descending)
        count = len(matched) if self._count else None
        if self._head:
            return MemoryResponse(data=[], count=count)
        end = None if self._limit is None else self._offset + self._limit
        return MemoryResponse(data=[self._project(row) for row in matched[self._offset : end]], count=count)

    def _run_insert(self, table: _Table) -> MemoryResponse:
        primary_key = self._store.primary_key
        existing = {row.get(primary_key) for row in table.rows}
        inserted = []
        for record in self._payload:
            row = deepcopy(record)
            if row.get(primary_key) is None:
                row[primary_key] = next(table.sequence)
                while row[primary_key] in existing:
                    row[primary_key] = next(table.sequence)
            elif row[primary_key] in existing:
                msg = f'duplicate key value violates unique constraint "{self._table}_pkey"'
                raise MemoryStoreError(msg, UNIQUE_VIOLATION)
            existing.add(row[primary_key])
            inserted.append(row)
        table.rows.extend(inserted)
        return MemoryResponse(data=deepcopy(inserted))

    def _run_update(self, table: _Table) -> MemoryResponse:
        updated = []
        for row in table.rows:
            if self._matches(row):
                row.update(deepcopy(self._payload))
                updated.append(deepcopy(row))
        return MemoryResponse(data=updated)

    def _run_delete(self, table: _Table) -> MemoryResponse:
        removed = [row for row in table.rows if self._matches(row)]
        table.rows[:] = [row for row in table.rows if not self._matches(row)]
        return MemoryResponse(data=removed)

    async def execute(self) -> MemoryResponse:
        table = self._store.table(self._table)
        self._store.requests.append((self._table, self._operation))
        runner = getattr(self, f"_run_{self._operation}")
        return runner(table)


class MemoryRPC:
    __slots__ = ("_function", "_name", "_params")

    def __init__(self, name: str, function: "Optional[Callable[..., Any]]", params: "Mapping[str, Any]") -> None:
        self._name = name
        self._function = function
        self._params = dict(params)

    async def execute(self) -> MemoryResponse:
        if self._function is None:
            msg = f"Could not find the function public.{self._name} in the schema cache"
            raise MemoryStoreError(msg, UNDEFINED_FUNCTION)
        result = self._function(**self._params)
        if inspect.isawaitable(result):
            result = await result
        return MemoryResponse(data=result)


class MemoryStore:
    """Dict-backed store capability.

    Args:
        tables: Optional initial rows per table.
        primary_key: Column that receives generated identifiers on insert.
        strict: Reject tables that were not seeded or created with :meth:`create_table`.
    """

    def __init__(
        self,
        tables: "Optional[Mapping[str, Sequence[Mapping[str, Any]]]]" = None,
        *,
        primary_key: str = "id",
        strict: bool = False,
    ) -> None:
        self.primary_key = primary_key
        self.strict = strict
        self.requests: list[tuple[str, str]] = []
        self._tables: dict[str, _Table] = {}
        self._functions: dict[str, Callable[..., Any]] = {}
        for name, rows in (tables or {}).items():
            self.create_table(name, rows)

    def create_table(self, name: str, rows: "Optional[Sequence[Mapping[str, Any]]]" = None) -> None:
        table = _Table(rows=[dict(row) for row in rows or ()])
        identifiers = [row.get(self.primary_key) for row in table.rows]
        numeric = [value for value in identifiers if isinstance(value, int) and not isinstance(value, bool)]
        table.sequence = itertools.count(max(numeric, default=0) + 1)
        self._tables[name] = table

    def table(self, name: str) -> _Table:
        if name not in self._tables:
            if self.strict:
                msg = f'relation "public.{name}" does not exist'
                raise MemoryStoreError(msg, UNDEFINED_TABLE)
            logger.debug("Creating in-memory table %s on first use", name)
            self.create_table(name)
        return self._tables[name]

    def rows(self, name: str) -> "list[dict[str, Any]]":
        """Return a copy of the rows currently stored in ``name``."""
        return deepcopy(self.table(name).rows)

    def register_function(self, name: str, function: "Callable[..., Any]") -> None:
        """Register a callable (sync or async) reachable through :meth:`rpc`."""
        self._functions[name] = function

    def from_(self, table: str) -> MemoryQuery:
        return MemoryQuery(self, table)

    def rpc(self, fn: str, params: "Optional[Mapping[str, Any]]" = None) -> MemoryRPC:
        return MemoryRPC(fn, self._functions.get(fn), params or {})
