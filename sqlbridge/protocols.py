"""Runtime-checkable protocols for the store capability.

The translation layer talks to its backend only through these protocols. They follow the
fluent, table-scoped builder of the ``postgrest``/``supabase`` async clients, so a Supabase
``AsyncClient`` satisfies ``StoreCapability`` without any wrapping.
"""

from typing import Any, Optional, Protocol, runtime_checkable

__all__ = ("Executable", "QueryBuilder", "StoreCapability", "StoreResponse")


@runtime_checkable
class StoreResponse(Protocol):
    """Protocol for the object a builder chain resolves to."""

    data: Any
    count: Optional[int]


@runtime_checkable
class Executable(Protocol):
    """Protocol for anything with an async ``execute``."""

    async def execute(self) -> StoreResponse:
        """Run the request and return its response."""
        ...


@runtime_checkable
class QueryBuilder(Protocol):
    """Protocol for a table-scoped fluent filter builder."""

    def select(self, *columns: str, count: Optional[str] = None, head: Optional[bool] = None) -> "QueryBuilder":
        """Start a read of ``columns``."""
        ...

    def insert(self, record: Any) -> "QueryBuilder":
        """Start an insert of one record (or a list of records)."""
        ...

    def update(self, record: "dict[str, Any]") -> "QueryBuilder":
        """Start an update with the given column values."""
        ...

    def delete(self) -> "QueryBuilder":
        """Start a delete."""
        ...

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        """Restrict to rows where ``column`` equals ``value``."""
        ...

    def order(self, column: str, *, desc: bool = False) -> "QueryBuilder":
        """Order the rows by ``column``."""
        ...

    def limit(self, size: int) -> "QueryBuilder":
        """Return at most ``size`` rows."""
        ...

    def range(self, start: int, end: int) -> "QueryBuilder":
        """Return rows ``start`` through ``end``, both inclusive."""
        ...

    async def execute(self) -> StoreResponse:
        """Run the request and return its response."""
        ...


@runtime_checkable
class StoreCapability(Protocol):
    """Protocol for the backend handed to the facade."""

    def from_(self, table: str) -> QueryBuilder:
        """Open a builder scoped to ``table``."""
        ...

    def rpc(self, fn: str, params: "Optional[dict[str, Any]]" = None) -> Executable:
        """Prepare a call to a stored function."""
        ...
