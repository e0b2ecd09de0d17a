"""Builder filters.

Filters are small value objects that know how to append themselves to a fluent query
builder. The dispatcher turns the WHERE/ORDER BY/LIMIT clauses of a bound statement into
filters, and the structured facade methods build them from keyword arguments, so both paths
produce the same builder calls.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Literal, Optional

if TYPE_CHECKING:
    from sqlbridge.protocols import QueryBuilder

__all__ = (
    "EqualityFilter",
    "LimitOffsetFilter",
    "OrderByFilter",
    "PaginationFilter",
    "StatementFilter",
    "apply_filters",
    "filters_from_conditions",
)


class StatementFilter(ABC):
    """Abstract base class for filters that can be appended to a query builder."""

    __slots__ = ()

    @abstractmethod
    def append_to_query(self, query: "QueryBuilder") -> "QueryBuilder":
        """Append the filter to the builder chain and return the chain."""
        ...

    @abstractmethod
    def describe(self) -> str:
        """Render the builder call this filter produces."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.describe()})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatementFilter) or type(other) is not type(self):
            return NotImplemented
        return all(getattr(self, slot) == getattr(other, slot) for slot in self.__slots__)

    def __hash__(self) -> int:
        return hash((type(self).__name__, *(repr(getattr(self, slot)) for slot in self.__slots__)))


class EqualityFilter(StatementFilter):
    """Data required to add a ``column = value`` restriction."""

    __slots__ = ("field_name", "value")

    field_name: str
    value: Any

    def __init__(self, field_name: str, value: Any) -> None:
        self.field_name = field_name
        self.value = value

    def append_to_query(self, query: "QueryBuilder") -> "QueryBuilder":
        return query.eq(self.field_name, self.value)

    def describe(self) -> str:
        return f".eq({self.field_name!r}, {self.value!r})"


class OrderByFilter(StatementFilter):
    """Data required to order the rows of a read."""

    __slots__ = ("field_name", "sort_order")

    field_name: str
    sort_order: Literal["asc", "desc"]

    def __init__(self, field_name: str, sort_order: Literal["asc", "desc"] = "asc") -> None:
        """Initialize the OrderByFilter.

        Args:
            field_name: Column to sort on.
            sort_order: Sort ascending or descending. Anything else sorts ascending.
        """
        self.field_name = field_name
        self.sort_order = "desc" if str(sort_order).lower() == "desc" else "asc"

    @property
    def descending(self) -> bool:
        return self.sort_order == "desc"

    def append_to_query(self, query: "QueryBuilder") -> "QueryBuilder":
        return query.order(self.field_name, desc=self.descending)

    def describe(self) -> str:
        return f".order({self.field_name!r}, desc={self.descending})"


class PaginationFilter(StatementFilter, ABC):
    """Subclass for filters that function as a pagination type."""

    __slots__ = ()


class LimitOffsetFilter(PaginationFilter):
    """Data required to limit a read, optionally starting at an offset.

    Without an offset the filter becomes ``.limit(n)``. With one it becomes the inclusive
    ``.range(offset, offset + limit - 1)`` the builder expects.
    """

    __slots__ = ("limit", "offset")

    limit: int
    offset: Optional[int]

    def __init__(self, limit: int, offset: Optional[int] = None) -> None:
        self.limit = limit
        self.offset = offset

    @classmethod
    def for_page(cls, page: int, page_size: int) -> "LimitOffsetFilter":
        """Build the filter for a one-based page number."""
        return cls(limit=page_size, offset=(page - 1) * page_size)

    def append_to_query(self, query: "QueryBuilder") -> "QueryBuilder":
        if self.offset is None or self.limit == 0:
            return query.limit(self.limit)
        return query.range(self.offset, self.offset + self.limit - 1)

    def describe(self) -> str:
        if self.offset is None or self.limit == 0:
            return f".limit({self.limit})"
        return f".range({self.offset}, {self.offset + self.limit - 1})"


def filters_from_conditions(conditions: "Optional[Mapping[str, Any]]") -> "list[StatementFilter]":
    """Turn a ``{column: value}`` mapping into equality filters, in mapping order."""
    if not conditions:
        return []
    return [EqualityFilter(column, value) for column, value in conditions.items()]


def apply_filters(query: "QueryBuilder", filters: "Iterable[StatementFilter]") -> "QueryBuilder":
    for statement_filter in filters:
        query = statement_filter.append_to_query(query)
    return query
