"""Builder dispatch.

The dispatcher turns one ``BoundStatement`` into exactly one builder chain on the store
capability, awaits it once and converts the response into a translation outcome. It never
retries and never issues a second round trip. ``Unsupported`` input is handed back without
contacting the store.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional, Union

from mypy_extensions import mypyc_attr

from sqlbridge.core.filters import EqualityFilter, LimitOffsetFilter, OrderByFilter, StatementFilter, apply_filters
from sqlbridge.core.result import Mutation, Rows, TranslationOutcome, Unsupported
from sqlbridge.core.statement import BoundStatement, Delete, Insert, SelectAll, SelectCount, Update
from sqlbridge.exceptions import wrap_exceptions
from sqlbridge.utils.logging import get_logger, log_with_context
from sqlbridge.utils.serializers import sanitize_record

if TYPE_CHECKING:
    from sqlbridge.protocols import Executable, QueryBuilder, StoreCapability, StoreResponse

__all__ = ("BuilderDispatcher", "build_filters", "render_builder_chain", "response_rows")

logger = get_logger("core.dispatcher")

COUNT_MODE = "exact"


def build_filters(bound: BoundStatement) -> "list[StatementFilter]":
    """Filters for the WHERE, ORDER BY and LIMIT/OFFSET clauses of a bound statement."""
    filters: list[StatementFilter] = []
    if bound.predicate is not None:
        filters.append(EqualityFilter(bound.predicate.column, bound.predicate_value()))
    if bound.order is not None:
        filters.append(OrderByFilter(bound.order.column, "desc" if bound.order.descending else "asc"))
    if bound.limit is not None:
        filters.append(LimitOffsetFilter(bound.limit, bound.offset))
    return filters


def render_builder_chain(bound: BoundStatement) -> str:
    """Render the builder calls a bound statement dispatches to, for display only."""
    shape = bound.shape
    head = f"from_({bound.table!r})"
    if isinstance(shape, Insert):
        operation = f".insert({bound.values!r})"
    elif isinstance(shape, Update):
        operation = f".update({bound.values!r})"
    elif isinstance(shape, Delete):
        operation = ".delete()"
    elif isinstance(shape, SelectCount):
        operation = f".select('*', count={COUNT_MODE!r}, head=True)"
    else:
        operation = ".select('*')"
    chain = "".join(statement_filter.describe() for statement_filter in build_filters(bound))
    return f"{head}{operation}{chain}.execute()"


def response_rows(response: "StoreResponse") -> "list[dict[str, Any]]":
    data = response.data
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


@mypyc_attr(allow_interpreted_subclasses=True)
class BuilderDispatcher:
    """Issue builder calls for bound statements.

    Args:
        primary_key: Column read from returned rows to report the affected id.
        wrap_exceptions: Wrap store failures in ``StoreError``.
    """

    __slots__ = ("_primary_key", "_wrap_exceptions")

    def __init__(self, primary_key: str = "id", wrap_exceptions: bool = True) -> None:
        self._primary_key = primary_key
        self._wrap_exceptions = wrap_exceptions

    def build_request(self, bound: BoundStatement, store: "StoreCapability") -> "QueryBuilder":
        shape = bound.shape
        query = store.from_(bound.table)
        if isinstance(shape, Insert):
            return query.insert(sanitize_record(bound.values))
        if isinstance(shape, Update):
            query = query.update(sanitize_record(bound.values))
        elif isinstance(shape, Delete):
            query = query.delete()
        elif isinstance(shape, SelectCount):
            query = query.select("*", count=COUNT_MODE, head=True)
        else:
            query = query.select("*")
        return apply_filters(query, build_filters(bound))

    async def execute(
        self, request: "Union[QueryBuilder, Executable]", *, operation: str, table: Optional[str] = None
    ) -> "StoreResponse":
        """Await one store request, logging and wrapping failures.

        Raises:
            StoreError: If the store fails and exception wrapping is enabled.
        """
        log_with_context(logger, logging.DEBUG, "Store round trip", operation=operation, table=table)
        with wrap_exceptions(self._wrap_exceptions):
            try:
                return await request.execute()
            except Exception as exc:
                log_with_context(
                    logger,
                    logging.ERROR,
                    "Store request failed",
                    operation=operation,
                    table=table,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                raise

    async def dispatch(
        self, statement: "Union[BoundStatement, Unsupported]", store: "StoreCapability"
    ) -> TranslationOutcome:
        """Run a bound statement against the store.

        Args:
            statement: Compiler output.
            store: The store capability.

        Returns:
            ``Rows`` for reads, ``Mutation`` for writes, or the ``Unsupported`` input unchanged.
        """
        if isinstance(statement, Unsupported):
            return statement
        shape = statement.shape
        response = await self.execute(self.build_request(statement, store), operation=shape.kind, table=statement.table)
        if isinstance(shape, SelectCount):
            return Rows([{shape.alias: response.count or 0}])
        rows = response_rows(response)
        if isinstance(shape, SelectAll):
            return Rows(rows)
        affected_id = rows[0].get(self._primary_key) if rows else None
        if isinstance(shape, Insert):
            return Mutation(affected_id=affected_id, affected_count=1)
        return Mutation(affected_id=affected_id, affected_count=len(rows))
