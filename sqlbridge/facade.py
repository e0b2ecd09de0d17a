"""Compatibility facade.

``CompatDatabase`` is the surface legacy call sites use. It offers two calling conventions:

- structured calls (``get``, ``insert``, ``count``, ...) that talk to the store capability
  directly and never produce ``Unsupported``
- raw-statement calls (``query``, ``run``, ``query_one``, ``execute``) that go through the
  normalize, classify, extract and dispatch pipeline

The store capability is injected at construction; the facade holds no global client and no
per-call state.
"""

import functools
import logging
from collections.abc import Awaitable, Mapping
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional, TypeVar

from sqlbridge.config import BridgeConfig, UnsupportedPolicy
from sqlbridge.core.compiler import StatementCompiler
from sqlbridge.core.dispatcher import BuilderDispatcher, response_rows
from sqlbridge.core.filters import (
    EqualityFilter,
    LimitOffsetFilter,
    OrderByFilter,
    StatementFilter,
    apply_filters,
    filters_from_conditions,
)
from sqlbridge.core.result import Mutation, Rows, RunResult, TranslationOutcome, Unsupported
from sqlbridge.core.statement import RawStatement
from sqlbridge.exceptions import ImproperConfigurationError, NotFoundError
from sqlbridge.utils.logging import correlation_scope, get_logger, log_with_context
from sqlbridge.utils.serializers import sanitize_record

if TYPE_CHECKING:
    from sqlbridge.protocols import StoreCapability

__all__ = ("CompatDatabase",)

logger = get_logger("facade")

T = TypeVar("T")


def _correlated(method: "Callable[..., Awaitable[T]]") -> "Callable[..., Awaitable[T]]":
    """Run a facade coroutine inside a correlation scope."""

    @functools.wraps(method)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        with correlation_scope():
            return await method(*args, **kwargs)

    return wrapper


class CompatDatabase:
    """Legacy database surface backed by a fluent filter-builder store.

    Args:
        store: The store capability, e.g. a Supabase ``AsyncClient`` or a ``MemoryStore``.
        config: Translation settings. Defaults to ``BridgeConfig()``.
    """

    __slots__ = ("_compiler", "_dispatcher", "config", "store")

    def __init__(self, store: "StoreCapability", config: "Optional[BridgeConfig]" = None) -> None:
        self.store = store
        self.config = config or BridgeConfig()
        self._compiler = StatementCompiler(self.config)
        self._dispatcher = BuilderDispatcher(
            primary_key=self.config.primary_key, wrap_exceptions=self.config.wrap_exceptions
        )

    @property
    def compiler(self) -> StatementCompiler:
        return self._compiler

    def is_ready(self) -> bool:
        return self.store is not None

    # -- structured path --

    async def _select(
        self, table: str, filters: "list[StatementFilter]", columns: str = "*", *, operation: str = "select"
    ) -> "list[dict[str, Any]]":
        query = apply_filters(self.store.from_(table).select(columns), filters)
        response = await self._dispatcher.execute(query, operation=operation, table=table)
        return response_rows(response)

    @_correlated
    async def get(self, table: str, id: Any) -> "Optional[dict[str, Any]]":  # noqa: A002
        """Fetch one record by primary key, or ``None`` when it does not exist."""
        rows = await self._select(
            table, [EqualityFilter(self.config.primary_key, id), LimitOffsetFilter(1)], operation="get"
        )
        return rows[0] if rows else None

    @_correlated
    async def get_or_raise(self, table: str, id: Any) -> "dict[str, Any]":  # noqa: A002
        """Fetch one record by primary key.

        Raises:
            NotFoundError: If no record has that key.
        """
        record = await self.get(table, id)
        if record is None:
            msg = f"No record in {table!r} with {self.config.primary_key} = {id!r}"
            raise NotFoundError(msg)
        return record

    @_correlated
    async def all(self, table: str) -> "list[dict[str, Any]]":
        return await self._select(table, [])

    @_correlated
    async def find(self, table: str, conditions: "Optional[Mapping[str, Any]]" = None) -> "list[dict[str, Any]]":
        """Fetch the records matching every ``column = value`` pair in ``conditions``."""
        return await self._select(table, filters_from_conditions(conditions), operation="find")

    @_correlated
    async def find_with_relations(
        self, table: str, select_query: str, conditions: "Optional[Mapping[str, Any]]" = None
    ) -> "list[dict[str, Any]]":
        """Fetch records with an explicit select expression, e.g. ``"id, nome, clientes(nome)"``."""
        return await self._select(table, filters_from_conditions(conditions), select_query, operation="find")

    @_correlated
    async def paginate(
        self,
        table: str,
        page: int = 1,
        limit: int = 10,
        conditions: "Optional[Mapping[str, Any]]" = None,
        order_by: "Optional[str]" = None,
        sort_order: Literal["asc", "desc"] = "asc",
    ) -> "list[dict[str, Any]]":
        """Fetch one page of records.

        Args:
            table: Table name.
            page: One-based page number.
            limit: Page size.
            conditions: Equality conditions applied before paging.
            order_by: Optional column to sort on.
            sort_order: Sort direction for ``order_by``.

        Raises:
            ImproperConfigurationError: If ``page`` or ``limit`` is below 1.
        """
        if page < 1 or limit < 1:
            msg = f"page and limit must be positive, got page={page} limit={limit}"
            raise ImproperConfigurationError(msg)
        filters = filters_from_conditions(conditions)
        if order_by:
            filters.append(OrderByFilter(order_by, sort_order))
        filters.append(LimitOffsetFilter.for_page(page, limit))
        return await self._select(table, filters, operation="paginate")

    @_correlated
    async def count(self, table: str, conditions: "Optional[Mapping[str, Any]]" = None) -> int:
        query = apply_filters(
            self.store.from_(table).select("*", count="exact", head=True), filters_from_conditions(conditions)
        )
        response = await self._dispatcher.execute(query, operation="count", table=table)
        return response.count or 0

    @_correlated
    async def insert(self, table: str, record: "Mapping[str, Any]") -> "Optional[dict[str, Any]]":
        """Insert one record and return the stored row."""
        query = self.store.from_(table).insert(sanitize_record(record))
        rows = response_rows(await self._dispatcher.execute(query, operation="insert", table=table))
        return rows[0] if rows else None

    @_correlated
    async def update(self, table: str, id: Any, partial: "Mapping[str, Any]") -> "Optional[dict[str, Any]]":  # noqa: A002
        """Update one record by primary key; returns the updated row or ``None`` when nothing matched."""
        query = self.store.from_(table).update(sanitize_record(partial)).eq(self.config.primary_key, id)
        rows = response_rows(await self._dispatcher.execute(query, operation="update", table=table))
        return rows[0] if rows else None

    @_correlated
    async def delete(self, table: str, id: Any) -> None:  # noqa: A002
        query = self.store.from_(table).delete().eq(self.config.primary_key, id)
        await self._dispatcher.execute(query, operation="delete", table=table)

    @_correlated
    async def rpc(self, function: str, params: "Optional[Mapping[str, Any]]" = None) -> Any:
        """Call a stored function and return its data."""
        request = self.store.rpc(function, sanitize_record(params or {}))
        response = await self._dispatcher.execute(request, operation="rpc", table=function)
        return response.data

    # -- raw-statement path --

    @_correlated
    async def execute(self, text: str, params: "Optional[Any]" = None) -> TranslationOutcome:
        """Translate and run a raw statement, returning the tagged outcome.

        ``Unsupported`` is returned as a value here regardless of the configured policy.
        """
        compiled = self._compiler.compile(RawStatement.create(text, params))
        return await self._dispatcher.dispatch(compiled, self.store)

    def _handle_unsupported(self, outcome: Unsupported) -> None:
        if self.config.unsupported_policy is UnsupportedPolicy.RAISE:
            raise outcome.to_exception()
        log_with_context(
            logger,
            logging.WARNING,
            "Statement could not be translated; returning an empty result",
            reason=outcome.reason.value,
            detail=outcome.detail,
            sql=outcome.text,
        )

    @_correlated
    async def query(self, text: str, params: "Optional[Any]" = None) -> "list[dict[str, Any]]":
        """Run a raw read and return its rows.

        Raises:
            TranslationError: If the statement is untranslatable and the policy is ``RAISE``.
        """
        outcome = await self.execute(text, params)
        if isinstance(outcome, Unsupported):
            self._handle_unsupported(outcome)
            return []
        if isinstance(outcome, Mutation):
            return []
        return list(outcome.records)

    @_correlated
    async def query_one(self, text: str, params: "Optional[Any]" = None) -> "Optional[dict[str, Any]]":
        """Run a raw read and return its first row, or ``None``."""
        rows = await self.query(text, params)
        return rows[0] if rows else None

    @_correlated
    async def run(self, text: str, params: "Optional[Any]" = None) -> RunResult:
        """Run a raw write and return ``RunResult(id, changes)``.

        Raises:
            TranslationError: If the statement is untranslatable and the policy is ``RAISE``.
        """
        outcome = await self.execute(text, params)
        if isinstance(outcome, Unsupported):
            self._handle_unsupported(outcome)
            return RunResult()
        if isinstance(outcome, Rows):
            return RunResult(changes=0)
        return RunResult.from_mutation(outcome)

