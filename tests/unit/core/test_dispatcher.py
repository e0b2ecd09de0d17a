"""Tests for builder dispatch."""

import logging
from typing import Any, Optional

import pytest

from sqlbridge.core.compiler import StatementCompiler
from sqlbridge.core.dispatcher import BuilderDispatcher, render_builder_chain
from sqlbridge.core.result import Mutation, Rows, Unsupported
from sqlbridge.core.statement import BoundStatement, MissReason
from sqlbridge.exceptions import StoreError

pytestmark = pytest.mark.anyio


class FakeResponse:
    def __init__(self, data: Any = None, count: Optional[int] = None) -> None:
        self.data = data
        self.count = count


class RecordingQuery:
    def __init__(self, store: "RecordingStore", table: str) -> None:
        self.store = store
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = [("from_", (table,), {})]
        store.queries.append(self)

    def _record(self, name: str, *args: Any, **kwargs: Any) -> "RecordingQuery":
        self.calls.append((name, args, kwargs))
        return self

    def select(self, *columns: str, count: Optional[str] = None, head: Optional[bool] = None) -> "RecordingQuery":
        kwargs = {key: value for key, value in (("count", count), ("head", head)) if value is not None}
        return self._record("select", *columns, **kwargs)

    def insert(self, record: Any) -> "RecordingQuery":
        return self._record("insert", record)

    def update(self, record: Any) -> "RecordingQuery":
        return self._record("update", record)

    def delete(self) -> "RecordingQuery":
        return self._record("delete")

    def eq(self, column: str, value: Any) -> "RecordingQuery":
        return self._record("eq", column, value)

    def order(self, column: str, *, desc: bool = False) -> "RecordingQuery":
        return self._record("order", column, desc=desc)

    def limit(self, size: int) -> "RecordingQuery":
        return self._record("limit", size)

    def range(self, start: int, end: int) -> "RecordingQuery":
        return self._record("range", start, end)

    async def execute(self) -> FakeResponse:
        self.store.executions += 1
        if self.store.error is not None:
            raise self.store.error
        return self.store.response


class RecordingStore:
    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response or FakeResponse(data=[])
        self.error = error
        self.queries: list[RecordingQuery] = []
        self.executions = 0

    def from_(self, table: str) -> RecordingQuery:
        return RecordingQuery(self, table)

    def rpc(self, fn: str, params: Optional[dict[str, Any]] = None) -> Any:
        raise NotImplementedError

    @property
    def calls(self) -> "list[tuple[str, tuple[Any, ...], dict[str, Any]]]":
        assert len(self.queries) == 1
        return self.queries[0].calls


def compile_statement(text: str, params: Any = None) -> "BoundStatement | Unsupported":
    return StatementCompiler().compile(text, params)


async def test_insert_dispatch_round_trip() -> None:
    store = RecordingStore(FakeResponse(data=[{"id": 41, "nome": "Tela", "preco_venda": 120.5}]))
    bound = compile_statement("INSERT INTO produtos (nome, preco_venda) VALUES (?, ?)", ["Tela", 120.5])

    outcome = await BuilderDispatcher().dispatch(bound, store)

    assert store.calls == [("from_", ("produtos",), {}), ("insert", ({"nome": "Tela", "preco_venda": 120.5},), {})]
    assert outcome == Mutation(affected_id=41, affected_count=1)


async def test_update_dispatch_binds_predicate() -> None:
    store = RecordingStore(FakeResponse(data=[{"id": 7, "nome": "Ana"}]))
    bound = compile_statement("UPDATE clientes SET nome=? WHERE id=?", ["Ana", 7])

    outcome = await BuilderDispatcher().dispatch(bound, store)

    assert store.calls == [
        ("from_", ("clientes",), {}),
        ("update", ({"nome": "Ana"},), {}),
        ("eq", ("id", 7), {}),
    ]
    assert outcome == Mutation(affected_id=7, affected_count=1)


async def test_update_matching_nothing_is_zero_changes() -> None:
    store = RecordingStore(FakeResponse(data=[]))
    bound = compile_statement("UPDATE clientes SET nome=? WHERE id=?", ["x", 99])
    outcome = await BuilderDispatcher().dispatch(bound, store)
    assert outcome == Mutation(affected_id=None, affected_count=0)


async def test_delete_dispatch() -> None:
    store = RecordingStore(FakeResponse(data=[{"id": 3}, {"id": 4}]))
    bound = compile_statement("DELETE FROM ordens WHERE cliente_id = ?", [2])
    outcome = await BuilderDispatcher().dispatch(bound, store)

    assert store.calls == [("from_", ("ordens",), {}), ("delete", (), {}), ("eq", ("cliente_id", 2), {})]
    assert outcome == Mutation(affected_id=3, affected_count=2)


async def test_select_dispatch_keeps_arrival_order() -> None:
    rows = [{"id": 9}, {"id": 2}, {"id": 5}]
    store = RecordingStore(FakeResponse(data=rows))
    outcome = await BuilderDispatcher().dispatch(compile_statement("SELECT * FROM clientes WHERE ativo = 1"), store)

    assert store.calls == [("from_", ("clientes",), {}), ("select", ("*",), {}), ("eq", ("ativo", True), {})]
    assert outcome == Rows(rows)


async def test_select_dispatch_with_modifiers() -> None:
    store = RecordingStore(FakeResponse(data=[]))
    bound = compile_statement("SELECT * FROM produtos ORDER BY nome DESC LIMIT 10 OFFSET 20")
    await BuilderDispatcher().dispatch(bound, store)

    assert store.calls == [
        ("from_", ("produtos",), {}),
        ("select", ("*",), {}),
        ("order", ("nome",), {"desc": True}),
        ("range", (20, 29), {}),
    ]


async def test_select_dispatch_with_limit_only() -> None:
    store = RecordingStore(FakeResponse(data=[]))
    await BuilderDispatcher().dispatch(compile_statement("SELECT * FROM produtos LIMIT 3"), store)
    assert store.calls[-1] == ("limit", (3,), {})


async def test_count_dispatch_returns_scalar_row() -> None:
    store = RecordingStore(FakeResponse(data=[], count=None))
    outcome = await BuilderDispatcher().dispatch(compile_statement("SELECT COUNT(*) as total FROM clientes"), store)

    assert store.calls == [("from_", ("clientes",), {}), ("select", ("*",), {"count": "exact", "head": True})]
    assert outcome == Rows([{"total": 0}])


async def test_count_dispatch_applies_predicate_and_alias() -> None:
    store = RecordingStore(FakeResponse(data=[], count=12))
    bound = compile_statement("SELECT COUNT(*) AS quantidade FROM produtos WHERE categoria_id = ?", [4])
    outcome = await BuilderDispatcher().dispatch(bound, store)

    assert store.calls[-1] == ("eq", ("categoria_id", 4), {})
    assert outcome == Rows([{"quantidade": 12}])


async def test_unsupported_never_contacts_store() -> None:
    store = RecordingStore()
    outcome = await BuilderDispatcher().dispatch(compile_statement("DELETE FROM ordens"), store)

    assert isinstance(outcome, Unsupported)
    assert outcome.reason is MissReason.CLASSIFICATION_MISS
    assert store.queries == []
    assert store.executions == 0


async def test_arity_mismatch_never_contacts_store() -> None:
    store = RecordingStore()
    outcome = await BuilderDispatcher().dispatch(compile_statement("INSERT INTO x (a,b) VALUES (?,?)", [1]), store)

    assert isinstance(outcome, Unsupported)
    assert outcome.reason is MissReason.EXTRACTION_MISMATCH
    assert store.executions == 0


async def test_store_failure_is_wrapped(caplog: pytest.LogCaptureFixture) -> None:
    failure = ConnectionError("network down")
    store = RecordingStore(error=failure)

    with caplog.at_level(logging.ERROR, logger="sqlbridge"), pytest.raises(StoreError) as exc_info:
        await BuilderDispatcher().dispatch(compile_statement("SELECT * FROM clientes"), store)

    assert exc_info.value.__cause__ is failure
    assert store.executions == 1
    assert any(record.getMessage() == "Store request failed" for record in caplog.records)


async def test_store_failure_propagates_unwrapped_when_disabled() -> None:
    store = RecordingStore(error=ConnectionError("network down"))
    with pytest.raises(ConnectionError):
        await BuilderDispatcher(wrap_exceptions=False).dispatch(compile_statement("SELECT * FROM clientes"), store)
    assert store.executions == 1


def test_render_builder_chain() -> None:
    bound = compile_statement("UPDATE clientes SET nome=? WHERE id=?", ["Ana", 7])
    assert isinstance(bound, BoundStatement)
    assert render_builder_chain(bound) == "from_('clientes').update({'nome': 'Ana'}).eq('id', 7).execute()"

    bound = compile_statement("SELECT COUNT(*) FROM clientes")
    assert isinstance(bound, BoundStatement)
    assert render_builder_chain(bound) == "from_('clientes').select('*', count='exact', head=True).execute()"
