"""Tests for the compatibility facade."""

import datetime
import logging
from decimal import Decimal

import pytest

from sqlbridge.adapters.memory import MemoryStore
from sqlbridge.config import BridgeConfig, UnsupportedPolicy
from sqlbridge.core.result import Mutation, Rows, RunResult, Unsupported
from sqlbridge.core.statement import MissReason
from sqlbridge.exceptions import (
    AmbiguousPredicateError,
    ClassificationMissError,
    ExtractionMismatchError,
    ImproperConfigurationError,
    NotFoundError,
    StoreError,
)
from sqlbridge.facade import CompatDatabase

pytestmark = pytest.mark.anyio


# -- structured path --


async def test_get_returns_record_or_none(database: CompatDatabase) -> None:
    assert await database.get("clientes", 7) == {"id": 7, "nome": "Carla", "email": "carla@example.com", "ativo": True}
    assert await database.get("clientes", 404) is None


async def test_get_or_raise(database: CompatDatabase) -> None:
    with pytest.raises(NotFoundError):
        await database.get_or_raise("clientes", 404)
    assert (await database.get_or_raise("clientes", 1))["nome"] == "Ana"


async def test_all_and_find(database: CompatDatabase) -> None:
    assert len(await database.all("clientes")) == 3
    ativos = await database.find("clientes", {"ativo": True})
    assert [row["nome"] for row in ativos] == ["Ana", "Carla"]
    assert await database.find("clientes", {"ativo": True, "nome": "Ana"}) == [ativos[0]]


async def test_find_with_relations_uses_select_expression(database: CompatDatabase) -> None:
    rows = await database.find_with_relations("produtos", "id, nome", {"categoria_id": 1})
    assert rows == [{"id": 1, "nome": "Cabo USB"}, {"id": 2, "nome": "Carregador"}]


async def test_insert_sanitizes_and_returns_stored_row(database: CompatDatabase, memory_store: MemoryStore) -> None:
    created = await database.insert(
        "ordens",
        {"cliente_id": 1, "valor_final": Decimal("150.00"), "data_entrada": datetime.date(2024, 5, 1)},
    )

    assert created == {"id": 1, "cliente_id": 1, "valor_final": "150.00", "data_entrada": "2024-05-01"}
    assert memory_store.rows("ordens") == [created]


async def test_update_and_delete(database: CompatDatabase, memory_store: MemoryStore) -> None:
    updated = await database.update("clientes", 2, {"ativo": True})
    assert updated == {"id": 2, "nome": "Bruno", "email": "bruno@example.com", "ativo": True}
    assert await database.update("clientes", 404, {"ativo": True}) is None

    assert await database.delete("clientes", 2) is None
    assert [row["id"] for row in memory_store.rows("clientes")] == [1, 7]


async def test_count(database: CompatDatabase) -> None:
    assert await database.count("clientes") == 3
    assert await database.count("clientes", {"ativo": True}) == 2
    assert await database.count("ordens") == 0


async def test_paginate(database: CompatDatabase) -> None:
    first = await database.paginate("produtos", page=1, limit=2, order_by="preco_venda", sort_order="desc")
    second = await database.paginate("produtos", page=2, limit=2, order_by="preco_venda", sort_order="desc")

    assert [row["nome"] for row in first] == ["Tela", "Carregador"]
    assert [row["nome"] for row in second] == ["Cabo USB"]
    assert await database.paginate("produtos", page=2, limit=2, conditions={"ativo": True}) == []


@pytest.mark.parametrize(("page", "limit"), [(0, 10), (1, 0), (-1, 5)])
async def test_paginate_rejects_bad_bounds(database: CompatDatabase, page: int, limit: int) -> None:
    with pytest.raises(ImproperConfigurationError):
        await database.paginate("produtos", page=page, limit=limit)


async def test_rpc(database: CompatDatabase, memory_store: MemoryStore) -> None:
    memory_store.register_function("estoque_baixo", lambda limite: [{"id": 3, "limite": limite}])
    assert await database.rpc("estoque_baixo", {"limite": 5}) == [{"id": 3, "limite": 5}]


async def test_rpc_failure_is_wrapped(database: CompatDatabase) -> None:
    with pytest.raises(StoreError) as exc_info:
        await database.rpc("nao_existe")
    assert exc_info.value.__cause__ is not None


def test_is_ready(database: CompatDatabase) -> None:
    assert database.is_ready()


async def test_structured_calls_use_configured_primary_key() -> None:
    store = MemoryStore({"usuarios": [{"uuid": "a1", "nome": "Ana"}]}, primary_key="uuid")
    database = CompatDatabase(store, BridgeConfig(primary_key="uuid"))

    assert await database.get("usuarios", "a1") == {"uuid": "a1", "nome": "Ana"}
    await database.delete("usuarios", "a1")
    assert store.rows("usuarios") == []


# -- raw-statement path --


async def test_run_insert_returns_store_assigned_id(database: CompatDatabase, memory_store: MemoryStore) -> None:
    result = await database.run("INSERT INTO produtos (nome, preco_venda) VALUES (?, ?)", ["Tela", 120.5])

    assert result == RunResult(id=4, changes=1)
    assert result.to_dict() == {"id": 4, "changes": 1}
    assert memory_store.rows("produtos")[-1] == {"id": 4, "nome": "Tela", "preco_venda": 120.5}


async def test_run_update_binds_predicate(database: CompatDatabase, memory_store: MemoryStore) -> None:
    result = await database.run("UPDATE clientes SET nome=? WHERE id=?", ["Ana", 7])

    assert result == RunResult(id=7, changes=1)
    assert [row["nome"] for row in memory_store.rows("clientes")] == ["Ana", "Bruno", "Ana"]


async def test_run_update_with_timestamp_and_boolean(database: CompatDatabase, memory_store: MemoryStore) -> None:
    await database.run("UPDATE produtos SET ativo = 0, updated_at = CURRENT_TIMESTAMP WHERE id = ?", [1])
    assert memory_store.rows("produtos")[0]["ativo"] is False
    assert memory_store.rows("produtos")[0]["updated_at"] == "now"


async def test_run_delete(database: CompatDatabase, memory_store: MemoryStore) -> None:
    assert await database.run("DELETE FROM clientes WHERE id = ?", [2]) == RunResult(id=2, changes=1)
    assert await database.run("DELETE FROM clientes WHERE id = ?", [2]) == RunResult(id=None, changes=0)
    assert len(memory_store.rows("clientes")) == 2


async def test_unconditional_delete_is_never_executed(database: CompatDatabase, memory_store: MemoryStore) -> None:
    assert await database.run("DELETE FROM clientes") == RunResult(id=None, changes=0)
    assert len(memory_store.rows("clientes")) == 3
    assert memory_store.requests == []


async def test_query_select(database: CompatDatabase) -> None:
    rows = await database.query("SELECT * FROM produtos WHERE ativo = 1")
    assert [row["id"] for row in rows] == [1, 2]

    rows = await database.query("SELECT * FROM produtos ORDER BY preco_venda DESC LIMIT 1")
    assert [row["nome"] for row in rows] == ["Tela"]


async def test_query_count_returns_scalar_row(database: CompatDatabase) -> None:
    assert await database.query("SELECT COUNT(*) as total FROM ordens") == [{"total": 0}]
    assert await database.query("SELECT COUNT(*) as total FROM clientes WHERE ativo = 1") == [{"total": 2}]
    assert await database.query_one("SELECT COUNT(*) as total FROM categorias") == {"total": 2}


async def test_query_one(database: CompatDatabase) -> None:
    assert await database.query_one("SELECT * FROM clientes WHERE email = ?", ["ana@example.com"]) == {
        "id": 1,
        "nome": "Ana",
        "email": "ana@example.com",
        "ativo": True,
    }
    assert await database.query_one("SELECT * FROM clientes WHERE email = ?", ["nobody@example.com"]) is None


async def test_execute_returns_tagged_outcomes(database: CompatDatabase) -> None:
    assert isinstance(await database.execute("SELECT * FROM clientes"), Rows)
    assert isinstance(await database.execute("DELETE FROM clientes WHERE id = ?", [1]), Mutation)

    outcome = await database.execute("SELECT * FROM clientes c JOIN ordens o ON o.cliente_id = c.id")
    assert isinstance(outcome, Unsupported)
    assert outcome.reason is MissReason.CLASSIFICATION_MISS


async def test_query_run_on_mismatched_shape(database: CompatDatabase) -> None:
    assert await database.query("DELETE FROM clientes WHERE id = ?", [1]) == []
    assert await database.run("SELECT * FROM clientes") == RunResult(id=None, changes=0)


@pytest.mark.parametrize(
    ("text", "params"),
    [
        ("SELECT * FROM ordens o JOIN clientes c ON c.id = o.cliente_id", []),
        ("SELECT status, COUNT(*) FROM ordens GROUP BY status", []),
        ("SELECT * FROM clientes WHERE nome = ? AND email = ?", ["Ana", "ana@example.com"]),
        ("INSERT INTO clientes (nome, email) VALUES (?, ?)", ["Ana"]),
    ],
)
async def test_unsupported_is_empty_by_default(
    database: CompatDatabase, memory_store: MemoryStore, caplog: pytest.LogCaptureFixture, text: str, params: list
) -> None:
    with caplog.at_level(logging.WARNING, logger="sqlbridge"):
        for _ in range(3):
            assert await database.query(text, params) == []
            assert await database.run(text, params) == RunResult(id=None, changes=0)

    assert memory_store.requests == []
    warnings = [record for record in caplog.records if record.name == "sqlbridge.facade"]
    assert len(warnings) == 6
    assert all(record.levelno == logging.WARNING for record in warnings)


@pytest.mark.parametrize(
    ("text", "params", "error"),
    [
        ("SELECT * FROM a JOIN b ON a.id = b.a_id", [], ClassificationMissError),
        ("DELETE FROM ordens", [], ClassificationMissError),
        ("INSERT INTO x (a, b) VALUES (?, ?)", [1], ExtractionMismatchError),
        ("SELECT * FROM clientes WHERE id = ? OR email = ?", [1, "x"], AmbiguousPredicateError),
    ],
)
async def test_unsupported_raises_under_raise_policy(
    memory_store: MemoryStore, text: str, params: list, error: type
) -> None:
    database = CompatDatabase(memory_store, BridgeConfig(unsupported_policy=UnsupportedPolicy.RAISE))

    with pytest.raises(error) as exc_info:
        await database.query(text, params)
    assert exc_info.value.sql == text
    with pytest.raises(error):
        await database.run(text, params)

    assert isinstance(await database.execute(text, params), Unsupported)
    assert memory_store.requests == []


async def test_store_failures_propagate_through_raw_path() -> None:
    database = CompatDatabase(MemoryStore(strict=True))
    with pytest.raises(StoreError) as exc_info:
        await database.query("SELECT * FROM fantasma")
    assert "does not exist" in str(exc_info.value)


async def test_store_failures_unwrapped_when_disabled() -> None:
    from sqlbridge.adapters.memory import MemoryStoreError

    database = CompatDatabase(MemoryStore(strict=True), BridgeConfig(wrap_exceptions=False))
    with pytest.raises(MemoryStoreError):
        await database.run("INSERT INTO fantasma (a) VALUES (?)", [1])


async def test_binary_parameters_are_stored_as_bytea_hex(database: CompatDatabase, memory_store: MemoryStore) -> None:
    result = await database.run("INSERT INTO fotos (conteudo) VALUES (?)", [b"\xff\xd8\xff"])
    assert result == RunResult(id=1, changes=1)

    created = await database.insert("fotos", {"conteudo": b"\x00\x9f"})
    assert created == {"id": 2, "conteudo": "\\x009f"}

    await database.run("UPDATE fotos SET conteudo = ? WHERE id = ?", [b"\xfe", 1])
    assert [row["conteudo"] for row in memory_store.rows("fotos")] == ["\\xfe", "\\x009f"]


async def test_literal_one_on_integer_column_is_read_as_boolean(database: CompatDatabase) -> None:
    assert await database.query("SELECT * FROM clientes WHERE id = 1") == []
    assert [row["nome"] for row in await database.query("SELECT * FROM clientes WHERE id = ?", [1])] == ["Ana"]

    database = CompatDatabase(database.store, BridgeConfig(rewrite_boolean_literals=False))
    assert [row["nome"] for row in await database.query("SELECT * FROM clientes WHERE id = 1")] == ["Ana"]
