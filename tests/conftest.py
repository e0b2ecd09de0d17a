from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from sqlbridge.adapters.memory import MemoryStore
from sqlbridge.facade import CompatDatabase

pytestmark = pytest.mark.anyio
here = Path(__file__).parent
root_path = here.parent


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore(
        {
            "clientes": [
                {"id": 1, "nome": "Ana", "email": "ana@example.com", "ativo": True},
                {"id": 2, "nome": "Bruno", "email": "bruno@example.com", "ativo": False},
                {"id": 7, "nome": "Carla", "email": "carla@example.com", "ativo": True},
            ],
            "produtos": [
                {"id": 1, "nome": "Cabo USB", "preco_venda": 19.9, "categoria_id": 1, "ativo": True},
                {"id": 2, "nome": "Carregador", "preco_venda": 49.9, "categoria_id": 1, "ativo": True},
                {"id": 3, "nome": "Tela", "preco_venda": 120.5, "categoria_id": 2, "ativo": False},
            ],
            "categorias": [{"id": 1, "nome": "Acessorios", "ativo": True}, {"id": 2, "nome": "Pecas", "ativo": True}],
            "ordens": [],
        }
    )


@pytest.fixture
def database(memory_store: MemoryStore) -> CompatDatabase:
    return CompatDatabase(memory_store)


@pytest.fixture
def restore_sqlbridge_logger() -> Iterator[logging.Logger]:
    """Undo ``configure_logging`` changes to the ``sqlbridge`` namespace root."""
    logger = logging.getLogger("sqlbridge")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
