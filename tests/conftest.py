from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from zeropush.adapters.memory import InMemoryLedgerStore
from zeropush.adapters.sqlalchemy import start_mappers
from zeropush.adapters.sqlalchemy.ledger_store import (
    SqlAlchemyLedgerStore,
    shutdown,
    startup,
    translate_ledger_schema,
)
from zeropush.adapters.sqlalchemy.migrations import upgrade_head
from zeropush.domain.push_processor import PushProcessor
from zeropush.domain.registry import MutationRegistry  # noqa: TC001
from tests.helpers.mutations import build_registry

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from zeropush.adapters.memory import InMemoryLedgerTransaction


@pytest.fixture
def registry() -> MutationRegistry:
    return build_registry()


@pytest.fixture
def memory_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def processor(
    registry: MutationRegistry, memory_store: InMemoryLedgerStore
) -> PushProcessor[InMemoryLedgerTransaction]:
    return PushProcessor(registry, memory_store)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = translate_ledger_schema(
        create_engine("sqlite+pysqlite:///:memory:", future=True), None
    )
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlalchemy_store(sqlite_engine: Engine) -> Iterator[SqlAlchemyLedgerStore]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyLedgerStore()
    finally:
        shutdown()
