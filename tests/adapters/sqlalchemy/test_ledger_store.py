from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, inspect, text

from zeropush.adapters.sqlalchemy.ledger_store import (
    SqlAlchemyLedgerStore,
    SqlAlchemyLedgerTransaction,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
    translate_ledger_schema,
)
from zeropush.adapters.sqlalchemy.migrations import current_revision
from zeropush.domain.errors import TransactionError
from zeropush.domain.model import LedgerRecord
from zeropush.domain.ports.ledger import LedgerStore

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_adapter_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def _claim(store: SqlAlchemyLedgerStore, group: str = "g", client: str = "c") -> int:
    return store.transaction(lambda _tx: store.fetch_and_increment(group, client))


def test_store_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyLedgerStore()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    engine = configured_engine()
    assert engine is not None
    assert engine.get_execution_options()["schema_translate_map"] == {"zeropush_ledger": None}
    assert is_started()


def test_startup_keeps_translated_engine(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    assert configured_engine() is sqlite_engine


def test_startup_migrates_clients_table(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    columns = {column["name"] for column in inspect(sqlite_engine).get_columns("clients")}
    assert columns == {"clientGroupID", "clientID", "lastMutationID", "userID"}
    assert current_revision(sqlite_engine) == "0001"


def test_store_satisfies_port(sqlalchemy_store: SqlAlchemyLedgerStore) -> None:
    assert isinstance(sqlalchemy_store, LedgerStore)


def test_fetch_and_increment_creates_then_increments(
    sqlalchemy_store: SqlAlchemyLedgerStore,
) -> None:
    assert [_claim(sqlalchemy_store) for _ in range(3)] == [1, 2, 3]
    assert _claim(sqlalchemy_store, client="other") == 1
    assert sqlalchemy_store.last_mutation_id("g", "c") == 3
    assert sqlalchemy_store.last_mutation_id("g", "missing") == 0


def test_records_are_mapped_to_ledger_records(sqlalchemy_store: SqlAlchemyLedgerStore) -> None:
    _claim(sqlalchemy_store, "g1", "a")
    _claim(sqlalchemy_store, "g1", "b")
    _claim(sqlalchemy_store, "g2", "a")

    records = sqlalchemy_store.records("g1")

    assert [(r.client_group_id, r.client_id, r.last_mutation_id) for r in records] == [
        ("g1", "a", 1),
        ("g1", "b", 1),
    ]
    assert all(isinstance(record, LedgerRecord) for record in records)
    assert len(sqlalchemy_store.records()) == 3


def test_failed_transaction_rolls_back_increment(sqlalchemy_store: SqlAlchemyLedgerStore) -> None:
    _claim(sqlalchemy_store)

    def work(_transaction: SqlAlchemyLedgerTransaction) -> None:
        sqlalchemy_store.fetch_and_increment("g", "c")
        raise ValueError("rollback")

    with pytest.raises(ValueError, match="rollback"):
        sqlalchemy_store.transaction(work)

    assert sqlalchemy_store.last_mutation_id("g", "c") == 1


def test_work_shares_the_ledger_session(sqlalchemy_store: SqlAlchemyLedgerStore) -> None:
    def work(transaction: SqlAlchemyLedgerTransaction) -> int:
        sqlalchemy_store.fetch_and_increment("g", "c")
        return transaction.session.execute(
            text('SELECT "lastMutationID" FROM clients WHERE "clientID" = :client'),
            {"client": "c"},
        ).scalar_one()

    assert sqlalchemy_store.transaction(work) == 1


def test_fetch_and_increment_requires_transaction(
    sqlalchemy_store: SqlAlchemyLedgerStore,
) -> None:
    with pytest.raises(StartupError, match="inside a ledger transaction"):
        sqlalchemy_store.fetch_and_increment("g", "c")


def test_database_errors_become_transaction_errors(
    sqlalchemy_store: SqlAlchemyLedgerStore,
) -> None:
    def work(transaction: SqlAlchemyLedgerTransaction) -> None:
        transaction.session.execute(text("SELECT * FROM missing_table"))

    with pytest.raises(TransactionError, match="^Transaction failed: "):
        sqlalchemy_store.transaction(work)


def _memory_engine() -> Engine:
    return translate_ledger_schema(create_engine("sqlite+pysqlite:///:memory:", future=True), None)


def test_startup_adopts_existing_clients_table() -> None:
    engine = _memory_engine()
    with engine.begin() as connection:
        connection.exec_driver_sql(
            'CREATE TABLE clients ("clientGroupID" VARCHAR NOT NULL, "clientID" VARCHAR NOT NULL, '
            '"lastMutationID" BIGINT NOT NULL DEFAULT 0, "userID" VARCHAR, '
            'PRIMARY KEY ("clientGroupID", "clientID"))'
        )
        connection.exec_driver_sql("INSERT INTO clients VALUES ('g', 'c', 5, NULL)")

    startup(engine=engine, force=True)
    store = SqlAlchemyLedgerStore()

    assert current_revision(engine) == "0001"
    assert store.last_mutation_id("g", "c") == 5
    assert _claim(store) == 6


def test_startup_can_skip_migrations() -> None:
    engine = _memory_engine()

    startup(engine=engine, force=True, migrate=False)

    assert is_started()
    assert inspect(engine).get_table_names() == []


def test_startup_reads_migration_switch_from_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("ZEROPUSH_LEDGER_MIGRATIONS", "0")
    engine = _memory_engine()

    startup(engine=engine, force=True)

    assert current_revision(engine) is None


def test_outer_rollback_undoes_nested_transaction(sqlalchemy_store: SqlAlchemyLedgerStore) -> None:
    def outer(_transaction: SqlAlchemyLedgerTransaction) -> None:
        sqlalchemy_store.transaction(
            lambda _nested: sqlalchemy_store.fetch_and_increment("g", "c")
        )
        raise RuntimeError("outer failed")

    with pytest.raises(RuntimeError, match="outer failed"):
        sqlalchemy_store.transaction(outer)

    assert sqlalchemy_store.last_mutation_id("g", "c") == 0


def test_nested_failure_rolls_back_only_nested_work(
    sqlalchemy_store: SqlAlchemyLedgerStore,
) -> None:
    def nested(_transaction: SqlAlchemyLedgerTransaction) -> None:
        sqlalchemy_store.fetch_and_increment("g", "nested")
        raise ValueError("nested failed")

    def outer(_transaction: SqlAlchemyLedgerTransaction) -> int:
        sqlalchemy_store.fetch_and_increment("g", "c")
        with pytest.raises(ValueError, match="nested failed"):
            sqlalchemy_store.transaction(nested)
        return sqlalchemy_store.fetch_and_increment("g", "c")

    assert sqlalchemy_store.transaction(outer) == 2
    assert sqlalchemy_store.last_mutation_id("g", "c") == 2
    assert sqlalchemy_store.last_mutation_id("g", "nested") == 0


def test_sqlite_engines_get_begin_hook_once() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)

    translate_ledger_schema(engine, None)
    translated = translate_ledger_schema(engine, None)

    with translated.begin() as connection:
        assert connection.exec_driver_sql("SELECT 1").scalar_one() == 1
