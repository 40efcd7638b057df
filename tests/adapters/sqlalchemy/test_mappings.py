from __future__ import annotations

from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import Session

from zeropush.adapters.sqlalchemy.ledger_store import translate_ledger_schema
from zeropush.adapters.sqlalchemy.mappings import (
    LEDGER_SCHEMA,
    clients_table,
    schema_translate_map,
    start_mappers,
)
from zeropush.adapters.sqlalchemy.migrations import upgrade_head
from zeropush.domain.model import LedgerRecord


def test_clients_table_uses_zero_column_names() -> None:
    assert clients_table.name == "clients"
    assert clients_table.schema == LEDGER_SCHEMA
    assert [column.name for column in clients_table.columns] == [
        "clientGroupID",
        "clientID",
        "lastMutationID",
        "userID",
    ]
    assert [column.key for column in clients_table.primary_key] == ["client_group_id", "client_id"]


def test_schema_translate_map_targets_placeholder_schema() -> None:
    assert schema_translate_map("zero_0") == {LEDGER_SCHEMA: "zero_0"}
    assert schema_translate_map(None) == {LEDGER_SCHEMA: None}


def test_start_mappers_is_idempotent() -> None:
    assert start_mappers() is start_mappers()


def test_ledger_record_round_trips_through_mapping() -> None:
    engine = translate_ledger_schema(create_engine("sqlite+pysqlite:///:memory:", future=True), None)
    start_mappers()
    upgrade_head(engine=engine)

    assert "clients" in inspect(engine).get_table_names()

    with Session(engine) as session:
        session.add(LedgerRecord("group", "client", 4, user_id="user-1"))
        session.commit()

    with Session(engine) as session:
        record = session.get(LedgerRecord, ("group", "client"))
        assert record is not None
        assert record.last_mutation_id == 4
        assert record.user_id == "user-1"

    engine.dispose()
