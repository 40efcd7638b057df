"""SQLAlchemy-backed ledger store and its adapter lifecycle."""

from __future__ import annotations

import logging
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from zeropush.adapters.sqlalchemy.mappings import (
    clients_table,
    schema_translate_map,
    start_mappers,
)
from zeropush.adapters.sqlalchemy.migrations import upgrade_head
from zeropush.config import get_database_config
from zeropush.domain.errors import TransactionError
from zeropush.domain.model import LedgerRecord

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.pool import ConnectionPoolEntry
    from sqlalchemy.sql.dml import Insert

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy ledger store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call zeropush.adapters.sqlalchemy."
                "ledger_store.startup() before creating a ledger store."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def create_ledger_engine(
    database_uri: str | None = None,
    *,
    ledger_schema: str | None = None,
    **engine_options: Any,
) -> Engine:
    """Create an engine for ``database_uri``; unset arguments come from the environment."""

    config = get_database_config()
    engine = create_engine(database_uri or config.uri, future=True, **engine_options)
    return translate_ledger_schema(engine, ledger_schema or config.ledger_schema)


def translate_ledger_schema(engine: Engine, ledger_schema: str | None) -> Engine:
    """Return ``engine`` with the ledger tables placed in ``ledger_schema``."""

    _begin_pysqlite_transactions_explicitly(engine)
    return engine.execution_options(schema_translate_map=schema_translate_map(ledger_schema))


def _begin_pysqlite_transactions_explicitly(engine: Engine) -> None:
    """Make pysqlite emit BEGIN itself so SAVEPOINTs nest inside the outer transaction.

    Without this the driver defers BEGIN until the first DML statement, and a
    SAVEPOINT issued before it is released straight to disk.
    """

    if engine.dialect.name != "sqlite" or engine.dialect.driver != "pysqlite":
        return
    if event.contains(engine, "begin", _emit_begin):
        return
    event.listen(engine, "connect", _disable_driver_transactions)
    event.listen(engine, "begin", _emit_begin)


def _disable_driver_transactions(dbapi_connection: Any, _record: ConnectionPoolEntry) -> None:
    dbapi_connection.isolation_level = None


def _emit_begin(connection: Connection) -> None:
    connection.exec_driver_sql("BEGIN")


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    ledger_schema: str | None = None,
    force: bool = False,
    migrate: bool | None = None,
) -> None:
    """Initialise the engine, mappers and session factory, and migrate the schema.

    A passed ``engine`` is used as-is when it already carries a schema translation.
    ``migrate`` defaults to ``DatabaseConfig.migrate``; turn it off when another
    process (zero-cache) owns the ``clients`` table.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if engine is None:
        resolved_engine = create_ledger_engine(database_uri, ledger_schema=ledger_schema)
    elif "schema_translate_map" in engine.get_execution_options():
        resolved_engine = engine
    else:
        resolved_engine = translate_ledger_schema(engine, ledger_schema)

    start_mappers()
    if migrate is None:
        migrate = get_database_config().migrate
    if migrate:
        upgrade_head(engine=resolved_engine)
    else:
        log.info("Skipping ledger migrations")
    log.info("SQLAlchemy ledger store ready on %s", resolved_engine.url.render_as_string())

    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


@dataclass(frozen=True, slots=True)
class SqlAlchemyLedgerTransaction:
    """Handle passed into transactional work; handler code writes through ``session``."""

    session: Session


class SqlAlchemyLedgerStore:
    """Ledger store keeping one row per (client group, client) in ``clients``.

    Work passed to :meth:`transaction` shares the session with the ledger increment,
    so user writes and the claimed mutation id commit or roll back together.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        start_mappers()
        self.session_factory = session_factory or _STATE.session_factory
        self._active: ContextVar[SqlAlchemyLedgerTransaction | None] = ContextVar(
            f"zeropush_ledger_transaction_{id(self)}", default=None
        )

    def transaction[T](self, work: Callable[[SqlAlchemyLedgerTransaction], T]) -> T:
        active = self._active.get()
        if active is not None:
            with active.session.begin_nested():
                return work(active)

        try:
            with self.session_factory() as session, session.begin():
                transaction = SqlAlchemyLedgerTransaction(session)
                token = self._active.set(transaction)
                try:
                    return work(transaction)
                finally:
                    self._active.reset(token)
        except SQLAlchemyError as exc:
            raise TransactionError.wrap(exc) from exc

    def fetch_and_increment(self, client_group_id: str, client_id: str) -> int:
        session = self._require_session()
        statement = _upsert_statement(session, client_group_id, client_id)
        if statement is not None:
            return session.execute(statement).scalar_one()
        return _locked_increment(session, client_group_id, client_id)

    def last_mutation_id(self, client_group_id: str, client_id: str) -> int:
        statement = select(clients_table.c.last_mutation_id).where(
            clients_table.c.client_group_id == client_group_id,
            clients_table.c.client_id == client_id,
        )
        active = self._active.get()
        if active is not None:
            return active.session.execute(statement).scalar_one_or_none() or 0
        with self.session_factory() as session:
            return session.execute(statement).scalar_one_or_none() or 0

    def records(self, client_group_id: str | None = None) -> list[LedgerRecord]:
        statement = select(LedgerRecord).order_by(
            clients_table.c.client_group_id, clients_table.c.client_id
        )
        if client_group_id is not None:
            statement = statement.where(clients_table.c.client_group_id == client_group_id)
        with self.session_factory() as session:
            return list(session.scalars(statement))

    def _require_session(self) -> Session:
        active = self._active.get()
        if active is None:
            raise StartupError("fetch_and_increment must be called inside a ledger transaction")
        return active.session


def _upsert_statement(session: Session, client_group_id: str, client_id: str) -> Insert | None:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        insert = postgresql.insert(clients_table)
    elif dialect == "sqlite":
        insert = sqlite.insert(clients_table)
    else:
        return None

    statement = insert.values(
        client_group_id=client_group_id,
        client_id=client_id,
        last_mutation_id=1,
    ).on_conflict_do_update(
        index_elements=[clients_table.c.client_group_id, clients_table.c.client_id],
        set_={clients_table.c.last_mutation_id: clients_table.c.last_mutation_id + 1},
    )
    return statement.returning(clients_table.c.last_mutation_id)


def _locked_increment(session: Session, client_group_id: str, client_id: str) -> int:
    current = session.execute(
        select(clients_table.c.last_mutation_id)
        .where(
            clients_table.c.client_group_id == client_group_id,
            clients_table.c.client_id == client_id,
        )
        .with_for_update()
    ).scalar_one_or_none()
    if current is None:
        session.execute(
            clients_table.insert().values(
                client_group_id=client_group_id,
                client_id=client_id,
                last_mutation_id=1,
            )
        )
        return 1
    session.execute(
        update(clients_table)
        .where(
            clients_table.c.client_group_id == client_group_id,
            clients_table.c.client_id == client_id,
        )
        .values(last_mutation_id=current + 1)
    )
    return current + 1
