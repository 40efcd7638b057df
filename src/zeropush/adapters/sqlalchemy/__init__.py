"""SQLAlchemy adapter package for the zeropush ledger."""

from __future__ import annotations

from .ledger_store import (
    SqlAlchemyLedgerStore,
    SqlAlchemyLedgerTransaction,
    StartupError,
    configured_engine,
    create_ledger_engine,
    is_started,
    shutdown,
    startup,
)
from .mappings import LEDGER_SCHEMA, clients_table, mapper_registry, start_mappers

__all__ = [
    "LEDGER_SCHEMA",
    "SqlAlchemyLedgerStore",
    "SqlAlchemyLedgerTransaction",
    "StartupError",
    "clients_table",
    "configured_engine",
    "create_ledger_engine",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
