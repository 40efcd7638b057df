"""SQLAlchemy mapping metadata for the mutation ledger."""

from __future__ import annotations

import logging
from functools import cache
from typing import Final

from sqlalchemy import BigInteger, Column, String, Table, orm
from sqlalchemy.orm import configure_mappers

from zeropush.domain.model import LedgerRecord

log = logging.getLogger(__name__)

# Placeholder schema of the ledger tables. Engines translate it to the configured
# schema (``zero_0`` next to a Zero cache) or to no schema at all.
LEDGER_SCHEMA: Final[str] = "zeropush_ledger"

mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "pk": "pk_%(table_name)s",
}

clients_table = Table(
    "clients",
    mapper_registry.metadata,
    Column("clientGroupID", String, key="client_group_id", primary_key=True),
    Column("clientID", String, key="client_id", primary_key=True),
    Column(
        "lastMutationID",
        BigInteger,
        key="last_mutation_id",
        nullable=False,
        server_default="0",
    ),
    Column("userID", String, key="user_id", nullable=True),
    schema=LEDGER_SCHEMA,
)


def schema_translate_map(ledger_schema: str | None) -> dict[str | None, str | None]:
    return {LEDGER_SCHEMA: ledger_schema}


@cache
def start_mappers() -> orm.registry:
    """Map :class:`LedgerRecord` onto the ``clients`` table (once per process)."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(LedgerRecord, clients_table)

    configure_mappers()
    return mapper_registry
