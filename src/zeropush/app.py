"""Application orchestration entry points."""

from __future__ import annotations

from importlib import import_module
from logging import getLogger
from typing import TYPE_CHECKING

from zeropush.adapters.sqlalchemy.ledger_store import (
    SqlAlchemyLedgerStore,
    create_ledger_engine,
    is_started,
    startup,
)
from zeropush.adapters.sqlalchemy.migrations import upgrade_head
from zeropush.config import get_push_config
from zeropush.domain.errors import ParseError
from zeropush.domain.push_processor import PushProcessor
from zeropush.domain.registry import MutationRegistry
from zeropush.protocol.responses import push_failure
from zeropush.protocol.schema import decode_push_body

if TYPE_CHECKING:
    from collections.abc import Mapping

    from zeropush.config import PushConfig
    from zeropush.domain.ports.ledger import LedgerStore, LedgerTransaction

log = getLogger(__name__)


def build_push_processor(
    registry: MutationRegistry,
    *,
    ledger_store: LedgerStore[LedgerTransaction] | None = None,
    config: PushConfig | None = None,
) -> PushProcessor[LedgerTransaction]:
    """Wire a processor, defaulting to the SQLAlchemy store and environment config."""

    if ledger_store is None:
        if not is_started():
            startup()
        ledger_store = SqlAlchemyLedgerStore()
    return PushProcessor(registry, ledger_store, config or get_push_config())


def process_push(
    body: str | bytes | Mapping[str, object],
    registry: MutationRegistry,
    *,
    context: Mapping[str, object] | None = None,
    ledger_store: LedgerStore[LedgerTransaction] | None = None,
    config: PushConfig | None = None,
) -> dict[str, object]:
    """Process a push request body and return the JSON-ready response."""

    processor = build_push_processor(registry, ledger_store=ledger_store, config=config)
    if isinstance(body, str | bytes):
        try:
            payload = decode_push_body(body)
        except ParseError as exc:
            log.warning("Rejected push: %s", exc.message)
            return push_failure(exc).to_dict()
    else:
        payload = body
    return processor.process(payload, context).to_dict()


def load_registry(reference: str) -> MutationRegistry:
    """Resolve a ``module:attribute`` reference to a mutation registry."""

    module_name, separator, attribute = reference.partition(":")
    if not separator or not module_name or not attribute:
        raise ValueError(f"Registry reference must look like 'module:attribute', got {reference!r}")
    module = import_module(module_name)
    try:
        registry = getattr(module, attribute)
    except AttributeError as exc:
        raise ValueError(f"Module {module_name!r} has no attribute {attribute!r}") from exc
    if not isinstance(registry, MutationRegistry):
        raise ValueError(f"{reference} is not a MutationRegistry")
    return registry


def upgrade_database(database_uri: str | None = None) -> None:
    """Migrate the ledger schema of the configured (or given) database to head."""

    engine = create_ledger_engine(database_uri)
    try:
        upgrade_head(engine=engine)
    finally:
        engine.dispose()
    log.info("Ledger schema is up to date")


def read_last_mutation_id(
    client_group_id: str,
    client_id: str,
    *,
    ledger_store: LedgerStore[LedgerTransaction] | None = None,
) -> int:
    if ledger_store is None:
        if not is_started():
            startup()
        ledger_store = SqlAlchemyLedgerStore()
    return ledger_store.last_mutation_id(client_group_id, client_id)
