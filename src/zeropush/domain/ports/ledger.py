"""Port for the Last-Mutation-ID ledger."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable


@runtime_checkable
class LedgerTransaction(Protocol):
    """Marker protocol for the handle a store passes into transactional work.

    Concrete stores expose whatever handler code needs to join the transaction
    (a SQLAlchemy session, an in-memory scratch mapping, ...).
    """


@runtime_checkable
class LedgerStore[TTransaction: LedgerTransaction](Protocol):
    """Transactional store owning per-(client group, client) mutation counters."""

    def transaction[T](self, work: Callable[[TTransaction], T]) -> T:
        """Run ``work`` in a transaction; roll back and re-raise if it raises.

        Calls made while a transaction is active on the same store must nest
        instead of failing.
        """
        ...

    def fetch_and_increment(self, client_group_id: str, client_id: str) -> int:
        """Atomically create the counter at 1 or increment it; return the new value.

        Must be called inside :meth:`transaction`.
        """
        ...

    def last_mutation_id(self, client_group_id: str, client_id: str) -> int:
        """Read the current counter; an absent record reads as 0."""
        ...
