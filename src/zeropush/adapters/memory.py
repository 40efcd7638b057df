"""Process-local ledger store, for tests and single-process deployments."""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from zeropush.domain.model import LedgerRecord

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(slots=True)
class InMemoryLedgerTransaction:
    """Handle passed into transactional work.

    ``data`` is the store's scratch mapping; writes made through it roll back
    together with the ledger when the transaction fails.
    """

    store: InMemoryLedgerStore
    depth: int

    @property
    def data(self) -> dict[str, object]:
        return self.store.data


class InMemoryLedgerStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._counters: dict[tuple[str, str], int] = {}
        self._depth = 0
        self.data: dict[str, object] = {}

    def transaction[T](self, work: Callable[[InMemoryLedgerTransaction], T]) -> T:
        """Run ``work`` holding the store lock; nested calls roll back to their own snapshot."""

        with self._lock:
            counters = dict(self._counters)
            data = copy.deepcopy(self.data)
            self._depth += 1
            try:
                return work(InMemoryLedgerTransaction(store=self, depth=self._depth))
            except BaseException:
                self._counters = counters
                self.data.clear()
                self.data.update(data)
                raise
            finally:
                self._depth -= 1

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def fetch_and_increment(self, client_group_id: str, client_id: str) -> int:
        with self._lock:
            if not self.in_transaction:
                raise RuntimeError("fetch_and_increment must be called inside a transaction")
            key = (client_group_id, client_id)
            value = self._counters.get(key, 0) + 1
            self._counters[key] = value
            return value

    def last_mutation_id(self, client_group_id: str, client_id: str) -> int:
        with self._lock:
            return self._counters.get((client_group_id, client_id), 0)

    def records(self) -> list[LedgerRecord]:
        with self._lock:
            return [
                LedgerRecord(client_group_id=group, client_id=client, last_mutation_id=value)
                for (group, client), value in sorted(self._counters.items())
            ]
