from __future__ import annotations

import threading

import pytest

from zeropush.adapters.memory import InMemoryLedgerStore, InMemoryLedgerTransaction
from zeropush.domain.model import LedgerRecord
from zeropush.domain.ports.ledger import LedgerStore


def test_store_satisfies_port(memory_store: InMemoryLedgerStore) -> None:
    assert isinstance(memory_store, LedgerStore)


def test_absent_record_reads_as_zero(memory_store: InMemoryLedgerStore) -> None:
    assert memory_store.last_mutation_id("g", "c") == 0


def test_fetch_and_increment_creates_then_increments(memory_store: InMemoryLedgerStore) -> None:
    values = [
        memory_store.transaction(lambda _tx: memory_store.fetch_and_increment("g", "c"))
        for _ in range(3)
    ]

    assert values == [1, 2, 3]
    assert memory_store.records() == [LedgerRecord("g", "c", 3)]


def test_fetch_and_increment_requires_transaction(memory_store: InMemoryLedgerStore) -> None:
    with pytest.raises(RuntimeError, match="inside a transaction"):
        memory_store.fetch_and_increment("g", "c")


def test_failed_transaction_rolls_back_counter_and_data(
    memory_store: InMemoryLedgerStore,
) -> None:
    def work(transaction: InMemoryLedgerTransaction) -> None:
        memory_store.fetch_and_increment("g", "c")
        transaction.data["written"] = True
        raise ValueError("rollback")

    with pytest.raises(ValueError, match="rollback"):
        memory_store.transaction(work)

    assert memory_store.last_mutation_id("g", "c") == 0
    assert memory_store.data == {}


def test_nested_transaction_rolls_back_to_its_own_snapshot(
    memory_store: InMemoryLedgerStore,
) -> None:
    def inner(transaction: InMemoryLedgerTransaction) -> None:
        memory_store.fetch_and_increment("g", "c")
        transaction.data["inner"] = True
        raise ValueError("inner")

    def outer(transaction: InMemoryLedgerTransaction) -> int:
        memory_store.fetch_and_increment("g", "c")
        transaction.data["outer"] = True
        with pytest.raises(ValueError, match="inner"):
            memory_store.transaction(inner)
        return transaction.depth

    depth = memory_store.transaction(outer)

    assert depth == 1
    assert memory_store.last_mutation_id("g", "c") == 1
    assert memory_store.data == {"outer": True}
    assert not memory_store.in_transaction


def test_concurrent_increments_are_serialised(memory_store: InMemoryLedgerStore) -> None:
    results: list[int] = []
    lock = threading.Lock()

    def claim() -> None:
        value = memory_store.transaction(lambda _tx: memory_store.fetch_and_increment("g", "c"))
        with lock:
            results.append(value)

    threads = [threading.Thread(target=claim) for _ in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(results) == list(range(1, 21))
    assert memory_store.last_mutation_id("g", "c") == 20
