"""Domain port definitions for adapters."""

from __future__ import annotations

from .ledger import LedgerStore, LedgerTransaction

__all__ = [
    "LedgerStore",
    "LedgerTransaction",
]
