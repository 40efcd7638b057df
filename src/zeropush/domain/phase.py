"""Explicit phase tracking for a single mutation.

A mutation moves ``pre_transaction -> transaction -> post_commit`` at most once.
The phase at the moment a failure escapes decides what happens to the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass

from zeropush.domain.model import MutationPhase

_TRANSITIONS: dict[MutationPhase, MutationPhase] = {
    MutationPhase.PRE_TRANSACTION: MutationPhase.TRANSACTION,
    MutationPhase.TRANSACTION: MutationPhase.POST_COMMIT,
}


class PhaseTransitionError(RuntimeError):
    """Raised when a mutation tries to skip or repeat a phase."""


@dataclass(slots=True)
class PhaseTracker:
    current: MutationPhase = MutationPhase.PRE_TRANSACTION

    def enter_transaction(self) -> None:
        self._advance(MutationPhase.TRANSACTION)

    def commit(self) -> None:
        self._advance(MutationPhase.POST_COMMIT)

    @property
    def transaction_entered(self) -> bool:
        return self.current is not MutationPhase.PRE_TRANSACTION

    @property
    def committed(self) -> bool:
        return self.current is MutationPhase.POST_COMMIT

    def _advance(self, target: MutationPhase) -> None:
        if _TRANSITIONS.get(self.current) is not target:
            raise PhaseTransitionError(f"Cannot move from {self.current} to {target}")
        self.current = target
