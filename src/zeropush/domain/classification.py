"""Tagged mutation outcomes and the policy table that classifies failures.

Handler invocation never lets an exception escape to the batch loop. It returns a
:class:`MutationApplied` or a :class:`MutationFailure`, and :func:`classify` maps the
failure to a fixed ``(code, batch effect, ledger effect)`` triple.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from zeropush.domain.errors import (
    MutationAlreadyProcessedError,
    MutationError,
    OutOfOrderMutationError,
    TransactionError,
    TransactNotCalledError,
)
from zeropush.domain.model import (
    BatchEffect,
    ErrorCode,
    ErrorKind,
    LedgerEffect,
    MutationPhase,
)

if TYPE_CHECKING:
    from zeropush.domain.model import ErrorReason


@dataclass(frozen=True, slots=True)
class ErrorPolicy:
    code: ErrorCode
    batch: BatchEffect
    ledger: LedgerEffect

    @property
    def aborts_batch(self) -> bool:
        return self.batch is BatchEffect.ABORT


@dataclass(frozen=True, slots=True)
class MutationApplied:
    data: object | None = None


@dataclass(frozen=True, slots=True)
class MutationFailure:
    kind: ErrorKind
    error: MutationError
    phase: MutationPhase = MutationPhase.PRE_TRANSACTION

    @property
    def reason(self) -> ErrorReason | None:
        """Reason for a ``PushFailed`` response, when the error is batch-scoped."""

        return getattr(self.error, "reason", None)


type MutationOutcome = MutationApplied | MutationFailure


_CONTINUE_UNCHANGED = ErrorPolicy(ErrorCode.APP, BatchEffect.CONTINUE, LedgerEffect.UNCHANGED)

_POLICIES: dict[ErrorKind, ErrorPolicy] = {
    ErrorKind.UNKNOWN_MUTATION: _CONTINUE_UNCHANGED,
    ErrorKind.INVALID_ARGUMENTS: _CONTINUE_UNCHANGED,
    ErrorKind.TRANSACT_NOT_CALLED: _CONTINUE_UNCHANGED,
    ErrorKind.ALREADY_PROCESSED: ErrorPolicy(
        ErrorCode.ALREADY_PROCESSED, BatchEffect.CONTINUE, LedgerEffect.UNCHANGED
    ),
    ErrorKind.OUT_OF_ORDER: ErrorPolicy(
        ErrorCode.OOO_MUTATION, BatchEffect.ABORT, LedgerEffect.UNCHANGED
    ),
    ErrorKind.DATABASE: ErrorPolicy(ErrorCode.DATABASE, BatchEffect.ABORT, LedgerEffect.UNCHANGED),
}

_APPLICATION_POLICIES: dict[MutationPhase, ErrorPolicy] = {
    MutationPhase.PRE_TRANSACTION: ErrorPolicy(
        ErrorCode.APP, BatchEffect.CONTINUE, LedgerEffect.ADVANCE
    ),
    MutationPhase.TRANSACTION: ErrorPolicy(ErrorCode.APP, BatchEffect.CONTINUE, LedgerEffect.ADVANCE),
    MutationPhase.POST_COMMIT: ErrorPolicy(
        ErrorCode.APP, BatchEffect.CONTINUE, LedgerEffect.ALREADY_ADVANCED
    ),
}


def classify(failure: MutationFailure) -> ErrorPolicy:
    """Return the fixed policy for a failure. Pure; never touches the ledger."""

    if failure.kind is ErrorKind.APPLICATION:
        return _APPLICATION_POLICIES[failure.phase]
    return _POLICIES[failure.kind]


def failure_from_exception(exc: Exception, phase: MutationPhase) -> MutationFailure:
    """Tag an exception that escaped handler invocation.

    Anything outside the taxonomy is wrapped into a :class:`TransactionError` so
    internal exception types never reach the protocol surface.
    """

    if isinstance(exc, MutationAlreadyProcessedError):
        return MutationFailure(ErrorKind.ALREADY_PROCESSED, exc, phase)
    if isinstance(exc, OutOfOrderMutationError):
        return MutationFailure(ErrorKind.OUT_OF_ORDER, exc, phase)
    if isinstance(exc, TransactionError):
        return MutationFailure(ErrorKind.DATABASE, exc, phase)
    if isinstance(exc, TransactNotCalledError):
        return MutationFailure(ErrorKind.TRANSACT_NOT_CALLED, exc, phase)
    if isinstance(exc, MutationError):
        return MutationFailure(ErrorKind.APPLICATION, exc, phase)
    return MutationFailure(ErrorKind.DATABASE, TransactionError.wrap(exc), phase)
