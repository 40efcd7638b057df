"""Public domain model surface."""

from __future__ import annotations

from zeropush.domain.model.enums import (
    BatchEffect,
    ErrorCode,
    ErrorKind,
    ErrorReason,
    LedgerEffect,
    MutationPhase,
    TransactionMode,
)
from zeropush.domain.model.envelope import (
    LedgerRecord,
    MutationIdentity,
    MutationRequest,
    PushEnvelope,
)
from zeropush.domain.model.results import (
    MutationErrorResult,
    MutationResponse,
    MutationResult,
    MutationSuccess,
    PushFailure,
    PushResponse,
    PushResult,
)

__all__ = [
    "BatchEffect",
    "ErrorCode",
    "ErrorKind",
    "ErrorReason",
    "LedgerEffect",
    "LedgerRecord",
    "MutationErrorResult",
    "MutationIdentity",
    "MutationPhase",
    "MutationRequest",
    "MutationResponse",
    "MutationResult",
    "MutationSuccess",
    "PushEnvelope",
    "PushFailure",
    "PushResponse",
    "PushResult",
    "TransactionMode",
]
