"""Translate engine errors into outbound result structures."""

from __future__ import annotations

from typing import TYPE_CHECKING

from zeropush.domain.errors import ValidationError
from zeropush.domain.model import ErrorCode, MutationErrorResult, PushFailure

if TYPE_CHECKING:
    from collections.abc import Iterable

    from zeropush.domain.errors import BatchError, MutationError
    from zeropush.domain.model import MutationIdentity


def error_result(error: MutationError, code: ErrorCode | None = None) -> MutationErrorResult:
    """Build the per-mutation error; ``code`` is the classified one, else the error's own."""

    code = code or error.code
    if isinstance(error, ValidationError):
        return MutationErrorResult(
            error=code,
            message=error.message,
            details={"messages": list(error.errors)},
        )
    if code is ErrorCode.ALREADY_PROCESSED:
        # Clients expect the explanation under ``details`` for this code.
        return MutationErrorResult(error=code, details=error.message)
    return MutationErrorResult(error=code, message=error.message, details=error.details)


def push_failure(error: BatchError, mutation_ids: Iterable[MutationIdentity] = ()) -> PushFailure:
    return PushFailure(
        reason=error.reason,
        message=error.message or str(error),
        mutation_ids=tuple(mutation_ids),
    )
