"""Error taxonomy for push processing.

Handlers raise :class:`MutationError` (or a subclass) to report an application
failure for their mutation. The remaining classes are raised by the engine itself.
Batch-scoped errors carry the ``reason`` reported on the ``PushFailed`` response.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from zeropush.domain.model import ErrorCode, ErrorReason

if TYPE_CHECKING:
    from collections.abc import Iterable

    from zeropush.domain.model import MutationIdentity


class MutationError(Exception):
    """Application error raised by mutation code; reported per mutation as ``app``."""

    code: ClassVar[ErrorCode] = ErrorCode.APP

    def __init__(self, message: str | None = None, *, details: object | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InternalError(MutationError):
    """Unexpected server condition a handler chose to report on its own mutation."""


class ValidationError(MutationError):
    """Collects every argument problem instead of stopping at the first one."""

    def __init__(self, errors: Iterable[str] | str) -> None:
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__(", ".join(self.errors))


class MutationNotFoundError(MutationError):
    def __init__(self, mutation_name: str) -> None:
        self.mutation_name = mutation_name
        super().__init__(f"Unknown mutation: {mutation_name}")


class TransactNotCalledError(MutationError):
    """A manual-mode handler returned without entering its transaction."""

    def __init__(self) -> None:
        super().__init__("Mutation must call transact block")


class MutationAlreadyProcessedError(MutationError):
    code = ErrorCode.ALREADY_PROCESSED

    def __init__(self, *, client_id: str, received_id: int, last_mutation_id: int) -> None:
        self.client_id = client_id
        self.received_id = received_id
        self.last_mutation_id = last_mutation_id
        super().__init__(
            f"Mutation {received_id} already processed for client {client_id}. "
            f"Last mutation ID: {last_mutation_id}"
        )


class BatchError(MutationError):
    """Base for errors that terminate the whole push."""

    reason: ClassVar[ErrorReason]


class ParseError(BatchError):
    """The push envelope is malformed; no mutation id in it can be trusted."""

    reason = ErrorReason.PARSE


class UnsupportedPushVersionError(BatchError):
    reason = ErrorReason.UNSUPPORTED_PUSH_VERSION

    def __init__(
        self,
        received_version: object,
        *,
        supported_version: int,
        mutation_ids: tuple[MutationIdentity, ...] = (),
    ) -> None:
        self.received_version = received_version
        self.supported_version = supported_version
        self.mutation_ids = mutation_ids
        super().__init__(
            f"Unsupported push version: {received_version}. Expected: {supported_version}"
        )


class OutOfOrderMutationError(BatchError):
    code = ErrorCode.OOO_MUTATION
    reason = ErrorReason.OOO_MUTATION

    def __init__(self, *, client_id: str, received_id: int, expected_id: int) -> None:
        self.client_id = client_id
        self.received_id = received_id
        self.expected_id = expected_id
        super().__init__(
            f"Client {client_id} sent mutation ID {received_id} but expected {expected_id}"
        )


class TransactionError(BatchError):
    """Storage or transaction-layer failure, or an unexpected exception wrapped as one."""

    code = ErrorCode.DATABASE
    reason = ErrorReason.DATABASE

    @classmethod
    def wrap(cls, exc: BaseException) -> TransactionError:
        if isinstance(exc, TransactionError):
            return exc
        wrapped = cls(f"Transaction failed: {exc}")
        wrapped.__cause__ = exc
        return wrapped
