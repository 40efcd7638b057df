"""Outcome structures assembled by the push processor.

Every structure offers ``to_dict`` returning the wire shape (camelCase keys, plain
strings) ready for JSON encoding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from .enums import ErrorCode, ErrorReason
    from .envelope import MutationIdentity


@dataclass(frozen=True, slots=True)
class MutationSuccess:
    data: object | None = None

    def to_dict(self) -> dict[str, object]:
        if self.data is None:
            return {}
        return {"data": self.data}


@dataclass(frozen=True, slots=True)
class MutationErrorResult:
    error: ErrorCode
    message: str | None = None
    details: object | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"error": self.error.value}
        if self.message is not None:
            payload["message"] = self.message
        if self.details is not None:
            payload["details"] = self.details
        return payload


type MutationResult = MutationSuccess | MutationErrorResult


@dataclass(frozen=True, slots=True)
class MutationResponse:
    id: MutationIdentity
    result: MutationResult

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id.to_dict(), "result": self.result.to_dict()}


@dataclass(frozen=True, slots=True)
class PushResponse:
    """Itemised per-mutation results, possibly mixing successes and errors."""

    mutations: tuple[MutationResponse, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {"mutations": [response.to_dict() for response in self.mutations]}


@dataclass(frozen=True, slots=True)
class PushFailure:
    """Batch-terminating failure.

    ``mutation_ids`` lists the mutations the client must keep queued: the failing
    one and everything after it, or nothing when the envelope itself was unreadable.
    """

    kind: ClassVar[str] = "PushFailed"
    origin: ClassVar[str] = "server"

    reason: ErrorReason
    message: str
    mutation_ids: tuple[MutationIdentity, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind,
            "origin": self.origin,
            "reason": self.reason.value,
            "message": self.message,
            "mutationIDs": [identity.to_dict() for identity in self.mutation_ids],
        }


type PushResult = PushResponse | PushFailure
