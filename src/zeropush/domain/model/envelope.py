"""Request-scoped push structures and the durable ledger record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class MutationIdentity:
    """The part of a mutation echoed back to the client. Never carries the group."""

    id: int
    client_id: str

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "clientID": self.client_id}


@dataclass(frozen=True, slots=True)
class MutationRequest:
    """A single client mutation; ``id`` is the client-local sequence number."""

    id: int
    client_id: str
    name: str
    args: Mapping[str, object] = field(default_factory=dict[str, object])

    @property
    def identity(self) -> MutationIdentity:
        return MutationIdentity(id=self.id, client_id=self.client_id)


@dataclass(frozen=True, slots=True)
class PushEnvelope:
    push_version: int
    client_group_id: str
    request_id: str
    timestamp: int
    mutations: tuple[MutationRequest, ...] = ()

    def identities(self, start: int = 0) -> tuple[MutationIdentity, ...]:
        """Identities of the mutations from ``start`` to the end of the batch."""

        return tuple(mutation.identity for mutation in self.mutations[start:])


@dataclass
class LedgerRecord:
    """Last applied mutation id for one client of a client group.

    An absent record is equivalent to ``last_mutation_id == 0``. Only a ledger
    store's atomic fetch-and-increment changes the value.
    """

    client_group_id: str
    client_id: str
    last_mutation_id: int = 0
    user_id: str | None = None
