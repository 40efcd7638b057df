"""Exactly-once, in-order processing of a client push.

For every mutation of the batch the processor looks up the handler, validates its
arguments and runs it. The handler's transaction first claims the next sequence
number of the client's ledger record; user code only runs when the claim matches
the mutation id, and both commit or roll back together.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

from zeropush.config import PushConfig
from zeropush.domain.classification import (
    MutationApplied,
    MutationFailure,
    classify,
    failure_from_exception,
)
from zeropush.domain.errors import (
    MutationAlreadyProcessedError,
    MutationNotFoundError,
    OutOfOrderMutationError,
    ParseError,
    UnsupportedPushVersionError,
    ValidationError,
)
from zeropush.domain.model import (
    ErrorKind,
    LedgerEffect,
    MutationResponse,
    MutationSuccess,
    PushResponse,
)
from zeropush.domain.phase import PhaseTracker
from zeropush.protocol.responses import error_result, push_failure
from zeropush.protocol.schema import parse_push

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from zeropush.domain.classification import MutationOutcome
    from zeropush.domain.errors import BatchError
    from zeropush.domain.model import MutationRequest, PushEnvelope, PushResult
    from zeropush.domain.ports.ledger import LedgerStore, LedgerTransaction
    from zeropush.domain.registry import MutationRegistry

log = logging.getLogger(__name__)


class PushProcessor[TTransaction: LedgerTransaction]:
    def __init__(
        self,
        registry: MutationRegistry,
        ledger_store: LedgerStore[TTransaction],
        config: PushConfig | None = None,
    ) -> None:
        self.registry = registry
        self.ledger_store = ledger_store
        self.config = config or PushConfig()

    def process(self, payload: object, context: Mapping[str, object] | None = None) -> PushResult:
        """Process one push request and return the response for the client."""

        try:
            envelope = parse_push(payload, self.config)
        except ParseError as exc:
            log.warning("Rejected push: %s", exc.message)
            return push_failure(exc)
        except UnsupportedPushVersionError as exc:
            log.warning("Rejected push: %s", exc.message)
            return push_failure(exc, exc.mutation_ids)

        log.info(
            "Processing push %s for client group %s with %d mutation(s)",
            envelope.request_id,
            envelope.client_group_id,
            len(envelope.mutations),
        )
        return self._process_envelope(envelope, context)

    def _process_envelope(
        self, envelope: PushEnvelope, context: Mapping[str, object] | None
    ) -> PushResult:
        responses: list[MutationResponse] = []
        for index, mutation in enumerate(envelope.mutations):
            outcome = self._run_mutation(envelope.client_group_id, mutation, context)
            if isinstance(outcome, MutationApplied):
                responses.append(MutationResponse(mutation.identity, MutationSuccess(outcome.data)))
                continue

            policy = classify(outcome)
            if policy.aborts_batch:
                log.warning(
                    "Aborting push %s at mutation %s of client %s (%s): %s",
                    envelope.request_id,
                    mutation.id,
                    mutation.client_id,
                    outcome.kind,
                    outcome.error.message,
                )
                return push_failure(cast("BatchError", outcome.error), envelope.identities(index))

            log.debug(
                "Mutation %s of client %s failed in %s phase (%s)",
                mutation.id,
                mutation.client_id,
                outcome.phase,
                outcome.kind,
            )
            if policy.ledger is LedgerEffect.ADVANCE:
                self._advance_after_application_error(envelope.client_group_id, mutation)
            responses.append(
                MutationResponse(mutation.identity, error_result(outcome.error, policy.code))
            )

        log.info("Finished push %s: %d result(s)", envelope.request_id, len(responses))
        return PushResponse(tuple(responses))

    def _run_mutation(
        self,
        client_group_id: str,
        mutation: MutationRequest,
        context: Mapping[str, object] | None,
    ) -> MutationOutcome:
        handler_class = self.registry.lookup(mutation.name)
        if handler_class is None:
            return MutationFailure(ErrorKind.UNKNOWN_MUTATION, MutationNotFoundError(mutation.name))

        tracker = PhaseTracker()
        try:
            handler = handler_class.from_raw_args(mutation.args, context)
        except ValidationError as exc:
            return MutationFailure(ErrorKind.INVALID_ARGUMENTS, exc)
        except Exception as exc:  # noqa: BLE001
            return failure_from_exception(exc, tracker.current)

        escaped: list[Exception] = []

        def transact[T](work: Callable[[LedgerTransaction], T]) -> T:
            tracker.enter_transaction()
            try:
                result = self.ledger_store.transaction(
                    lambda transaction: self._claim_and_run(
                        transaction, client_group_id, mutation, work
                    )
                )
            except Exception as exc:
                escaped.append(exc)
                raise
            tracker.commit()
            return result

        try:
            data = handler.call(transact)
        except Exception as exc:  # noqa: BLE001
            return failure_from_exception(exc, tracker.current)
        if escaped:
            # The handler caught the failure of its own transaction; nothing was committed.
            return failure_from_exception(escaped[-1], tracker.current)
        return MutationApplied(data)

    def _claim_and_run[T](
        self,
        transaction: TTransaction,
        client_group_id: str,
        mutation: MutationRequest,
        work: Callable[[LedgerTransaction], T],
    ) -> T:
        self._claim(client_group_id, mutation)
        return work(transaction)

    def _claim(self, client_group_id: str, mutation: MutationRequest) -> None:
        """Increment the client's ledger record and check it against the mutation id."""

        last_mutation_id = self.ledger_store.fetch_and_increment(client_group_id, mutation.client_id)
        if mutation.id < last_mutation_id:
            raise MutationAlreadyProcessedError(
                client_id=mutation.client_id,
                received_id=mutation.id,
                last_mutation_id=last_mutation_id - 1,
            )
        if mutation.id > last_mutation_id:
            raise OutOfOrderMutationError(
                client_id=mutation.client_id,
                received_id=mutation.id,
                expected_id=last_mutation_id,
            )

    def _advance_after_application_error(
        self, client_group_id: str, mutation: MutationRequest
    ) -> None:
        """Consume the mutation id in a ledger-only transaction so it is never replayed.

        The claim is checked like a regular one, so a replayed or early id rolls back
        instead of moving the ledger past mutations the client has not sent yet.
        """

        try:
            self.ledger_store.transaction(lambda _transaction: self._claim(client_group_id, mutation))
        except Exception as exc:  # noqa: BLE001
            log.warning("Failed to persist LMID after application error: %s", exc)
