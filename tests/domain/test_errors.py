from __future__ import annotations

from zeropush.domain.errors import (
    MutationAlreadyProcessedError,
    MutationError,
    MutationNotFoundError,
    OutOfOrderMutationError,
    TransactionError,
    UnsupportedPushVersionError,
    ValidationError,
)
from zeropush.domain.model import ErrorCode, ErrorReason


def test_mutation_error_carries_details() -> None:
    error = MutationError("Title too long", details={"max": 10})

    assert error.code is ErrorCode.APP
    assert error.message == "Title too long"
    assert error.details == {"max": 10}


def test_validation_error_joins_messages() -> None:
    error = ValidationError(["id is required", "title: too long"])

    assert error.errors == ["id is required", "title: too long"]
    assert error.message == "id is required, title: too long"
    assert ValidationError("single").errors == ["single"]


def test_engine_error_messages() -> None:
    assert MutationNotFoundError("a.b").message == "Unknown mutation: a.b"
    assert MutationAlreadyProcessedError(
        client_id="c1", received_id=3, last_mutation_id=7
    ).message == ("Mutation 3 already processed for client c1. Last mutation ID: 7")
    assert OutOfOrderMutationError(client_id="c1", received_id=9, expected_id=8).message == (
        "Client c1 sent mutation ID 9 but expected 8"
    )
    assert UnsupportedPushVersionError("2", supported_version=1).message == (
        "Unsupported push version: 2. Expected: 1"
    )


def test_batch_errors_carry_reasons() -> None:
    assert OutOfOrderMutationError.reason is ErrorReason.OOO_MUTATION
    assert OutOfOrderMutationError.code is ErrorCode.OOO_MUTATION
    assert TransactionError.reason is ErrorReason.DATABASE
    assert UnsupportedPushVersionError.reason is ErrorReason.UNSUPPORTED_PUSH_VERSION


def test_transaction_error_wrap_keeps_existing_message() -> None:
    original = TransactionError("deadlock detected")

    assert TransactionError.wrap(original) is original
    wrapped = TransactionError.wrap(ValueError("bad"))
    assert wrapped.message == "Transaction failed: bad"
    assert isinstance(wrapped.__cause__, ValueError)
