"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class MutationPhase(StrEnum):
    """Where a mutation stands relative to its ledger transaction."""

    PRE_TRANSACTION = "pre_transaction"
    TRANSACTION = "transaction"
    POST_COMMIT = "post_commit"


class TransactionMode(StrEnum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class ErrorKind(StrEnum):
    """Closed set of per-mutation failure kinds produced by handler invocation."""

    UNKNOWN_MUTATION = "unknown_mutation"
    INVALID_ARGUMENTS = "invalid_arguments"
    ALREADY_PROCESSED = "already_processed"
    OUT_OF_ORDER = "out_of_order"
    APPLICATION = "application"
    TRANSACT_NOT_CALLED = "transact_not_called"
    DATABASE = "database"


class ErrorCode(StrEnum):
    """Protocol-visible error codes."""

    APP = "app"
    ALREADY_PROCESSED = "alreadyProcessed"
    OOO_MUTATION = "oooMutation"
    DATABASE = "database"


class ErrorReason(StrEnum):
    """Reasons reported on a batch-terminating ``PushFailed`` response."""

    PARSE = "parse"
    UNSUPPORTED_PUSH_VERSION = "unsupportedPushVersion"
    OOO_MUTATION = "oooMutation"
    DATABASE = "database"


class BatchEffect(StrEnum):
    CONTINUE = "continue"
    ABORT = "abort"


class LedgerEffect(StrEnum):
    UNCHANGED = "unchanged"
    ADVANCE = "advance"
    ALREADY_ADVANCED = "already_advanced"
