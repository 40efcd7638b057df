"""Base class for user-supplied mutation handlers.

A handler declares its arguments as a :class:`~zeropush.protocol.arguments.MutationArgs`
model and implements :meth:`Mutation.execute`.

In automatic mode (the default) the whole of ``execute`` runs inside the ledger
transaction, and ``self.transaction`` is the store's handle for joining it::

    class CreatePost(Mutation[CreatePostArgs]):
        args_model = CreatePostArgs

        def execute(self, args: CreatePostArgs) -> None:
            session = cast("SqlAlchemyLedgerTransaction", self.transaction).session
            session.execute(insert(posts).values(id=args.id, title=args.title))

In manual mode the handler decides where the transaction starts and ends and must
call :meth:`Mutation.transact` exactly once; work before it runs in the
pre-transaction phase, work after it runs post-commit::

    class PublishPost(Mutation[PublishPostArgs]):
        args_model = PublishPostArgs
        transaction_mode = TransactionMode.MANUAL

        def execute(self, args: PublishPostArgs) -> object:
            check_permissions(self.context, args.id)
            result = self.transact(lambda tx: publish(tx, args.id))
            notify_subscribers(args.id)
            return result
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Protocol, Self

from zeropush.domain.errors import MutationError, TransactNotCalledError
from zeropush.domain.model import TransactionMode
from zeropush.protocol.arguments import MutationArgs, validate_arguments

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from zeropush.domain.ports.ledger import LedgerTransaction


class Transact(Protocol):
    """Callback supplied by the processor: runs ``work`` inside the ledger transaction."""

    def __call__[T](self, work: Callable[[LedgerTransaction], T], /) -> T: ...


class Mutation[TArgs: MutationArgs](ABC):
    args_model: ClassVar[type[MutationArgs]] = MutationArgs
    transaction_mode: ClassVar[TransactionMode] = TransactionMode.AUTOMATIC

    def __init__(self, args: TArgs, context: Mapping[str, object] | None = None) -> None:
        self.args = args
        self.context: Mapping[str, object] = context if context is not None else {}
        self._engine_transact: Transact | None = None
        self._transaction: LedgerTransaction | None = None
        self._transact_called = False

    @classmethod
    def from_raw_args(
        cls, raw_args: Mapping[str, object], context: Mapping[str, object] | None = None
    ) -> Self:
        """Validate client arguments and build the handler; raises ``ValidationError``."""

        args = validate_arguments(cls.args_model, raw_args)
        return cls(args, context)  # pyright: ignore[reportArgumentType]

    @abstractmethod
    def execute(self, args: TArgs) -> object | None:
        """Perform the mutation. A non-``None`` return value is sent back as ``data``."""

    @property
    def transaction(self) -> LedgerTransaction:
        if self._transaction is None:
            raise RuntimeError("No ledger transaction is active for this mutation")
        return self._transaction

    def transact[T](self, work: Callable[[LedgerTransaction], T]) -> T:
        """Run ``work`` inside the mutation's ledger transaction.

        In automatic mode the transaction is already open, so this just runs ``work``.
        """

        if self.transaction_mode is TransactionMode.AUTOMATIC:
            return work(self.transaction)
        if self._engine_transact is None:
            raise RuntimeError("transact is only available while the mutation is running")
        if self._transact_called:
            raise MutationError("Mutation must call transact exactly once")
        self._transact_called = True
        return self._engine_transact(self._joined(work))

    def call(self, transact: Transact) -> object | None:
        """Run the handler against the processor's transaction callback."""

        self._engine_transact = transact
        try:
            if self.transaction_mode is TransactionMode.AUTOMATIC:
                return transact(self._joined(lambda _tx: self.execute(self.args)))
            result = self.execute(self.args)
            if not self._transact_called:
                raise TransactNotCalledError
            return result
        finally:
            self._engine_transact = None

    def _joined[T](self, work: Callable[[LedgerTransaction], T]) -> Callable[[LedgerTransaction], T]:
        def run(transaction: LedgerTransaction) -> T:
            self._transaction = transaction
            try:
                return work(transaction)
            finally:
                self._transaction = None

        return run
