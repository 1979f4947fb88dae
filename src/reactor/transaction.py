"""Transactions and actions — batched state mutations.

Writes to a State inside a transaction store the new value immediately but
defer notification. When the transaction completes, every modified State is
notified exactly once, however many times it was written.

Transactions nest. Opening one while another is active makes the new one a
child; completing the child hands its pending set to the nearest ancestor
that is still active, and only the outermost completion notifies anyone.
"""

from __future__ import annotations

import contextvars
import functools
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator, ParamSpec, TypeVar

from reactor.computed import coalesced

if TYPE_CHECKING:
    from reactor.protocols import Observable

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger(__name__)

_current: contextvars.ContextVar[Transaction | None] = contextvars.ContextVar(
    "reactor_current_transaction", default=None
)


class Transaction:
    """A scope that coalesces notifications until it completes.

    Usage:
        with Transaction.open():
            x.set(10)
            y.set(20)
        # dependents of x and y are notified here, once each
    """

    __slots__ = ("_pending", "_parent", "_completed")

    def __init__(self, parent: Transaction | None = None) -> None:
        self._pending: set[Observable] = set()
        self._parent = parent
        self._completed = False

    @classmethod
    def open(cls) -> Transaction:
        """Create a transaction and install it as current."""
        txn = cls(_current.get())
        _current.set(txn)
        return txn

    @staticmethod
    def current() -> Transaction | None:
        return _current.get()

    @classmethod
    def run(cls, action: Callable[[], R]) -> R:
        """Run action inside a transaction, completing it on every exit path."""
        with cls.open():
            return action()

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def pending(self) -> frozenset[Observable]:
        return frozenset(self._pending)

    def register_modified(self, observable: Observable) -> None:
        self._pending.add(observable)

    def _active_ancestor(self) -> Transaction | None:
        parent = self._parent
        while parent is not None and parent._completed:
            parent = parent._parent
        return parent

    def complete(self) -> None:
        """Notify every modified observable once. Idempotent."""
        if self._completed:
            return
        self._completed = True
        parent = self._active_ancestor()
        if _current.get() is self:
            _current.set(parent)

        pending, self._pending = self._pending, set()
        if parent is not None:
            logger.debug("Merging %d modified observables into enclosing transaction", len(pending))
            parent._pending.update(pending)
            return

        # One push over every modified observable, then one settle pass, then
        # the observables' own change signals. Writes made by dependents
        # during the settle see no open transaction and notify immediately.
        logger.debug("Flushing %d modified observables", len(pending))
        with coalesced():
            for observable in pending:
                observable.notify_dependents()

    def dispose(self) -> None:
        """Complete the transaction if it has not completed yet."""
        if not self._completed:
            self.complete()

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "completed" if self._completed else f"active, pending={len(self._pending)}"
        return f"Transaction({state})"


def current_transaction() -> Transaction | None:
    """The transaction writes are currently deferred into, if any."""
    return _current.get()


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all state mutations inside fn.

    Dependents are only notified after fn returns, not during.

    Usage:
        counter_a = State(0)
        counter_b = State(0)

        @action
        def swap():
            a, b = counter_a.get(), counter_b.get()
            counter_a.set(b)
            counter_b.set(a)
            # observers see both changes at once, not one at a time
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with Transaction.open():
            return fn(*args, **kwargs)

    return wrapper


@contextmanager
def transaction() -> Iterator[Transaction]:
    """Context manager for batching mutations.

    Usage:
        with transaction():
            counter_a.set(1)
            counter_b.set(2)
            # observers fire here, after both are set
    """
    txn = Transaction.open()
    try:
        yield txn
    finally:
        txn.dispose()
