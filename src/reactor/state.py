"""State values — mutable leaves of the dependency graph.

When a State is read inside a Computed evaluation, the dependency is
registered automatically. When the State changes, every dependent is
invalidated and the change signal fires with the new value. Inside a
transaction both are deferred until the transaction completes.

A State holds its dependents strongly: a Computed that read it stays alive
(and keeps being invalidated) until it re-evaluates without reading this
State or is disposed. Dispose derived values you no longer need.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from reactor._tracking import record_read, same
from reactor.computed import after_settle, propagate
from reactor.protocols import Dependent
from reactor.signal import Signal
from reactor.transaction import current_transaction

T = TypeVar("T")

_UNSET = object()


class State(Generic[T]):
    """A single mutable value with automatic dependency tracking."""

    __slots__ = ("_value", "_equals", "_dependents", "_changed", "_baseline")

    def __init__(self, value: T, *, equals: Callable[[T, T], bool] | None = None) -> None:
        self._value = value
        self._equals = equals or same
        self._dependents: set[Dependent] = set()
        self._changed = Signal()
        # Value before the first unreported write; _UNSET when nothing is pending.
        self._baseline: object = _UNSET

    def get(self) -> T:
        """Read the value. If inside a derivation, registers the dependency."""
        record_read(self)
        return self._value

    def set(self, value: T) -> None:
        """Write a new value. Equal values are ignored."""
        old = self._value
        if self._equals(old, value):
            return
        self._value = value
        if self._baseline is _UNSET:
            self._baseline = old

        txn = current_transaction()
        if txn is not None:
            txn.register_modified(self)
            return
        self.notify_dependents()

    @property
    def value(self) -> T:
        return self.get()

    @value.setter
    def value(self, value: T) -> None:
        self.set(value)

    # --- Observable side ---

    def add_dependent(self, dependent: Dependent) -> None:
        self._dependents.add(dependent)

    def remove_dependent(self, dependent: Dependent) -> None:
        self._dependents.discard(dependent)

    def notify_dependents(self) -> None:
        """Invalidate all dependents, then report the change if one is pending.

        The report runs even when a dependent fails to recompute, and inside
        a transaction flush it waits until every derived node has settled.
        """
        try:
            propagate(self._dependents)
        finally:
            after_settle(self._report)

    def _report(self) -> None:
        baseline, self._baseline = self._baseline, _UNSET
        if baseline is not _UNSET and not self._equals(baseline, self._value):
            self._changed.emit(self, self._value)

    @property
    def changed(self) -> Signal:
        """Fires (source, new_value) after dependents have been invalidated."""
        return self._changed

    @property
    def dependents(self) -> frozenset[Dependent]:
        return frozenset(self._dependents)

    def __repr__(self) -> str:
        return f"State({self._value!r})"
