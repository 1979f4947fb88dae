"""Computed values — derived state with automatic dependency tracking.

A Computed wraps a function. When evaluated, it tracks which observables the
function reads and caches the result. When any dependency changes, the
cached value is invalidated eagerly (push) and recomputed lazily on the next
read (pull). Nodes with change-signal subscribers are the exception: they
recompute as soon as the push phase is over, so their listeners hear about
new values without anyone reading them.

The push phase is iterative. mark() walks the downstream graph with an
explicit stack, marking every transitive Computed dirty before any of them
recomputes, so a read during settling never sees a half-updated graph.
Inside coalesced() several pushes share one settle pass, which is how a
transaction flush stays glitch-free across many modified States.

Observables hold their dependents strongly. A Computed that is still
registered with an upstream node lives as long as that node does; call
dispose() to detach one that is no longer needed.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Callable, Generic, Iterable, Iterator, TypeVar

from reactor._tracking import record_read, same, tracking
from reactor.errors import CyclicDependencyError
from reactor.protocols import Dependent, Observable
from reactor.signal import Signal

T = TypeVar("T")

_UNSET = object()


class _Flush:
    """Settle work collected while pushes are coalesced."""

    __slots__ = ("nodes", "reports")

    def __init__(self) -> None:
        self.nodes: list[Computed] = []
        self.reports: list[Callable[[], None]] = []


_current_flush: contextvars.ContextVar[_Flush | None] = contextvars.ContextVar(
    "reactor_current_flush", default=None
)


def mark(dependents: Iterable[Dependent]) -> list[Computed]:
    """Push phase: invalidate every transitive dependent.

    Returns the subscribed nodes that need settling. Foreign Dependent
    implementations get their invalidate() called and are responsible for
    their own downstream.
    """
    pending: list[Computed] = []
    stack = list(dependents)
    while stack:
        dependent = stack.pop()
        if not isinstance(dependent, Computed):
            dependent.invalidate()
            continue
        if dependent._dirty:
            # Left unsettled by an earlier failure; its downstream is already dirty.
            if dependent._previous is not _UNSET:
                pending.append(dependent)
            continue
        dependent._dirty = True
        if dependent._changed:
            # Oldest unreported value is the baseline for the change signal.
            if dependent._previous is _UNSET:
                dependent._previous = dependent._value
            pending.append(dependent)
        stack.extend(dependent._dependents)
    return pending


def settle(nodes: Iterable[Computed]) -> None:
    """Pull phase for subscribed nodes: recompute and report changes."""
    for node in nodes:
        node._settle()


def propagate(dependents: Iterable[Dependent]) -> None:
    """Invalidate every transitive dependent, then settle subscribed nodes.

    Inside coalesced() settling is deferred to the end of the block.
    """
    nodes = mark(dependents)
    flush = _current_flush.get()
    if flush is not None:
        flush.nodes.extend(nodes)
        return
    settle(nodes)


def after_settle(report: Callable[[], None]) -> None:
    """Run report once derived nodes have settled: now, or at the end of coalesced()."""
    flush = _current_flush.get()
    if flush is None:
        report()
    else:
        flush.reports.append(report)


@contextmanager
def coalesced() -> Iterator[None]:
    """Share one settle pass between every push made inside the block.

    All marking finishes before any subscribed node recomputes, and reports
    queued with after_settle() run last, even if settling raises.
    """
    flush = _Flush()
    token = _current_flush.set(flush)
    try:
        yield
    finally:
        _current_flush.reset(token)
    try:
        settle(flush.nodes)
    finally:
        for report in flush.reports:
            report()


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result.

    The function runs once during construction to establish the first
    dependency set, so a broken function fails at the call site.
    """

    __slots__ = (
        "_fn",
        "_equals",
        "_value",
        "_dirty",
        "_evaluating",
        "_previous",
        "_dependencies",
        "_dependents",
        "_changed",
    )

    def __init__(self, fn: Callable[[], T], *, equals: Callable[[T, T], bool] | None = None) -> None:
        if not callable(fn):
            raise TypeError(f"Computed requires a callable, got {fn!r}")
        self._fn = fn
        self._equals = equals or same
        self._value: T = _UNSET  # type: ignore[assignment]
        self._dirty = True
        self._evaluating = False
        self._previous: object = _UNSET
        self._dependencies: set[Observable] = set()
        self._dependents: set[Dependent] = set()
        self._changed = Signal()
        self._evaluate()

    # --- Reading ---

    def get(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        record_read(self)
        if self._dirty:
            self._evaluate()
        return self._value

    @property
    def value(self) -> T:
        return self.get()

    def _evaluate(self) -> None:
        """Drop every upstream edge, re-run the function, keep what it read."""
        if self._evaluating:
            raise CyclicDependencyError(self)

        for dep in self._dependencies:
            dep.remove_dependent(self)
        self._dependencies = set()

        self._evaluating = True
        with tracking(self) as frame:
            try:
                value = self._fn()
            finally:
                self._evaluating = False
                # Edges registered before a failure are still live.
                self._dependencies = frame.reads

        self._value = value
        self._dirty = False

    # --- Invalidation ---

    def invalidate(self) -> None:
        """Mark dirty and cascade downstream. No-op if already dirty."""
        if self._dirty:
            return
        propagate((self,))

    def _settle(self) -> None:
        """Recompute after a cascade and fire changed if the value moved.

        A failed recompute keeps the baseline, so the next cascade that
        reaches this node settles it again.
        """
        previous = self._previous
        if previous is _UNSET:
            return
        if not self._changed:
            self._previous = _UNSET
            return
        if self._dirty:
            self._evaluate()
        moved = not self._equals(previous, self._value)
        self._previous = _UNSET
        if moved:
            self._changed.emit(self, self._value)

    # --- Observable side ---

    def add_dependent(self, dependent: Dependent) -> None:
        self._dependents.add(dependent)

    def remove_dependent(self, dependent: Dependent) -> None:
        self._dependents.discard(dependent)

    def notify_dependents(self) -> None:
        propagate(self._dependents)

    @property
    def changed(self) -> Signal:
        """Fires (source, new_value) when a cascade changes the value."""
        return self._changed

    # --- Introspection ---

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def dependencies(self) -> frozenset[Observable]:
        return frozenset(self._dependencies)

    @property
    def dependents(self) -> frozenset[Dependent]:
        return frozenset(self._dependents)

    def dispose(self) -> None:
        """Disconnect from all dependencies and subscribers. The computed becomes inert."""
        for dep in self._dependencies:
            dep.remove_dependent(self)
        self._dependencies = set()
        self._dependents.clear()
        self._changed.clear()
        self._dirty = True
        self._previous = _UNSET
        self._value = _UNSET  # type: ignore[assignment]

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", repr(self._fn))
        state = "dirty" if self._dirty else f"cached={self._value!r}"
        return f"Computed({name}, {state})"


def computed(
    fn: Callable[[], T] | None = None,
    *,
    equals: Callable[[T, T], bool] | None = None,
):
    """Decorator/factory to create a Computed from a function.

    Usage:
        counter = State(0)

        @computed
        def doubled():
            return counter.get() * 2

        doubled.get()  # 0
        counter.set(5)
        doubled.get()  # 10

    Pass equals= to change how settled values are compared:

        @computed(equals=lambda a, b: a.id == b.id)
        def selected(): ...
    """
    if fn is None:
        return lambda f: Computed(f, equals=equals)
    return Computed(fn, equals=equals)
