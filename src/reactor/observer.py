"""Observers — callbacks bound to a reactive node's change signal.

An Observer calls back immediately with the node's current value, so the
subscriber never misses the current state, then again on every distinct
value the node reports. Subscribing is also what makes a Computed eager:
while it has listeners it recomputes during the cascade instead of waiting
for a read.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

from reactor.protocols import Reactive

T = TypeVar("T")


class Observer(Generic[T]):
    """Disposable subscription of a callback to one reactive node."""

    __slots__ = ("_callback", "_disconnect")

    def __init__(self, callback: Callable[[T], None]) -> None:
        self._callback: Callable[[T], None] | None = callback
        self._disconnect: Callable[[], None] | None = None

    @classmethod
    def create(cls, node: Reactive[T], callback: Callable[[T], None]) -> Observer[T]:
        """Call back with node's current value now, then on every change.

        Usage:
            x = State(1)
            doubled = Computed(lambda: x.get() * 2)
            seen = []

            o = Observer.create(doubled, seen.append)
            # seen == [2]

            x.set(5)
            # seen == [2, 10]

            o.dispose()
            x.set(7)
            # seen == [2, 10]
        """
        if node is None:
            raise TypeError("Observer requires a reactive node, got None")
        if not callable(callback):
            raise TypeError(f"Observer requires a callable callback, got {callback!r}")

        callback(node.get())
        observer = cls(callback)
        observer._disconnect = node.changed.connect(observer._on_changed)
        return observer

    def _on_changed(self, source: Any, value: T) -> None:
        # Disposed observers can still sit in an in-flight emit snapshot.
        callback = self._callback
        if callback is not None:
            callback(value)

    @property
    def disposed(self) -> bool:
        return self._callback is None

    def dispose(self) -> None:
        """Stop observing. Safe to call more than once, including from the callback."""
        disconnect, self._disconnect = self._disconnect, None
        self._callback = None
        if disconnect is not None:
            disconnect()

    def __repr__(self) -> str:
        state = "disposed" if self._callback is None else "active"
        return f"Observer({state})"


def observe(node: Reactive[T], callback: Callable[[T], None]) -> Observer[T]:
    """Shorthand for Observer.create(node, callback)."""
    return Observer.create(node, callback)
