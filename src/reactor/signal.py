"""Synchronous multicast change signal.

Every reactive node owns one Signal. emit() fans out to a snapshot of the
listener list, so a listener may disconnect itself (or others) mid-emit
without disturbing the current fan-out. Listeners disconnected during an
emit may still appear in that emit's snapshot; callers that must never be
invoked after disconnecting guard on their own state (see Observer).
"""

from __future__ import annotations

from typing import Any, Callable

Listener = Callable[[Any, Any], None]
Disposer = Callable[[], None]


class Signal:
    """Listener list with snapshot-before-iterate fan-out."""

    __slots__ = ("_listeners",)

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def connect(self, listener: Listener) -> Disposer:
        """Register listener(source, value). Returns a function that removes it."""
        if not callable(listener):
            raise TypeError(f"listener must be callable, got {listener!r}")
        self._listeners.append(listener)

        def _disconnect() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass  # already removed

        return _disconnect

    def emit(self, source: Any, value: Any) -> None:
        """Call every listener connected at the time of the call."""
        for listener in list(self._listeners):
            listener(source, value)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)

    def __bool__(self) -> bool:
        return bool(self._listeners)

    def __repr__(self) -> str:
        return f"Signal(listeners={len(self._listeners)})"
