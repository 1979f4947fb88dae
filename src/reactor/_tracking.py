"""Dependency tracking context — the heart of Reactor.

Uses contextvars to track which derivation is currently evaluating and which
observables it has read so far. Every read of a reactive value calls
record_read(), which registers the edge on both sides in one step: the
observable learns its new dependent, the frame accumulates the observable.

Frames nest: a Computed reading another Computed pushes a second frame whose
reads are independent of the outer one. The outer frame resumes accumulating
once the inner frame is popped.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator, TypeVar

if TYPE_CHECKING:
    from reactor.protocols import Dependent, Observable

T = TypeVar("T")


class Frame:
    """One evaluation in progress: who is reading, and what it has read."""

    __slots__ = ("dependent", "reads", "parent")

    def __init__(self, dependent: Dependent, parent: Frame | None = None) -> None:
        self.dependent = dependent
        self.reads: set[Observable] = set()
        self.parent = parent

    def __repr__(self) -> str:
        return f"Frame({self.dependent!r}, reads={len(self.reads)})"


# The innermost evaluating frame. Parent links form the stack.
_current_frame: contextvars.ContextVar[Frame | None] = contextvars.ContextVar(
    "reactor_current_frame", default=None
)


@contextmanager
def tracking(dependent: Dependent) -> Iterator[Frame]:
    """Push a fresh frame for dependent; pop it on every exit path."""
    frame = Frame(dependent, _current_frame.get())
    token = _current_frame.set(frame)
    try:
        yield frame
    finally:
        _current_frame.reset(token)


def run_tracked(dependent: Dependent, fn: Callable[[], T]) -> tuple[T, set[Observable]]:
    """Run fn with dependent as the active derivation.

    Returns fn's result and the set of observables it read.
    """
    with tracking(dependent) as frame:
        result = fn()
    return result, frame.reads


def record_read(observable: Observable) -> None:
    """Register observable as a dependency of the active derivation, if any."""
    frame = _current_frame.get()
    if frame is None:
        return
    frame.reads.add(observable)
    observable.add_dependent(frame.dependent)


def current_dependent() -> Dependent | None:
    """The derivation currently evaluating, or None outside any evaluation."""
    frame = _current_frame.get()
    return frame.dependent if frame is not None else None


def same(old: object, new: object) -> bool:
    """Default equality policy: identity first, then ==."""
    return old is new or old == new
