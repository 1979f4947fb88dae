"""Exceptions raised by Reactor itself.

Errors from compute functions, comparers and callbacks are never wrapped;
they reach the caller of the triggering get() or set() unchanged.
"""


class ReactorError(Exception):
    """Base class for errors raised by the reactive core."""


class CyclicDependencyError(ReactorError, RecursionError):
    """A Computed was read while it was still evaluating itself."""

    def __init__(self, node: object) -> None:
        super().__init__(f"cyclic dependency detected while evaluating {node!r}")
        self.node = node
