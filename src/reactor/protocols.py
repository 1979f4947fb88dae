"""Capability contracts for graph nodes.

These are structural: a class satisfies a contract by having the methods,
not by inheriting from it. Computed is Observable, Dependent and Reactive;
State is Observable and Reactive only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from reactor.signal import Signal

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class Dependent(Protocol):
    """Something that can be told its inputs changed."""

    def invalidate(self) -> None: ...


@runtime_checkable
class Observable(Protocol):
    """Something other nodes can depend on."""

    def add_dependent(self, dependent: Dependent) -> None: ...

    def remove_dependent(self, dependent: Dependent) -> None: ...

    def notify_dependents(self) -> None: ...


@runtime_checkable
class Reactive(Observable, Protocol[T_co]):
    """An observable that carries a value and a change signal."""

    @property
    def changed(self) -> Signal: ...

    def get(self) -> T_co: ...
