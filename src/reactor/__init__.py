"""Reactor: dependency-tracking reactive values for Python."""

from importlib.metadata import version as _version

__version__ = _version("reactor")

from reactor._tracking import current_dependent
from reactor.errors import ReactorError, CyclicDependencyError
from reactor.protocols import Observable, Dependent, Reactive
from reactor.signal import Signal
from reactor.computed import Computed, computed
from reactor.state import State
from reactor.transaction import Transaction, action, transaction
from reactor.observer import Observer, observe
# textual NOT auto-imported — opt-in only

__all__ = [
    "State",
    "Computed",
    "computed",
    "Observer",
    "observe",
    "Transaction",
    "action",
    "transaction",
    "Signal",
    "Observable",
    "Dependent",
    "Reactive",
    "ReactorError",
    "CyclicDependencyError",
    "current_dependent",
]
