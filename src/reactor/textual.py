"""Textual integration for Reactor. Opt-in — requires textual.

Observers created here are safe to point at widgets: they are skipped while
the app is not running or while a widget subtree is being replaced, and a
NoMatches raised by a widget query inside the callback is tolerated.

Reactor is single-threaded. Writes from worker threads must be marshaled by
the caller (app.call_from_thread) before they touch any State.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from textual.css.query import NoMatches

from reactor.observer import Observer
from reactor.protocols import Reactive

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app) -> Iterator[None]:
    """Suspend guarded observers during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def observe(app, node: Reactive[T], callback: Callable[[T], None]) -> Observer[T]:
    """Observer.create() that safely bridges to Textual widgets.

    The immediate first call is guarded like every later one.
    """
    if not callable(callback):
        raise TypeError(f"observe requires a callable callback, got {callback!r}")

    def _guarded(value: T) -> None:
        if not is_safe(app):
            logger.debug("Skipping update for %r: app not in a safe state", node)
            return
        try:
            callback(value)
        except NoMatches:
            logger.debug("Skipping update for %r: widget not mounted", node)

    return Observer.create(node, _guarded)
