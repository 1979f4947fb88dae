"""Tests for the change-signal multicast primitive."""

import pytest

from reactor import Signal


class TestSignal:
    def test_emit_reaches_listeners(self):
        sig = Signal()
        log = []
        sig.connect(lambda src, v: log.append(("a", src, v)))
        sig.connect(lambda src, v: log.append(("b", src, v)))
        sig.emit("node", 1)
        assert log == [("a", "node", 1), ("b", "node", 1)]

    def test_disconnect(self):
        sig = Signal()
        log = []
        disconnect = sig.connect(lambda src, v: log.append(v))
        disconnect()
        disconnect()  # idempotent
        sig.emit(None, 1)
        assert log == []
        assert len(sig) == 0

    def test_listener_can_disconnect_itself_mid_emit(self):
        sig = Signal()
        log = []

        def once(src, v):
            log.append(("once", v))
            disconnect()

        disconnect = sig.connect(once)
        sig.connect(lambda src, v: log.append(("always", v)))

        sig.emit(None, 1)
        sig.emit(None, 2)
        assert log == [("once", 1), ("always", 1), ("always", 2)]

    def test_listener_added_mid_emit_waits_for_next_emit(self):
        sig = Signal()
        log = []

        def adder(src, v):
            sig.connect(lambda s, x: log.append(("late", x)))

        sig.connect(adder)
        sig.emit(None, 1)
        assert log == []

    def test_truthiness(self):
        sig = Signal()
        assert not sig
        sig.connect(lambda src, v: None)
        assert sig
        sig.clear()
        assert not sig

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            Signal().connect(None)

    def test_repr(self):
        assert "listeners=0" in repr(Signal())
