"""Tests for State."""

import pytest

from reactor import Computed, Dependent, Observable, Reactive, State


class _Recorder:
    def __init__(self, on_invalidate=None):
        self.invalidations = 0
        self._on_invalidate = on_invalidate

    def invalidate(self):
        self.invalidations += 1
        if self._on_invalidate is not None:
            self._on_invalidate(self)


class TestState:
    def test_get_set(self):
        s = State(42)
        assert s.get() == 42
        s.set(100)
        assert s.get() == 100

    def test_value_property(self):
        s = State("a")
        s.value = "b"
        assert s.value == "b"

    def test_capabilities(self):
        s = State(0)
        assert isinstance(s, Observable)
        assert isinstance(s, Reactive)
        assert not isinstance(s, Dependent)

    def test_repr(self):
        assert "State(5)" in repr(State(5))


class TestChangeSignal:
    def test_fires_with_source_and_value(self):
        s = State(1)
        log = []
        s.changed.connect(lambda src, v: log.append((src, v)))
        s.set(2)
        assert log == [(s, 2)]

    def test_dedup(self):
        """Setting an equal value triggers nothing."""
        s = State([1, 2])
        dep = _Recorder()
        s.add_dependent(dep)
        log = []
        s.changed.connect(lambda src, v: log.append(v))

        s.set([1, 2])

        assert log == []
        assert dep.invalidations == 0

    def test_dedup_leaves_computed_clean(self):
        s = State(3)
        c = Computed(lambda: s.get() + 1)
        s.set(3)
        assert not c.dirty

    def test_custom_equality(self):
        s = State("Hello", equals=lambda a, b: a.lower() == b.lower())
        log = []
        s.changed.connect(lambda src, v: log.append(v))
        s.set("HELLO")
        assert log == []
        assert s.get() == "Hello"
        s.set("bye")
        assert log == ["bye"]

    def test_dependents_invalidated_before_signal(self):
        s = State(1)
        c = Computed(lambda: s.get() * 10)
        seen = []
        s.changed.connect(lambda src, v: seen.append(c.get()))
        s.set(2)
        assert seen == [20]


class TestDependents:
    def test_add_remove_idempotent(self):
        s = State(0)
        dep = _Recorder()
        s.add_dependent(dep)
        s.add_dependent(dep)
        assert s.dependents == {dep}
        s.remove_dependent(dep)
        s.remove_dependent(dep)
        assert s.dependents == frozenset()

    def test_notify_invalidates_each_dependent_once(self):
        s = State(0)
        a, b = _Recorder(), _Recorder()
        s.add_dependent(a)
        s.add_dependent(b)
        s.set(1)
        assert (a.invalidations, b.invalidations) == (1, 1)

    def test_dependent_may_remove_itself_during_notify(self):
        s = State(0)
        leaver = _Recorder(on_invalidate=s.remove_dependent)
        stayer = _Recorder()
        s.add_dependent(leaver)
        s.add_dependent(stayer)

        s.set(1)
        s.set(2)

        assert leaver.invalidations == 1
        assert stayer.invalidations == 2


class TestFailingDependent:
    def test_signal_fires_when_dependent_raises(self):
        x = State(2)
        c = Computed(lambda: 10 // x.get())
        c.changed.connect(lambda src, v: None)
        log = []
        x.changed.connect(lambda src, v: log.append(v))

        with pytest.raises(ZeroDivisionError):
            x.set(0)
        assert log == [0]

        x.set(1)
        assert log == [0, 1]
