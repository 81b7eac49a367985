"""
Tests for the fixed-capacity sample window.
"""

import pytest

from algorithms.window import SampleWindow
from models.sample import Sample


class TestSampleWindow:
    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            SampleWindow(0)

    def test_evicts_oldest_when_full(self):
        window = SampleWindow(3)
        for i in range(5):
            window.push(i)

        assert len(window) == 3
        assert window.capacity == 3
        assert window.snapshot() == (2, 3, 4)
        assert window.latest() == 4

    def test_snapshot_does_not_mutate(self):
        window = SampleWindow(4)
        window.push("a")
        window.push("b")

        first = window.snapshot()
        second = window.snapshot()

        assert first == second == ("a", "b")
        assert len(window) == 2

    def test_last_n(self):
        window = SampleWindow(10)
        for i in range(6):
            window.push(i)

        assert window.last(3) == (3, 4, 5)
        assert window.last(20) == (0, 1, 2, 3, 4, 5)
        assert window.last(0) == ()

    def test_accepts_non_advancing_timestamps(self):
        window = SampleWindow(5)
        window.push(Sample.from_xy(0, 0, 100.0))
        window.push(Sample.from_xy(1, 1, 100.0))
        window.push(Sample.from_xy(2, 2, 50.0))

        assert [s.timestamp for s in window] == [100.0, 100.0, 50.0]

    def test_clear(self):
        window = SampleWindow(2)
        window.push(1)
        assert window

        window.clear()

        assert not window
        assert len(window) == 0
