# tests/test_ticker_unit.py
import math

import pytest

from alive.watch.ticker import Ticker


class Clock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def test_first_tick_after_one_period():
    clock = Clock()
    t = Ticker(1.0, clock)
    assert not t.ready(100.5)
    assert t.ready(101.0)
    assert not t.ready(101.2)
    assert t.ready(102.0)


def test_missed_ticks_collapse_into_one():
    """A busy owner sees one pending tick, then the grid resumes after it."""
    clock = Clock()
    t = Ticker(1.0, clock)
    assert t.ready(103.4)
    assert not t.ready(103.9)
    assert t.next == pytest.approx(104.0)


def test_remaining():
    t = Ticker(0.5, Clock(0.0))
    assert t.remaining(0.2) == pytest.approx(0.3)


def test_infinite_period_never_ticks():
    t = Ticker(math.inf, Clock())
    assert not t.ready(1e12)
    assert math.isinf(t.remaining(0.0))


@pytest.mark.parametrize("period", [0, -1.0])
def test_non_positive_period(period):
    with pytest.raises(ValueError):
        Ticker(period, Clock())
