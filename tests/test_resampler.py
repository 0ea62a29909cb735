import math

import numpy as np
import pytest

from pairstream.core import TickResampler, filter_ticks
from pairstream.data import Tick


def make_ticks(symbol, stamps, prices, qty=1.0):
    return [Tick(symbol, float(p), qty, int(t)) for t, p in zip(stamps, prices)]


def last_price_at(ticks, t):
    ordered = sorted(ticks, key=lambda x: x.timestamp)
    price = ordered[0].price
    for tick in ordered:
        if tick.timestamp <= t:
            price = tick.price
    return price


def test_grid_length_and_forward_fill():
    rng = np.random.default_rng(1)
    stamps_a = np.sort(rng.integers(0, 20_000, 60))
    stamps_b = np.sort(rng.integers(500, 23_500, 45))
    ticks_a = make_ticks("a", stamps_a, 100 + rng.normal(0, 1, 60))
    ticks_b = make_ticks("b", stamps_b, 50 + rng.normal(0, 1, 45))

    step = 1_000
    aligned = TickResampler(step).align(ticks_a, ticks_b)

    start = min(stamps_a[0], stamps_b[0])
    end = max(stamps_a[-1], stamps_b[-1])
    assert len(aligned) == math.floor((end - start) / step) + 1
    assert aligned[0].timestamp == start

    for i, pt in enumerate(aligned):
        assert pt.timestamp == start + i * step
        assert pt.price_a == last_price_at(ticks_a, pt.timestamp)
        assert pt.price_b == last_price_at(ticks_b, pt.timestamp)


def test_unsorted_input_matches_sorted():
    ticks_a = make_ticks("a", [0, 1_500, 3_000, 4_200], [10, 11, 12, 13])
    ticks_b = make_ticks("b", [200, 2_600, 3_900], [5, 6, 7])
    resampler = TickResampler(1_000)

    expected = resampler.align(ticks_a, ticks_b)
    shuffled = resampler.align(ticks_a[::-1], [ticks_b[1], ticks_b[2], ticks_b[0]])
    assert shuffled == expected


def test_first_point_is_seeded_before_any_tick():
    # B's first tick arrives after the first grid time, so its first price is carried back
    ticks_a = make_ticks("a", [0, 2_000], [10, 12])
    ticks_b = make_ticks("b", [1_500], [5])
    aligned = TickResampler(1_000).align(ticks_a, ticks_b)

    assert [(p.timestamp, p.price_a, p.price_b) for p in aligned] == [
        (0, 10.0, 5.0),
        (1_000, 10.0, 5.0),
        (2_000, 12.0, 5.0),
    ]


def test_empty_side_yields_no_points():
    ticks = make_ticks("a", [0, 1_000], [1, 2])
    assert TickResampler(1_000).align(ticks, []) == []
    assert TickResampler(1_000).align([], ticks) == []


@pytest.mark.parametrize("step", [0, -5, 1.5, None])
def test_invalid_step_rejected(step):
    with pytest.raises(ValueError):
        TickResampler(step)


def test_filter_drops_illiquid_and_non_finite():
    ticks = [
        Tick("a", 10.0, 0.5, 0),
        Tick("a", 11.0, 2.0, 1),
        Tick("a", float("nan"), 3.0, 2),
        Tick("a", 12.0, float("inf"), 3),
        Tick("a", 13.0, 1.0, 4),
    ]
    assert [t.timestamp for t in filter_ticks(ticks)] == [0, 1, 4]
    assert [t.timestamp for t in filter_ticks(ticks, min_liquidity=1.0)] == [1, 4]
