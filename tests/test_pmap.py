from __future__ import annotations

import threading
import time

import pytest

from spend_analysis.pmap import p_map


def test_results_keep_input_order_despite_completion_order():
    def slow_first(x: int) -> int:
        time.sleep(0.02 if x == 0 else 0)
        return x * 10

    assert p_map(range(6), slow_first, concurrency=3) == [0, 10, 20, 30, 40, 50]


def test_concurrency_one_runs_inline():
    caller = threading.get_ident()
    seen = p_map([1, 2], lambda _x: threading.get_ident(), concurrency=1)
    assert seen == [caller, caller]


def test_in_flight_is_bounded():
    lock = threading.Lock()
    active = 0
    peak = 0

    def work(_x: int) -> None:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.01)
        with lock:
            active -= 1

    p_map(range(10), work, concurrency=2)
    assert peak <= 2


def test_first_error_propagates():
    def boom(x: int) -> int:
        if x == 3:
            raise RuntimeError("bad item")
        return x

    with pytest.raises(RuntimeError, match="bad item"):
        p_map(range(8), boom, concurrency=4)


@pytest.mark.parametrize("bad", [0, -1, True, 1.5])
def test_rejects_invalid_concurrency(bad):
    with pytest.raises(ValueError):
        p_map([1], lambda x: x, concurrency=bad)


def test_empty_input():
    assert p_map([], lambda x: x, concurrency=4) == []
