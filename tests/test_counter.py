from __future__ import annotations

import random

import pytest

from pcap_timing.counter import BoundaryPolicy, IntervalCounter, IntervalRecord, count_intervals
from pcap_timing.errors import InvalidConfiguration
from pcap_timing.timestamps import Resolution, Timestamp


def ts(seconds: int, fraction: int = 0) -> Timestamp:
    return Timestamp(seconds, fraction, Resolution.NANO)


def observe_all(counter: IntervalCounter, stamps) -> list:
    records = []
    for stamp in stamps:
        records.extend(counter.observe(stamp))
    return records


def test_seconds_only_emits_zero_count_windows():
    counter = IntervalCounter(10, policy=BoundaryPolicy.SECONDS_ONLY)

    assert counter.observe(ts(0)) == []
    assert counter.next_boundary == ts(10)
    assert counter.observe(ts(5)) == []
    assert counter.count == 1

    records = counter.observe(ts(22))
    assert records == [
        IntervalRecord(window_end=ts(10), count=2),
        IntervalRecord(window_end=ts(20), count=0),
    ]
    assert counter.next_boundary == ts(30)
    assert counter.count == 0


def test_first_timestamp_only_anchors_the_grid():
    counter = IntervalCounter(1.0)
    assert not counter.started
    assert counter.observe(ts(100, 250)) == []
    assert counter.started
    assert counter.count == 0
    assert counter.next_boundary == ts(101, 250)


def test_both_fields_requires_fraction_past_boundary():
    counter = IntervalCounter(10, policy=BoundaryPolicy.BOTH_FIELDS)
    assert observe_all(counter, [ts(0), ts(5), ts(22)]) == []
    assert counter.count == 2

    records = counter.observe(ts(23, 1))
    assert [r.window_end for r in records] == [ts(10), ts(20)]
    assert [r.count for r in records] == [3, 0]


def test_fractional_window_carries_boundary():
    counter = IntervalCounter(1.5, policy=BoundaryPolicy.SECONDS_ONLY)
    counter.observe(ts(0, 600_000_000))
    assert counter.next_boundary == ts(2, 100_000_000)

    records = counter.observe(ts(10))
    assert [r.window_end for r in records] == [
        ts(2, 100_000_000),
        ts(3, 600_000_000),
        ts(5, 100_000_000),
        ts(6, 600_000_000),
        ts(8, 100_000_000),
        ts(9, 600_000_000),
    ]
    assert [r.count for r in records] == [1, 0, 0, 0, 0, 0]
    assert counter.next_boundary == ts(11, 100_000_000)


@pytest.mark.parametrize("policy", list(BoundaryPolicy))
@pytest.mark.parametrize("window", [0.25, 1.0, 2.75])
def test_window_ends_step_by_exactly_one_window(policy, window):
    rng = random.Random(7)
    units = sorted(rng.randrange(0, 60 * 10**9) for _ in range(500))
    stamps = [Timestamp.from_units(u) for u in units]

    counter = IntervalCounter(window, policy=policy)
    records = observe_all(counter, stamps)

    assert records
    step = round(window * 10**9)
    ends = [r.window_end.to_units() for r in records]
    assert all(later - earlier == step for earlier, later in zip(ends, ends[1:]))
    # every packet after the first is either in a closed window or the open one
    assert sum(r.count for r in records) + counter.count == len(stamps) - 1


def test_same_input_gives_same_records():
    stamps = [ts(s, f) for s, f in [(0, 5), (0, 900), (3, 1), (3, 7), (9, 999_999_999), (15, 2)]]
    first = list(count_intervals(stamps, 2.5, BoundaryPolicy.BOTH_FIELDS))
    second = list(count_intervals(stamps, 2.5, BoundaryPolicy.BOTH_FIELDS))
    assert first == second


def test_flush_reports_open_window_without_mutating():
    counter = IntervalCounter(10, policy=BoundaryPolicy.SECONDS_ONLY)
    assert counter.flush() is None

    observe_all(counter, [ts(0), ts(5), ts(22), ts(23)])
    pending = counter.flush()
    assert pending == IntervalRecord(window_end=ts(30), count=1)
    assert counter.flush() == pending
    assert counter.count == 1


@pytest.mark.parametrize("window", [0, -1, float("nan"), float("inf"), 1e-12, "10", True])
def test_invalid_window_length_is_rejected(window):
    with pytest.raises(InvalidConfiguration):
        IntervalCounter(window)


def test_count_intervals_validates_eagerly():
    with pytest.raises(InvalidConfiguration):
        count_intervals([], 0)


def test_resolution_mismatch_is_rejected():
    counter = IntervalCounter(1.0, resolution=Resolution.NANO)
    with pytest.raises(ValueError):
        counter.observe(Timestamp(1, 0, Resolution.MICRO))


def test_resolution_checked_after_the_grid_is_anchored():
    counter = IntervalCounter(10, resolution=Resolution.NANO)
    counter.observe(ts(0))
    with pytest.raises(ValueError):
        counter.observe(Timestamp(5, 999_999, Resolution.MICRO))
    assert counter.count == 0
    assert counter.next_boundary == ts(10)


def test_policy_accepts_string_values():
    assert IntervalCounter(1, policy="seconds-only").policy is BoundaryPolicy.SECONDS_ONLY
