from __future__ import annotations

import pytest

from pcap_timing.errors import InvalidConfiguration
from pcap_timing.iat import (
    INITIAL,
    NEGATIVE,
    OVERFLOW,
    Classification,
    ClassificationKind,
    IATQuantizer,
    quantize_iat,
)
from pcap_timing.timestamps import Resolution, Timestamp


def us(units: int) -> Timestamp:
    return Timestamp.from_units(units, Resolution.MICRO)


def test_reference_sequence():
    quantizer = IATQuantizer(bucket_shift=4, bucket_count=3)
    outcomes = [quantizer.observe(us(u)) for u in (1000, 1005, 1025, 1100)]

    assert outcomes == [INITIAL, Classification.bucketed(0), Classification.bucketed(1), OVERFLOW]
    assert [str(o) for o in outcomes] == ["Initial", "Bucketed(0)", "Bucketed(1)", "Overflow"]
    snapshot = quantizer.snapshot()
    assert snapshot.buckets == (1, 1, 0)
    assert snapshot.overflow_count == 1
    assert snapshot.negative_count == 0
    assert snapshot.total == 3


def test_first_observation_touches_no_counter():
    quantizer = IATQuantizer(bucket_shift=1, bucket_count=4)
    assert not quantizer.seeded
    assert quantizer.observe(us(42)) is INITIAL
    assert quantizer.seeded
    assert quantizer.previous_timestamp == us(42)

    snapshot = quantizer.snapshot()
    assert snapshot.buckets == (0, 0, 0, 0)
    assert snapshot.negative_count == 0
    assert snapshot.overflow_count == 0


def test_index_equal_to_bucket_count_overflows():
    quantizer = IATQuantizer(bucket_shift=4, bucket_count=3)
    quantizer.observe(us(0))
    # 47 >> 4 == 2 is the last slot, 48 >> 4 == 3 is one past it
    assert quantizer.observe(us(47)) == Classification.bucketed(2)
    assert quantizer.observe(us(95)) is OVERFLOW
    assert quantizer.snapshot().buckets == (0, 0, 1)
    assert quantizer.overflow_count == 1


def test_negative_delta_is_counted_and_becomes_new_reference():
    quantizer = IATQuantizer(bucket_shift=2, bucket_count=4)
    quantizer.observe(us(2000))
    assert quantizer.observe(us(1990)) is NEGATIVE
    assert quantizer.negative_count == 1
    assert quantizer.snapshot().buckets == (0, 0, 0, 0)
    # delta measured from the reordered packet, not the earlier one
    assert quantizer.observe(us(1995)) == Classification.bucketed(1)


def test_zero_delta_lands_in_first_bucket():
    quantizer = IATQuantizer(bucket_shift=3, bucket_count=2)
    quantizer.observe(us(10))
    assert quantizer.observe(us(10)) == Classification.bucketed(0)


def test_delta_across_second_boundary():
    quantizer = IATQuantizer(bucket_shift=1, bucket_count=4)
    quantizer.observe(Timestamp(1, 999_999, Resolution.MICRO))
    outcome = quantizer.observe(Timestamp(2, 3, Resolution.MICRO))
    assert outcome.kind is ClassificationKind.BUCKETED
    assert outcome.index == 2


def test_snapshot_is_a_copy():
    quantizer = IATQuantizer(bucket_shift=1, bucket_count=2)
    quantizer.observe(us(0))
    quantizer.observe(us(1))
    before = quantizer.snapshot()
    quantizer.observe(us(2))
    assert before.buckets == (1, 0)
    assert quantizer.snapshot().buckets == (2, 0)
    assert quantizer.snapshot() == quantizer.snapshot()


def test_rerun_is_deterministic():
    stamps = [us(u) for u in (0, 3, 3, 40, 20, 1_000_000, 1_000_017)]
    assert quantize_iat(stamps, 2, 8) == quantize_iat(stamps, 2, 8)


def test_snapshot_edges_and_dict():
    quantizer = IATQuantizer(bucket_shift=4, bucket_count=3)
    snapshot = quantizer.snapshot()
    assert snapshot.bucket_edges() == [0, 16, 32]
    payload = snapshot.as_dict()
    assert payload["buckets"] == [0, 0, 0]
    assert payload["resolution"] == "usec"


@pytest.mark.parametrize(
    "shift,count",
    [(0, 20), (-1, 20), (4, 0), (4, -3), (True, 20), (1.5, 20), (4, "20")],
)
def test_invalid_configuration(shift, count):
    with pytest.raises(InvalidConfiguration):
        IATQuantizer(bucket_shift=shift, bucket_count=count)


def test_resolution_mismatch_is_rejected():
    quantizer = IATQuantizer(bucket_shift=4)
    with pytest.raises(ValueError):
        quantizer.observe(Timestamp(0, 0, Resolution.NANO))
