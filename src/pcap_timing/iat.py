"""Inter-arrival time quantization into power-of-two buckets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from .errors import InvalidConfiguration
from .timestamps import Resolution, Timestamp


class ClassificationKind(str, Enum):
    INITIAL = "initial"
    NEGATIVE = "negative"
    BUCKETED = "bucketed"
    OVERFLOW = "overflow"


@dataclass(frozen=True)
class Classification:
    """Outcome of one observation; ``index`` is set only for bucketed deltas."""

    kind: ClassificationKind
    index: Optional[int] = None

    @classmethod
    def bucketed(cls, index: int) -> "Classification":
        return cls(ClassificationKind.BUCKETED, index)

    def __str__(self) -> str:
        if self.kind is ClassificationKind.BUCKETED:
            return f"Bucketed({self.index})"
        return self.kind.value.capitalize()


INITIAL = Classification(ClassificationKind.INITIAL)
NEGATIVE = Classification(ClassificationKind.NEGATIVE)
OVERFLOW = Classification(ClassificationKind.OVERFLOW)


@dataclass(frozen=True)
class HistogramSnapshot:
    """Read-only copy of the quantizer counters."""

    buckets: Tuple[int, ...]
    negative_count: int
    overflow_count: int
    bucket_shift: int
    bucket_count: int
    resolution: Resolution = Resolution.MICRO

    @property
    def total(self) -> int:
        return sum(self.buckets) + self.negative_count + self.overflow_count

    def bucket_edges(self) -> List[int]:
        """Lower bound of each bucket in resolution units."""

        return [index << self.bucket_shift for index in range(self.bucket_count)]

    def as_dict(self) -> Dict[str, object]:
        return {
            "bucket_shift": self.bucket_shift,
            "bucket_count": self.bucket_count,
            "resolution": self.resolution.unit,
            "buckets": list(self.buckets),
            "negative_count": self.negative_count,
            "overflow_count": self.overflow_count,
            "total": self.total,
        }


def _validate_positive_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 1:
        raise InvalidConfiguration(f"{name} must be an integer >= 1, got {value!r}")
    return int(value)


class IATQuantizer:
    """Accumulate inter-arrival deltas into ``bucket_count`` slots of width ``2**bucket_shift``.

    The quantizer is unseeded until the first timestamp arrives; that first
    observation only records the timestamp and never touches a counter.
    Deltas below zero (reordered captures) are tallied separately, and deltas
    whose bucket index is ``>= bucket_count`` land in the overflow counter.
    """

    def __init__(self, bucket_shift: int, bucket_count: int = 20, resolution: Resolution = Resolution.MICRO) -> None:
        self.bucket_shift = _validate_positive_int("bucket_shift", bucket_shift)
        self.bucket_count = _validate_positive_int("bucket_count", bucket_count)
        self.resolution = resolution
        self._buckets = np.zeros(self.bucket_count, dtype=np.uint64)
        self._negative_count = 0
        self._overflow_count = 0
        self._previous: Optional[Timestamp] = None

    @property
    def seeded(self) -> bool:
        return self._previous is not None

    @property
    def previous_timestamp(self) -> Optional[Timestamp]:
        return self._previous

    @property
    def negative_count(self) -> int:
        return self._negative_count

    @property
    def overflow_count(self) -> int:
        return self._overflow_count

    def observe(self, timestamp: Timestamp) -> Classification:
        previous = self._previous
        if previous is None:
            if timestamp.resolution is not self.resolution:
                raise ValueError(
                    f"quantizer expects {self.resolution.unit} timestamps, got {timestamp.resolution.unit}"
                )
            self._previous = timestamp
            return INITIAL

        delta = timestamp.delta(previous)
        self._previous = timestamp

        if delta < 0:
            self._negative_count += 1
            return NEGATIVE

        index = delta >> self.bucket_shift
        if index >= self.bucket_count:
            self._overflow_count += 1
            return OVERFLOW

        self._buckets[index] += np.uint64(1)
        return Classification.bucketed(index)

    def snapshot(self) -> HistogramSnapshot:
        return HistogramSnapshot(
            buckets=tuple(int(value) for value in self._buckets.tolist()),
            negative_count=self._negative_count,
            overflow_count=self._overflow_count,
            bucket_shift=self.bucket_shift,
            bucket_count=self.bucket_count,
            resolution=self.resolution,
        )


def quantize_iat(
    timestamps: Iterable[Timestamp],
    bucket_shift: int,
    bucket_count: int = 20,
    resolution: Resolution = Resolution.MICRO,
) -> HistogramSnapshot:
    quantizer = IATQuantizer(bucket_shift, bucket_count, resolution=resolution)
    for timestamp in timestamps:
        quantizer.observe(timestamp)
    return quantizer.snapshot()


__all__ = [
    "Classification",
    "ClassificationKind",
    "HistogramSnapshot",
    "IATQuantizer",
    "INITIAL",
    "NEGATIVE",
    "OVERFLOW",
    "quantize_iat",
]
