from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional

from .errors import InvalidConfiguration
from .timestamps import Resolution, Timestamp, split_interval


class BoundaryPolicy(str, Enum):
    """Rule deciding when a packet timestamp has passed the current window end.

    ``BOTH_FIELDS`` requires both the seconds and the sub-second field to be
    past the boundary; ``SECONDS_ONLY`` compares whole seconds alone.
    """

    BOTH_FIELDS = "both-fields"
    SECONDS_ONLY = "seconds-only"

    def crossed(self, timestamp: Timestamp, boundary: Timestamp) -> bool:
        if self is BoundaryPolicy.SECONDS_ONLY:
            return timestamp.seconds > boundary.seconds
        return timestamp.seconds > boundary.seconds and timestamp.fraction > boundary.fraction


@dataclass(frozen=True)
class IntervalRecord:
    window_end: Timestamp
    count: int


class IntervalCounter:
    """Count packets per fixed wall-clock window.

    The first observed timestamp only anchors the window grid; it is not
    counted. Every later packet is counted first and the boundary check runs
    afterwards, so a packet that crosses one or more boundaries is folded into
    the window being closed. Empty windows still produce a record with a
    zero count.
    """

    def __init__(
        self,
        window_seconds: float,
        policy: BoundaryPolicy = BoundaryPolicy.BOTH_FIELDS,
        resolution: Resolution = Resolution.NANO,
    ) -> None:
        if (
            isinstance(window_seconds, bool)
            or not isinstance(window_seconds, (int, float))
            or not math.isfinite(window_seconds)
            or window_seconds <= 0
        ):
            raise InvalidConfiguration(f"window length must be a positive number of seconds, got {window_seconds!r}")
        step = split_interval(float(window_seconds), resolution)
        if step == (0, 0):
            raise InvalidConfiguration(
                f"window length {window_seconds!r} is shorter than one {resolution.unit}"
            )
        self.window_seconds = float(window_seconds)
        self.policy = BoundaryPolicy(policy)
        self.resolution = resolution
        self._step = step
        self._next_boundary: Optional[Timestamp] = None
        self._count = 0

    @property
    def started(self) -> bool:
        return self._next_boundary is not None

    @property
    def next_boundary(self) -> Optional[Timestamp]:
        return self._next_boundary

    @property
    def count(self) -> int:
        return self._count

    def observe(self, timestamp: Timestamp) -> List[IntervalRecord]:
        if timestamp.resolution is not self.resolution:
            raise ValueError(
                f"counter expects {self.resolution.unit} timestamps, got {timestamp.resolution.unit}"
            )
        if self._next_boundary is None:
            self._next_boundary = timestamp.advance(*self._step)
            return []

        self._count += 1
        closed: List[IntervalRecord] = []
        while self.policy.crossed(timestamp, self._next_boundary):
            closed.append(IntervalRecord(window_end=self._next_boundary, count=self._count))
            self._count = 0
            self._next_boundary = self._next_boundary.advance(*self._step)
        return closed

    def flush(self) -> Optional[IntervalRecord]:
        """Return the still-open window as a record without changing any state."""

        if self._next_boundary is None:
            return None
        return IntervalRecord(window_end=self._next_boundary, count=self._count)


def count_intervals(
    timestamps: Iterable[Timestamp],
    window_seconds: float,
    policy: BoundaryPolicy = BoundaryPolicy.BOTH_FIELDS,
    resolution: Resolution = Resolution.NANO,
) -> Iterator[IntervalRecord]:
    counter = IntervalCounter(window_seconds, policy=policy, resolution=resolution)

    def _records() -> Iterator[IntervalRecord]:
        for timestamp in timestamps:
            yield from counter.observe(timestamp)

    return _records()


__all__ = ["BoundaryPolicy", "IntervalCounter", "IntervalRecord", "count_intervals"]
