"""Timestamp representation and the carry arithmetic shared by both pipelines."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from functools import total_ordering
from typing import Tuple


class Resolution(IntEnum):
    """Sub-second resolution of a timestamp; the value is the fraction modulus."""

    MICRO = 1_000_000
    NANO = 1_000_000_000

    @property
    def modulus(self) -> int:
        return int(self)

    @property
    def unit(self) -> str:
        return "usec" if self is Resolution.MICRO else "nsec"


def split_interval(seconds: float, resolution: Resolution) -> Tuple[int, int]:
    """Split a positive length in seconds into ``(whole, fraction)``.

    The fraction is expressed in ``resolution`` units and rounded to the
    nearest unit, so ``0.3`` at nanosecond resolution is exactly 300000000.
    """

    whole = math.floor(seconds)
    fraction = round((seconds - whole) * resolution.modulus)
    if fraction >= resolution.modulus:
        whole += 1
        fraction -= resolution.modulus
    return int(whole), int(fraction)


@total_ordering
@dataclass(frozen=True)
class Timestamp:
    """A capture timestamp split into whole seconds and a sub-second fraction."""

    seconds: int
    fraction: int
    resolution: Resolution = Resolution.NANO

    def __post_init__(self) -> None:
        if not 0 <= self.fraction < self.resolution.modulus:
            raise ValueError(
                f"fraction {self.fraction} outside [0, {self.resolution.modulus}) "
                f"for {self.resolution.unit} resolution"
            )

    @classmethod
    def normalized(cls, seconds: int, fraction: int, resolution: Resolution = Resolution.NANO) -> "Timestamp":
        """Build a timestamp, carrying any out-of-range fraction into seconds."""

        carry, fraction = divmod(fraction, resolution.modulus)
        return cls(seconds=seconds + carry, fraction=fraction, resolution=resolution)

    @classmethod
    def from_units(cls, units: int, resolution: Resolution = Resolution.NANO) -> "Timestamp":
        """Build a timestamp from a total count of resolution units since the epoch."""

        return cls.normalized(0, units, resolution)

    def to_units(self) -> int:
        return self.seconds * self.resolution.modulus + self.fraction

    def advance(self, whole: int, fraction: int) -> "Timestamp":
        """Return this timestamp moved forward by ``whole`` seconds and ``fraction`` units."""

        return Timestamp.normalized(self.seconds + whole, self.fraction + fraction, self.resolution)

    def delta(self, earlier: "Timestamp") -> int:
        """Signed difference ``self - earlier`` in resolution units."""

        self._check_resolution(earlier)
        return (self.seconds - earlier.seconds) * self.resolution.modulus + (self.fraction - earlier.fraction)

    def _check_resolution(self, other: "Timestamp") -> None:
        if other.resolution is not self.resolution:
            raise ValueError(
                f"cannot combine {self.resolution.unit} and {other.resolution.unit} timestamps"
            )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Timestamp):
            return NotImplemented
        self._check_resolution(other)
        return (self.seconds, self.fraction) < (other.seconds, other.fraction)

    def __str__(self) -> str:
        width = len(str(self.resolution.modulus)) - 1
        return f"{self.seconds}.{self.fraction:0{width}d}"


__all__ = ["Resolution", "Timestamp", "split_interval"]
