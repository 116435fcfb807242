"""Exception hierarchy."""

from __future__ import annotations


class PcapTimingError(Exception):
    """Base class for errors raised by the package."""


class InvalidConfiguration(PcapTimingError, ValueError):
    """A window length, bucket shift, bucket count or input path is unusable."""


class TraceReadError(PcapTimingError):
    """The capture file could not be opened or read."""


__all__ = ["InvalidConfiguration", "PcapTimingError", "TraceReadError"]
