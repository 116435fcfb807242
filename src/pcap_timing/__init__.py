"""Packet timing analysis: windowed packet counts and quantized inter-arrival times."""

from importlib.metadata import PackageNotFoundError, version

from .counter import BoundaryPolicy, IntervalCounter, IntervalRecord
from .errors import InvalidConfiguration, PcapTimingError, TraceReadError
from .iat import Classification, ClassificationKind, HistogramSnapshot, IATQuantizer
from .timestamps import Resolution, Timestamp

try:
    __version__ = version("pcap-timing")
except PackageNotFoundError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.0.0"

__all__ = [
    "BoundaryPolicy",
    "Classification",
    "ClassificationKind",
    "HistogramSnapshot",
    "IATQuantizer",
    "IntervalCounter",
    "IntervalRecord",
    "InvalidConfiguration",
    "PcapTimingError",
    "Resolution",
    "Timestamp",
    "TraceReadError",
    "__version__",
]
