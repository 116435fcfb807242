"""Timestamp source backed by scapy's raw pcap/pcapng readers."""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Iterator, Tuple

from scapy.error import Scapy_Exception
from scapy.utils import RawPcapReader

from .errors import InvalidConfiguration, TraceReadError
from .logging import get_logger
from .timestamps import Resolution, Timestamp


def validate_capture_path(path: Path | str) -> Path:
    """Check that ``path`` exists and names a pcap or pcapng capture."""

    capture = Path(path)
    if ".pcap" not in capture.name:
        raise InvalidConfiguration(f"Invalid input file, expected '.pcap' in the filename: {capture}")
    if not capture.exists():
        raise FileNotFoundError(f"Capture file not found: {capture}")
    return capture


def _raw_time(metadata, nano: bool) -> Tuple[int, int, int]:
    """Return ``(seconds, sub-second ticks, ticks per second)`` for a record."""

    # PCAPNG
    if hasattr(metadata, "tshigh") and hasattr(metadata, "tslow"):
        ticks = (int(metadata.tshigh) << 32) | int(metadata.tslow)
        per_second = int(getattr(metadata, "tsresol", 1_000_000) or 1_000_000)
        seconds, sub = divmod(ticks, per_second)
        return seconds, sub, per_second

    # legacy PCAP, usec holds nanoseconds for the nanosecond magic
    if hasattr(metadata, "sec"):
        per_second = 1_000_000_000 if nano else 1_000_000
        return int(metadata.sec), int(getattr(metadata, "usec", 0)), per_second

    if isinstance(metadata, (tuple, list)) and len(metadata) >= 2:
        return int(metadata[0]), int(metadata[1]), 1_000_000

    raise AttributeError("Unsupported pcap metadata timestamp format")


def timestamp_from_metadata(metadata, resolution: Resolution, nano: bool = False) -> Timestamp:
    seconds, sub, per_second = _raw_time(metadata, nano)
    fraction = sub * resolution.modulus // per_second
    return Timestamp.normalized(seconds, fraction, resolution)


def iter_pcap_timestamps(
    path: Path | str,
    resolution: Resolution = Resolution.NANO,
    max_packets: int = 0,
) -> Iterator[Timestamp]:
    """Yield one timestamp per captured record, in file order.

    The path is validated immediately; the file itself is opened on the first
    ``next()`` call and closed when the iterator is exhausted or closed.
    """

    capture = validate_capture_path(path)
    return _read_timestamps(capture, resolution, max_packets)


def _read_timestamps(capture: Path, resolution: Resolution, max_packets: int) -> Iterator[Timestamp]:
    logger = get_logger("source")
    try:
        reader = RawPcapReader(str(capture))
    except (Scapy_Exception, OSError) as exc:
        raise TraceReadError(f"Unable to open trace file {capture}: {exc}") from exc

    nano = bool(getattr(reader, "nano", False))
    logger.info("trace_opened", file=str(capture), resolution=resolution.unit, nano=nano)
    packets = 0
    try:
        records = itertools.islice(reader, max_packets or None)
        for packets, (_, metadata) in enumerate(records, start=1):
            yield timestamp_from_metadata(metadata, resolution, nano=nano)
    except (Scapy_Exception, EOFError) as exc:
        raise TraceReadError(f"Error while reading packets from {capture}: {exc}") from exc
    finally:
        reader.close()
    logger.debug("trace_exhausted", file=str(capture), packets=packets)


__all__ = [
    "iter_pcap_timestamps",
    "timestamp_from_metadata",
    "validate_capture_path",
]
