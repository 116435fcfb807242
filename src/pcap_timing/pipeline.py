"""Drive a timestamp source through one of the two analyses."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .counter import BoundaryPolicy, IntervalCounter, IntervalRecord
from .iat import ClassificationKind, HistogramSnapshot, IATQuantizer
from .logging import get_logger
from .progress import CaptureProgress
from .timestamps import Resolution, Timestamp


@dataclass
class CountStats:
    packets: int
    windows: int
    elapsed_seconds: float
    final: Optional[IntervalRecord] = None


@dataclass
class QuantizeStats:
    snapshot: HistogramSnapshot
    packets: int
    elapsed_seconds: float
    progress_ticks: int = 0


def run_count(
    timestamps: Iterable[Timestamp],
    window_seconds: float,
    on_record: Callable[[IntervalRecord], None],
    policy: BoundaryPolicy = BoundaryPolicy.BOTH_FIELDS,
    flush_final: bool = False,
    resolution: Resolution = Resolution.NANO,
) -> CountStats:
    """Feed every timestamp to an :class:`IntervalCounter` and hand records to ``on_record``.

    The open window at the end of the stream is dropped unless
    ``flush_final`` is set, in which case it is emitted once as a last record.
    """

    logger = get_logger("count")
    counter = IntervalCounter(window_seconds, policy=policy, resolution=resolution)
    logger.info("count_start", window_seconds=counter.window_seconds, policy=counter.policy.value)

    packets = 0
    windows = 0
    started = time.perf_counter()
    for packets, timestamp in enumerate(timestamps, start=1):
        for record in counter.observe(timestamp):
            windows += 1
            logger.debug("window_closed", window_end=str(record.window_end), count=record.count)
            on_record(record)

    final = None
    if flush_final:
        final = counter.flush()
        if final is not None:
            windows += 1
            on_record(final)

    elapsed = time.perf_counter() - started
    logger.info("count_done", packets=packets, windows=windows, elapsed=round(elapsed, 6))
    return CountStats(packets=packets, windows=windows, elapsed_seconds=elapsed, final=final)


def run_quantize(
    timestamps: Iterable[Timestamp],
    bucket_shift: int,
    bucket_count: int = 20,
    progress_interval: float = 10.0,
    progress_policy: BoundaryPolicy = BoundaryPolicy.SECONDS_ONLY,
    show_progress: bool = True,
    resolution: Resolution = Resolution.MICRO,
) -> QuantizeStats:
    logger = get_logger("quantize")
    quantizer = IATQuantizer(bucket_shift, bucket_count, resolution=resolution)
    logger.info("quantize_start", bucket_shift=quantizer.bucket_shift, bucket_count=quantizer.bucket_count)

    packets = 0
    started = time.perf_counter()
    with CaptureProgress(
        progress_interval,
        policy=progress_policy,
        resolution=resolution,
        enabled=show_progress,
    ) as progress:
        for packets, timestamp in enumerate(timestamps, start=1):
            outcome = quantizer.observe(timestamp)
            if outcome.kind is ClassificationKind.NEGATIVE:
                logger.debug("negative_iat", timestamp=str(timestamp))
            progress.update(timestamp, quantizer.negative_count, quantizer.overflow_count)

    elapsed = time.perf_counter() - started
    snapshot = quantizer.snapshot()
    logger.info(
        "quantize_done",
        packets=packets,
        negative=snapshot.negative_count,
        overflow=snapshot.overflow_count,
        elapsed=round(elapsed, 6),
    )
    return QuantizeStats(snapshot=snapshot, packets=packets, elapsed_seconds=elapsed, progress_ticks=progress.ticks)


__all__ = ["CountStats", "QuantizeStats", "run_count", "run_quantize"]
