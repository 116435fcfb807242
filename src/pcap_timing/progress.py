from __future__ import annotations

from typing import Optional

from tqdm import tqdm

from .counter import BoundaryPolicy, IntervalCounter
from .timestamps import Resolution, Timestamp


class CaptureProgress:
    """tqdm bar whose postfix is refreshed once per ``interval_seconds`` of capture time."""

    def __init__(
        self,
        interval_seconds: float = 10.0,
        policy: BoundaryPolicy = BoundaryPolicy.SECONDS_ONLY,
        resolution: Resolution = Resolution.MICRO,
        enabled: bool = True,
        desc: str = "Processing",
    ) -> None:
        self.tracker = IntervalCounter(interval_seconds, policy=policy, resolution=resolution)
        self.bar = tqdm(
            desc=desc,
            unit="pkt",
            disable=not enabled,
            dynamic_ncols=True,
            smoothing=0.1,
            mininterval=0.1,
        )
        self.first: Optional[Timestamp] = None
        self.ticks = 0

    def update(self, timestamp: Timestamp, negative: int, overflow: int) -> int:
        """Advance by one packet; return how many progress intervals elapsed."""

        self.bar.update(1)
        if self.first is None:
            self.first = timestamp
        elapsed = len(self.tracker.observe(timestamp))
        if elapsed:
            self.ticks += elapsed
            self.bar.set_postfix(
                seconds=timestamp.seconds - self.first.seconds,
                negative=negative,
                overflow=overflow,
                refresh=False,
            )
        return elapsed

    def close(self) -> None:
        self.bar.close()

    def __enter__(self) -> "CaptureProgress":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
