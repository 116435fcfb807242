"""Output sinks for interval records and IAT histograms."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TextIO

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from .counter import IntervalRecord  # noqa: E402
from .iat import HistogramSnapshot  # noqa: E402
from .timestamps import Resolution  # noqa: E402

INTERVAL_COLUMNS = ["window_end_sec", "window_end_frac", "count"]


def ensure_dir(path: Path) -> None:
    """Ensure that a directory exists."""

    path.mkdir(parents=True, exist_ok=True)


def save_json(path: Path, payload: Dict[str, Any]) -> None:
    """Write a JSON payload with UTF-8 encoding."""

    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, sort_keys=True)


class IntervalTableWriter:
    """Tab-separated packet-rate table, one row per closed window."""

    def __init__(self, stream: Optional[TextIO] = None, resolution: Resolution = Resolution.NANO) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.resolution = resolution
        self.rows = 0
        self._header_written = False

    def header(self) -> str:
        unit = "nSec" if self.resolution is Resolution.NANO else "uSec"
        return f"Time(Sec)\tTime({unit})\tPackets"

    def write(self, record: IntervalRecord) -> None:
        if not self._header_written:
            self.stream.write("\n" + self.header() + "\n")
            self._header_written = True
        self.stream.write(f"{record.window_end.seconds} \t{record.window_end.fraction} \t{record.count}\n")
        self.rows += 1

    def write_all(self, records: Iterable[IntervalRecord]) -> None:
        for record in records:
            self.write(record)


def records_to_frame(records: Iterable[IntervalRecord]) -> pd.DataFrame:
    rows = [
        {
            "window_end_sec": record.window_end.seconds,
            "window_end_frac": record.window_end.fraction,
            "count": record.count,
        }
        for record in records
    ]
    return pd.DataFrame(rows, columns=INTERVAL_COLUMNS)


def write_interval_csv(path: Path, records: Iterable[IntervalRecord]) -> Path:
    ensure_dir(path.parent)
    records_to_frame(records).to_csv(path, index=False)
    return path


def format_bucket_lines(snapshot: HistogramSnapshot) -> List[str]:
    return [f"Quantized IAT[{index:02d}]: {count}" for index, count in enumerate(snapshot.buckets)]


def _with_suffix(stem: Path, suffix: str) -> Path:
    # stems may contain dots ("run.1"), so append rather than replace
    return stem.parent / f"{stem.name}{suffix}"


def write_histogram_dat(stem: Path, snapshot: HistogramSnapshot) -> Path:
    """Write one bucket count per line to ``<stem>.dat``."""

    target = _with_suffix(stem, ".dat")
    ensure_dir(target.parent)
    target.write_text("".join(f"{count}\n" for count in snapshot.buckets), encoding="utf-8")
    return target


def plot_histogram(stem: Path, snapshot: HistogramSnapshot, log_scale: bool = False) -> Path:
    """Render the bucket counts as a 1920x1080 bar chart at ``<stem>.png``."""

    target = _with_suffix(stem, ".png")
    ensure_dir(target.parent)
    indices = list(range(snapshot.bucket_count))

    fig, ax = plt.subplots(figsize=(19.2, 10.8), dpi=100)
    try:
        ax.bar(indices, snapshot.buckets, width=0.9, edgecolor="black", label="count")
        ax.set_title("Histogram of Quantized IAT")
        ax.set_xlabel("Quantized IAT")
        ax.set_ylabel("Count (log-scaled)" if log_scale else "Count")
        ax.set_xlim(-1, snapshot.bucket_count + 1)
        if log_scale:
            ax.set_yscale("log", nonpositive="clip")
        ax.legend(loc="upper right")
        fig.savefig(target)
    finally:
        plt.close(fig)
    return target


def histogram_summary(snapshot: HistogramSnapshot, source: Optional[str] = None) -> Dict[str, Any]:
    payload = snapshot.as_dict()
    payload["bucket_edges"] = snapshot.bucket_edges()
    if source is not None:
        payload["source"] = source
    return payload


__all__ = [
    "IntervalTableWriter",
    "ensure_dir",
    "format_bucket_lines",
    "histogram_summary",
    "plot_histogram",
    "records_to_frame",
    "save_json",
    "write_histogram_dat",
    "write_interval_csv",
]
