from __future__ import annotations

import io
import json

import pandas as pd

from pcap_timing.counter import IntervalRecord
from pcap_timing.iat import HistogramSnapshot
from pcap_timing.sinks import (
    IntervalTableWriter,
    format_bucket_lines,
    histogram_summary,
    plot_histogram,
    save_json,
    write_histogram_dat,
    write_interval_csv,
)
from pcap_timing.timestamps import Timestamp


def make_records():
    return [
        IntervalRecord(window_end=Timestamp(10, 500), count=3),
        IntervalRecord(window_end=Timestamp(20, 500), count=0),
    ]


def make_snapshot() -> HistogramSnapshot:
    return HistogramSnapshot(buckets=(4, 0, 2), negative_count=1, overflow_count=5, bucket_shift=4, bucket_count=3)


def test_table_writer_prints_header_once():
    stream = io.StringIO()
    writer = IntervalTableWriter(stream=stream)
    writer.write_all(make_records())
    lines = stream.getvalue().splitlines()
    assert lines == ["", "Time(Sec)\tTime(nSec)\tPackets", "10 \t500 \t3", "20 \t500 \t0"]
    assert writer.rows == 2


def test_interval_csv(tmp_path):
    path = write_interval_csv(tmp_path / "out" / "counts.csv", make_records())
    frame = pd.read_csv(path)
    assert list(frame.columns) == ["window_end_sec", "window_end_frac", "count"]
    assert frame["count"].tolist() == [3, 0]


def test_histogram_dat_appends_suffix(tmp_path):
    path = write_histogram_dat(tmp_path / "run.1", make_snapshot())
    assert path.name == "run.1.dat"
    assert path.read_text(encoding="utf-8") == "4\n0\n2\n"


def test_plot_histogram_writes_png(tmp_path):
    for log_scale in (False, True):
        path = plot_histogram(tmp_path / f"hist_{log_scale}", make_snapshot(), log_scale=log_scale)
        assert path.suffix == ".png"
        assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_bucket_lines_and_summary(tmp_path):
    snapshot = make_snapshot()
    assert format_bucket_lines(snapshot) == [
        "Quantized IAT[00]: 4",
        "Quantized IAT[01]: 0",
        "Quantized IAT[02]: 2",
    ]
    target = tmp_path / "summary.json"
    save_json(target, histogram_summary(snapshot, source="trace.pcap"))
    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["bucket_edges"] == [0, 16, 32]
    assert payload["total"] == 12
    assert payload["source"] == "trace.pcap"
