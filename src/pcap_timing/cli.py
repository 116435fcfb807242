"""Typer CLI for packet timing analysis."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator, Optional

import typer

from .config import Config, load_config
from .counter import BoundaryPolicy
from .errors import InvalidConfiguration, TraceReadError
from .logging import configure_logging, get_logger
from .pipeline import run_count, run_quantize
from .sinks import (
    IntervalTableWriter,
    format_bucket_lines,
    histogram_summary,
    plot_histogram,
    save_json,
    write_histogram_dat,
    write_interval_csv,
)
from .source import iter_pcap_timestamps
from .timestamps import Resolution, Timestamp

app = typer.Typer(add_completion=False, help="Packet-rate counting and inter-arrival time histograms for pcap files.")

EXIT_INTERRUPTED = 130


def _load(config_path: Optional[Path], verbose: bool) -> Config:
    try:
        config = load_config(config_path)
    except InvalidConfiguration as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    configure_logging("DEBUG" if verbose else config.logging.level)
    return config


def _open_source(pcap: Path, resolution: Resolution, max_packets: int) -> Iterator[Timestamp]:
    try:
        return iter_pcap_timestamps(pcap, resolution=resolution, max_packets=max_packets)
    except InvalidConfiguration as exc:
        raise typer.BadParameter(str(exc), param_hint="PCAP") from exc
    except FileNotFoundError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def count(
    pcap: Path = typer.Argument(..., help="Capture file (.pcap or .pcapng)"),
    time_interval: Optional[float] = typer.Option(None, "--time-interval", "-t", help="Window length in seconds"),
    policy: Optional[BoundaryPolicy] = typer.Option(None, "--policy", help="Window boundary rule"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Optional CSV output path for window counts"),
    flush: bool = typer.Option(False, "--flush", help="Emit the trailing partial window"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Count packets per fixed time window."""

    config = _load(config_path, verbose)
    logger = get_logger("cli")
    window_seconds = time_interval if time_interval is not None else config.count.window_seconds
    if window_seconds is None:
        raise typer.BadParameter("No time interval provided", param_hint="--time-interval")
    boundary_policy = policy or config.count.boundary_policy
    flush_final = flush or config.count.flush_final
    csv_path = out or config.count.output_csv
    logger.debug(
        "arguments",
        input=str(pcap),
        window_seconds=window_seconds,
        policy=boundary_policy.value,
        flush=flush_final,
        out=str(csv_path) if csv_path else None,
    )

    timestamps = _open_source(pcap, Resolution.NANO, config.count.max_packets)
    table = IntervalTableWriter(stream=sys.stdout, resolution=Resolution.NANO)
    records = []

    def on_record(record) -> None:
        table.write(record)
        if csv_path is not None:
            records.append(record)

    try:
        stats = run_count(
            timestamps,
            window_seconds,
            on_record,
            policy=boundary_policy,
            flush_final=flush_final,
            resolution=Resolution.NANO,
        )
    except InvalidConfiguration as exc:
        raise typer.BadParameter(str(exc), param_hint="--time-interval") from exc
    except TraceReadError as exc:
        logger.error("trace_read_failed", error=str(exc))
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        logger.warning("interrupted", windows=table.rows)
        raise typer.Exit(code=EXIT_INTERRUPTED)

    if csv_path is not None:
        write_interval_csv(csv_path, records)
        logger.info("csv_written", path=str(csv_path), rows=len(records))
    typer.echo(f"Elapsed time: {stats.elapsed_seconds:.9f} sec")


@app.command()
def quantize(
    pcap: Path = typer.Argument(..., help="Capture file (.pcap or .pcapng)"),
    quantize_time: Optional[int] = typer.Option(
        None, "--quantize-time", "-q", help="Bucket width is 2**q microseconds"
    ),
    count_size: Optional[int] = typer.Option(None, "--count-size", "-s", help="Number of histogram buckets"),
    histogram_path: Optional[Path] = typer.Option(
        None, "--histogram-path", "-p", help="Write <path>.dat and <path>.png, without extension"
    ),
    log_scale: bool = typer.Option(False, "--log-scale", "-l", help="Log-scaled y axis"),
    json_out: Optional[Path] = typer.Option(None, "--json", help="Optional JSON summary path"),
    show_progress: bool = typer.Option(True, "--progress/--no-progress", help="Display a progress bar"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Histogram inter-arrival times into power-of-two buckets."""

    config = _load(config_path, verbose)
    logger = get_logger("cli")
    settings = config.quantize
    bucket_shift = quantize_time if quantize_time is not None else settings.bucket_shift
    if bucket_shift is None:
        raise typer.BadParameter("No quantize time provided", param_hint="--quantize-time")
    bucket_count = count_size if count_size is not None else settings.bucket_count
    stem = histogram_path or settings.histogram_path
    log_scaled = log_scale or settings.log_scale
    summary_path = json_out or settings.summary_json
    logger.debug(
        "arguments",
        input=str(pcap),
        bucket_shift=bucket_shift,
        bucket_count=bucket_count,
        histogram_path=str(stem) if stem else None,
    )

    timestamps = _open_source(pcap, Resolution.MICRO, settings.max_packets)
    try:
        stats = run_quantize(
            timestamps,
            bucket_shift,
            bucket_count,
            progress_interval=settings.progress_interval,
            progress_policy=settings.progress_policy,
            show_progress=show_progress,
            resolution=Resolution.MICRO,
        )
    except InvalidConfiguration as exc:
        raise typer.BadParameter(str(exc), param_hint="--quantize-time/--count-size") from exc
    except TraceReadError as exc:
        logger.error("trace_read_failed", error=str(exc))
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        logger.warning("interrupted")
        raise typer.Exit(code=EXIT_INTERRUPTED)

    snapshot = stats.snapshot
    typer.echo(f"Elapsed time: {stats.elapsed_seconds:.9f} sec")
    for line in format_bucket_lines(snapshot):
        typer.echo(line)
    typer.echo(f"Negative IAT: {snapshot.negative_count}")
    typer.echo(f"Exceed max IAT: {snapshot.overflow_count}")

    if stem is not None:
        dat_path = write_histogram_dat(stem, snapshot)
        typer.echo(f"Histogram data written to {dat_path}")
        png_path = plot_histogram(stem, snapshot, log_scale=log_scaled)
        typer.echo(f"Histogram file written to {png_path}")
    if summary_path is not None:
        save_json(summary_path, histogram_summary(snapshot, source=str(pcap)))
        logger.info("summary_written", path=str(summary_path))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
