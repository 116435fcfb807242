# src/pcap_timing/config/types.py

"""Configuration dataclasses and helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..counter import BoundaryPolicy
from ..errors import InvalidConfiguration


@dataclass
class CountConfig:
    """Packet-rate counting configuration."""

    window_seconds: Optional[float] = None
    boundary_policy: BoundaryPolicy = BoundaryPolicy.BOTH_FIELDS
    flush_final: bool = False
    max_packets: int = 0
    output_csv: Optional[Path] = None

    def validate(self) -> None:
        if self.window_seconds is not None:
            _require_positive_seconds("count.window_seconds", self.window_seconds)
        _require_non_negative("count.max_packets", self.max_packets)


@dataclass
class QuantizeConfig:
    """Inter-arrival time histogram configuration."""

    bucket_shift: Optional[int] = None
    bucket_count: int = 20
    progress_interval: float = 10.0
    progress_policy: BoundaryPolicy = BoundaryPolicy.SECONDS_ONLY
    histogram_path: Optional[Path] = None
    log_scale: bool = False
    summary_json: Optional[Path] = None
    max_packets: int = 0

    def validate(self) -> None:
        if self.bucket_shift is not None:
            _require_positive_int("quantize.bucket_shift", self.bucket_shift)
        _require_positive_int("quantize.bucket_count", self.bucket_count)
        _require_positive_seconds("quantize.progress_interval", self.progress_interval)
        _require_non_negative("quantize.max_packets", self.max_packets)


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Config:
    """Top-level configuration."""

    count: CountConfig = field(default_factory=CountConfig)
    quantize: QuantizeConfig = field(default_factory=QuantizeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    path: Optional[Path] = None

    def validate(self) -> "Config":
        self.count.validate()
        self.quantize.validate()
        return self


def _require_positive_seconds(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise InvalidConfiguration(f"{name} must be a positive number of seconds, got {value!r}")


def _require_positive_int(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidConfiguration(f"{name} must be an integer >= 1, got {value!r}")


def _require_non_negative(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidConfiguration(f"{name} must be a non-negative integer, got {value!r}")


def expand_path(base: Path, path: Path) -> Path:
    """Resolve a path relative to a base directory."""

    if path.is_absolute():
        return path
    return (base / path).resolve()


def resolve_paths(config: Config, root: Optional[Path] = None) -> Config:
    """Resolve all output paths relative to a root directory."""

    base = root or Path.cwd()
    if config.count.output_csv is not None:
        config.count.output_csv = expand_path(base, config.count.output_csv)
    if config.quantize.histogram_path is not None:
        config.quantize.histogram_path = expand_path(base, config.quantize.histogram_path)
    if config.quantize.summary_json is not None:
        config.quantize.summary_json = expand_path(base, config.quantize.summary_json)
    return config
