"""Configuration loader utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..counter import BoundaryPolicy
from ..errors import InvalidConfiguration
from .types import Config, CountConfig, LoggingConfig, QuantizeConfig, resolve_paths


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _to_path(value) -> Optional[Path]:
    if value is None:
        return None
    return value if isinstance(value, Path) else Path(value)


def _policy(value, default: BoundaryPolicy) -> BoundaryPolicy:
    if value is None:
        return default
    try:
        return BoundaryPolicy(value)
    except ValueError as exc:
        choices = ", ".join(policy.value for policy in BoundaryPolicy)
        raise InvalidConfiguration(f"Unknown boundary policy {value!r}, expected one of: {choices}") from exc


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise InvalidConfiguration(f"Config section '{name}' must be a mapping")
    return dict(section)


def load_config(path: Optional[Path] = None) -> Config:
    """Load a configuration file and return a validated :class:`Config`.

    Passing ``None`` returns the defaults. Sections missing from the file
    keep their default values.
    """

    if path is None:
        return Config().validate()

    path = Path(path)
    raw = _load_yaml(path)

    c = _section(raw, "count")
    count = CountConfig(
        window_seconds=c.get("window_seconds"),
        boundary_policy=_policy(c.get("boundary_policy"), BoundaryPolicy.BOTH_FIELDS),
        flush_final=bool(c.get("flush_final", False)),
        max_packets=c.get("max_packets", 0),
        output_csv=_to_path(c.get("output_csv")),
    )

    q = _section(raw, "quantize")
    quantize = QuantizeConfig(
        bucket_shift=q.get("bucket_shift"),
        bucket_count=q.get("bucket_count", 20),
        progress_interval=q.get("progress_interval", 10.0),
        progress_policy=_policy(q.get("progress_policy"), BoundaryPolicy.SECONDS_ONLY),
        histogram_path=_to_path(q.get("histogram_path")),
        log_scale=bool(q.get("log_scale", False)),
        summary_json=_to_path(q.get("summary_json")),
        max_packets=q.get("max_packets", 0),
    )

    lg = _section(raw, "logging")
    logging_config = LoggingConfig(level=str(lg.get("level", "INFO")))

    config = Config(count=count, quantize=quantize, logging=logging_config, path=path)
    return resolve_paths(config, path.parent).validate()


__all__ = ["load_config"]
