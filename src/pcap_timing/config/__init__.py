"""Configuration helpers."""

from .loader import load_config
from .types import Config, CountConfig, LoggingConfig, QuantizeConfig

__all__ = ["Config", "CountConfig", "LoggingConfig", "QuantizeConfig", "load_config"]
