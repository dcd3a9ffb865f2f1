"""Configuration loading, validation and logging setup."""

from .config_parser import load_config_dict, parse_config_file
from .config_schema import (
    AppConfig,
    ConfigError,
    DnsProbeConfig,
    SinkConfig,
    build_probe_config,
)
from .logging_config import init_logging

__all__ = [
    "AppConfig",
    "ConfigError",
    "DnsProbeConfig",
    "SinkConfig",
    "build_probe_config",
    "init_logging",
    "load_config_dict",
    "parse_config_file",
]
