"""Metrics sinks receiving one flat measurement per probe invocation."""

from .base import BaseSink
from .influxdb import InfluxLogging, format_line_protocol
from .json_logging import JsonLogging, StdoutLogging
from .registry import get_sink_class, load_sink

__all__ = [
    "BaseSink",
    "InfluxLogging",
    "JsonLogging",
    "StdoutLogging",
    "format_line_protocol",
    "get_sink_class",
    "load_sink",
]
