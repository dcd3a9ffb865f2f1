from __future__ import annotations

"""Alias resolution for metrics sinks.

Inputs:
  - Sink identifiers from configuration: a short alias ("stdout", "json",
    "influxdb", ...) or a dotted import path to a BaseSink subclass.

Outputs:
  - get_sink_class(): concrete BaseSink subclass.
  - load_sink(): constructed sink instance for a SinkConfig.
"""

import difflib
import importlib
from typing import Dict, Iterable, Type

from ..config.config_schema import ConfigError, SinkConfig
from .base import BaseSink
from .influxdb import InfluxLogging
from .json_logging import JsonLogging, StdoutLogging

BUILTIN_SINKS = (StdoutLogging, JsonLogging, InfluxLogging)


def _normalize(alias: str) -> str:
    return alias.strip().lower().replace("-", "_")


def build_registry(classes: Iterable[Type[BaseSink]] = BUILTIN_SINKS) -> Dict[str, Type[BaseSink]]:
    """Brief: Map every declared alias to its sink class.

    Raises:
      - ValueError when two classes claim the same alias.
    """

    registry: Dict[str, Type[BaseSink]] = {}
    for cls in classes:
        for alias in cls.aliases:
            key = _normalize(alias)
            other = registry.get(key)
            if other is not None and other is not cls:
                raise ValueError(
                    "Duplicate sink alias '%s' claimed by %s and %s"
                    % (alias, cls.__name__, other.__name__)
                )
            registry[key] = cls
    return registry


def get_sink_class(identifier: str) -> Type[BaseSink]:
    """Brief: Resolve identifier to a BaseSink subclass.

    Inputs:
      - identifier: Alias or dotted import path ("pkg.mod.Class").

    Outputs:
      - BaseSink subclass.

    Raises:
      - ConfigError when the identifier cannot be resolved.
    """

    ident = str(identifier or "").strip()
    if "." in ident:
        modname, _, classname = ident.rpartition(".")
        try:
            cls = getattr(importlib.import_module(modname), classname)
        except (ImportError, AttributeError) as exc:
            raise ConfigError(f"cannot import sink '{identifier}': {exc}") from exc
        if not (isinstance(cls, type) and issubclass(cls, BaseSink)):
            raise ConfigError(f"{identifier} is not a BaseSink subclass")
        return cls

    registry = build_registry()
    key = _normalize(ident)
    try:
        return registry[key]
    except KeyError:
        suggestions = difflib.get_close_matches(key, list(registry), n=3)
        raise ConfigError(
            "Unknown sink '%s'. Known sinks: %s. Suggestions: %s"
            % (identifier, ", ".join(sorted(registry)), suggestions)
        ) from None


def load_sink(sink_cfg: SinkConfig) -> BaseSink:
    """Construct the sink described by sink_cfg, mapping bad options to ConfigError."""
    cls = get_sink_class(sink_cfg.backend)
    try:
        return cls(**sink_cfg.config)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid config for sink '{sink_cfg.backend}': {exc}") from exc
