"""Abstract base class for metrics sinks.

A sink receives one flat measurement per probe invocation:
add_fields(measurement, fields, tags). Sinks are append-only and return
nothing the probes consume.
"""

from __future__ import annotations

import time
from typing import Any, ClassVar, Dict, Optional, Tuple


class BaseSink:
    """Brief: Base class for metrics sinks.

    Inputs (constructor):
      - **config: Backend-specific options from SinkConfig.config.

    Outputs:
      - Sink instance accepting add_fields() calls.

    Notes:
      - `aliases` lists the short names the registry accepts for a subclass.
      - Write failures are logged by the concrete sink and flip health_check()
        to False; they never propagate to the probe.
    """

    aliases: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, **config: Any) -> None:
        self._healthy = True

    def add_fields(
        self,
        measurement: str,
        fields: Dict[str, Any],
        tags: Dict[str, Optional[str]],
        ts: Optional[float] = None,
    ) -> None:
        """Brief: Record one measurement.

        Inputs:
          - measurement: Measurement name (e.g. "netprobe_dns").
          - fields: Flat mapping of scalar field values.
          - tags: Mapping of tag keys to optional string values.
          - ts: Optional Unix timestamp; defaults to now.

        Outputs:
          - None.
        """

        self._write(measurement, fields, tags, time.time() if ts is None else ts)

    def _write(
        self,
        measurement: str,
        fields: Dict[str, Any],
        tags: Dict[str, Optional[str]],
        ts: float,
    ) -> None:  # pragma: no cover - interface only
        raise NotImplementedError("BaseSink._write must be implemented")

    def health_check(self) -> bool:
        return bool(self._healthy)

    def close(self) -> None:
        self._healthy = False
