from __future__ import annotations

import logging
from typing import Any, ClassVar, Dict, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class ProbeOutputLike(Protocol):
    def to_fields(self) -> Dict[str, Any]: ...

    def to_tags(self) -> Dict[str, Optional[str]]: ...


class BaseProbe:
    """Brief: Base class for active probes.

    Contract:
      - Configuration is validated before the probe is constructed.
      - run() performs exactly one measurement and returns an output object
        exposing to_fields()/to_tags(); measurement failures are reported
        inside that object, never raised.
      - gather() hands the output to every sink as one measurement.

    Subclasses set `measurement` and implement run().
    """

    measurement: ClassVar[str] = "netprobe"

    def run(self) -> ProbeOutputLike:  # pragma: no cover - interface only
        raise NotImplementedError("BaseProbe.run must be implemented")

    def gather(self, sinks: Sequence[Any]) -> ProbeOutputLike:
        """Brief: Run once and emit the output to each sink.

        Inputs:
          - sinks: Objects exposing add_fields(measurement, fields, tags).

        Outputs:
          - The probe output that was emitted.
        """

        output = self.run()
        fields = output.to_fields()
        tags = output.to_tags()
        for sink in sinks:
            try:
                sink.add_fields(self.measurement, fields, tags)
            except Exception:
                logger.exception(
                    "sink %s failed to record %s", type(sink).__name__, self.measurement
                )
        return output
