"""Result types produced by probes and consumed by sinks."""

from __future__ import annotations

import enum
import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


class ProbeResult(str, enum.Enum):
    """Overall outcome of one probe invocation.

    Precedence, lowest to highest: UNKNOWN < TIMEOUT/CONNECTION_FAILED <
    PARTIAL_FAILURE < SUCCESS. SUCCESS is reachable only when no exchange
    failed, PARTIAL_FAILURE only when successes and failures were mixed.
    """

    UNKNOWN = "unknown"
    TIMEOUT = "timeout"
    CONNECTION_FAILED = "connection_failed"
    PARTIAL_FAILURE = "partial_failure"
    SUCCESS = "success"


def format_duration(seconds: float) -> str:
    """Brief: Render a round-trip time as a millisecond duration string.

    Example:
      >>> format_duration(0.0123456)
      '12.346ms'
    """

    return f"{seconds * 1000.0:.3f}ms"


@dataclass(frozen=True)
class AnswerRecord:
    """One answer resource record flattened for the metrics sink."""

    rcode: str
    rtype: str
    ttl: int
    response_time: str
    dnssec_verified: bool
    rdata: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProbeOutput:
    """Brief: Everything one DNS probe invocation reports.

    Attributes:
      - domain: Probed domain (emitted as the only tag).
      - result: ProbeResult classification.
      - resolver_ip / resolver_port / resolver_protocol / resolver_name:
        resolver identity; resolver_name is the reverse-DNS name or "".
      - response_time_ms: Sum of whole-millisecond RTTs of successful
        record-type exchanges.
      - records: Answer records in sweep order.
      - zsk_verified / ksk_verified: DNSSEC outcome flags, False unless a
        cryptographic match was actually evaluated.
    """

    domain: str
    result: ProbeResult = ProbeResult.UNKNOWN
    resolver_ip: str = ""
    resolver_port: str = ""
    resolver_protocol: str = ""
    resolver_name: str = ""
    response_time_ms: int = 0
    records: List[AnswerRecord] = field(default_factory=list)
    zsk_verified: bool = False
    ksk_verified: bool = False

    @property
    def response_time(self) -> str:
        return str(int(self.response_time_ms))

    def to_fields(self) -> Dict[str, Any]:
        """Flat field map handed to metrics sinks."""
        return {
            "result": self.result.value,
            "resolver_ip": self.resolver_ip,
            "resolver_port": self.resolver_port,
            "resolver_protocol": self.resolver_protocol,
            "resolver_name": self.resolver_name,
            "response_time": self.response_time,
            "records": json.dumps(
                [r.to_dict() for r in self.records], separators=(",", ":")
            ),
            "record_count": len(self.records),
            "zsk_verified": self.zsk_verified,
            "ksk_verified": self.ksk_verified,
        }

    def to_tags(self) -> Dict[str, Optional[str]]:
        return {"domain": self.domain}
