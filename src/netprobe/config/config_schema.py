"""Typed configuration models for netprobe.

Brief:
  Pydantic models describing a netprobe YAML document. Probe configuration is
  validated exactly once, before any query is issued; a failure here is fatal
  for the probe and is reported as ConfigError.

Inputs:
  - Plain dicts produced by yaml.safe_load (after variable expansion).

Outputs:
  - AppConfig / DnsProbeConfig / SinkConfig instances.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from typing import Any, Dict, List, Optional

import dns.exception
import dns.name
from pydantic import BaseModel, Field, ValidationError, validator

logger = logging.getLogger(__name__)

RESOLVER_PROTOCOLS = ("udp", "tcp", "tcp-tls")
DEFAULT_TIMEOUT_SECONDS = 2.0

_DURATION_RE = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*(ms|s|m)?\s*$")
# Letters, digits and inner hyphens (STD3 host label).
_LDH_LABEL_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


class ConfigError(ValueError):
    """Brief: Raised when configuration is missing or invalid."""


def parse_duration(value: object) -> float:
    """Brief: Convert a duration config value to seconds.

    Inputs:
      - value: int/float seconds, or a string such as "2s", "1500ms", "0.5".

    Outputs:
      - float: Duration in seconds.

    Example:
      >>> parse_duration("1500ms")
      1.5
    """

    if isinstance(value, bool):
        raise ValueError("duration must be a number or a string like '2s'")
    if isinstance(value, (int, float)):
        return float(value)
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"invalid duration {value!r}")
    amount = float(match.group(1))
    unit = match.group(2) or "s"
    if unit == "ms":
        return amount / 1000.0
    if unit == "m":
        return amount * 60.0
    return amount


class DnsProbeConfig(BaseModel):
    """Brief: Validated, immutable configuration of one DNS probe.

    Inputs:
      - domain: Target host name; must encode to an ASCII-compatible (IDNA)
        name of letter-digit-hyphen labels, at most 255 octets.
      - resolver_ip: IPv4 or IPv6 literal of the resolver to query.
      - resolver_port: Resolver port, 1-65535.
      - resolver_protocol: "udp", "tcp" or "tcp-tls"; anything else falls
        back to "udp".
      - timeout: Per-exchange deadline in seconds (default 2.0). Accepts
        numbers or strings like "2s"/"500ms"; zero or negative means default.
      - tls_verify: Verify the resolver certificate for tcp-tls.
      - tls_ca_file: Optional CA bundle for tcp-tls verification.

    Outputs:
      - DnsProbeConfig instance.
    """

    domain: str
    resolver_ip: str
    resolver_port: int = Field(..., ge=1, le=65535)
    resolver_protocol: str = Field(default="udp")
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS)
    tls_verify: bool = Field(default=True)
    tls_ca_file: Optional[str] = Field(default=None)

    class Config:
        extra = "forbid"
        frozen = True

    @validator("domain", pre=True)
    def validate_domain(cls, v: object) -> str:
        text = str(v or "").strip()
        if not text:
            raise ValueError("domain is missing or invalid")
        try:
            ascii_name = text.encode("idna").decode("ascii")
            dns.name.from_text(ascii_name)
        except (UnicodeError, dns.exception.DNSException) as exc:
            raise ValueError("domain is missing or invalid") from exc
        if ascii_name.endswith("."):
            ascii_name = ascii_name[:-1]
        if not all(_LDH_LABEL_RE.match(label) for label in ascii_name.split(".")):
            raise ValueError("domain is missing or invalid")
        return text

    @validator("resolver_ip", pre=True)
    def validate_resolver_ip(cls, v: object) -> str:
        try:
            return str(ipaddress.ip_address(str(v or "").strip()))
        except ValueError as exc:
            raise ValueError("resolver_ip is missing or invalid") from exc

    @validator("resolver_protocol", pre=True, always=True)
    def normalize_protocol(cls, v: object) -> str:
        text = str(v or "").strip().lower()
        if text not in RESOLVER_PROTOCOLS:
            if text:
                logger.debug("unknown resolver_protocol %r, using udp", v)
            return "udp"
        return text

    @validator("timeout", pre=True, always=True)
    def normalize_timeout(cls, v: object) -> float:
        if v is None:
            return DEFAULT_TIMEOUT_SECONDS
        seconds = parse_duration(v)
        if seconds <= 0:
            return DEFAULT_TIMEOUT_SECONDS
        return seconds

    @property
    def ascii_domain(self) -> str:
        """IDNA (punycode) form of the domain used on the wire."""
        return self.domain.encode("idna").decode("ascii")

    @property
    def timeout_ms(self) -> int:
        return max(1, int(round(self.timeout * 1000)))


class SinkConfig(BaseModel):
    """Brief: Typed configuration for a single metrics sink.

    Inputs:
      - backend: Sink alias ("stdout", "json", "influxdb") or dotted import path.
      - config: Backend-specific options passed to the sink constructor.

    Outputs:
      - SinkConfig instance.
    """

    backend: str = Field(..., description="Sink alias or dotted import path")
    config: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        extra = "allow"


class AppConfig(BaseModel):
    """Brief: Root configuration document.

    Inputs:
      - logging: Mapping consumed by init_logging().
      - sinks: Sinks receiving every probe output (defaults to stdout).
      - probes: DNS probe definitions, run in order.

    Outputs:
      - AppConfig instance.
    """

    logging: Dict[str, Any] = Field(default_factory=dict)
    sinks: List[SinkConfig] = Field(
        default_factory=lambda: [SinkConfig(backend="stdout")]
    )
    probes: List[DnsProbeConfig] = Field(default_factory=list)

    class Config:
        extra = "forbid"


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = str(err.get("msg", "invalid value"))
        # pydantic prefixes messages raised from validators with "Value error, ".
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def build_probe_config(**values: Any) -> DnsProbeConfig:
    """Brief: Validate probe settings, raising ConfigError on failure.

    Inputs:
      - **values: DnsProbeConfig fields.

    Outputs:
      - DnsProbeConfig.

    Example:
      >>> build_probe_config(domain="example.com", resolver_ip="8.8.8.8",
      ...                    resolver_port=53).resolver_protocol
      'udp'
    """

    try:
        return DnsProbeConfig(**values)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(exc)) from exc


def validate_config(cfg: Dict[str, Any]) -> AppConfig:
    """Brief: Validate an expanded configuration mapping.

    Inputs:
      - cfg: Mapping loaded from YAML with variables already expanded.

    Outputs:
      - AppConfig.

    Raises:
      - ConfigError with a flattened, human-readable message.
    """

    if not isinstance(cfg, dict):
        raise ConfigError("Configuration root must be a mapping")
    try:
        return AppConfig(**cfg)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(exc)) from exc
