"""Resolver transport: one query/response exchange with the configured resolver.

Brief:
  ResolverClient is constructed per probe invocation from a validated
  DnsProbeConfig and is never shared across invocations. Each call to
  exchange() builds a fresh EDNS0/DO query, sends it over the configured
  transport (udp, tcp or tcp-tls) and parses the reply. No retries and no
  connection reuse.
"""

from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass
from typing import Union

import dns.exception
import dns.message
import dns.name
import dns.rdatatype

from .config.config_schema import DnsProbeConfig
from .transports import ErrorKind, TransportError, dot_query, tcp_query, udp_query

logger = logging.getLogger(__name__)

EDNS_PAYLOAD_SIZE = 2048

RdataType = Union[dns.rdatatype.RdataType, str, int]


@dataclass(frozen=True)
class Exchange:
    """A parsed resolver response and the round-trip time in seconds."""

    response: dns.message.Message
    rtt: float


def build_query(domain: str, rdtype: RdataType) -> dns.message.QueryMessage:
    """Brief: Build a DNSSEC-aware query for (domain, rdtype).

    Inputs:
      - domain: Domain name; made fully qualified (trailing dot) if needed.
      - rdtype: Record type as enum, mnemonic or integer.

    Outputs:
      - QueryMessage with EDNS0 (2048-byte payload) and the DO bit set.

    Example:
      >>> q = build_query("example.com", "A")
      >>> q.question[0].name.to_text()
      'example.com.'
    """

    qname = dns.name.from_text(domain, origin=dns.name.root)
    return dns.message.make_query(
        qname,
        dns.rdatatype.RdataType.make(rdtype),
        use_edns=0,
        payload=EDNS_PAYLOAD_SIZE,
        want_dnssec=True,
    )


class ResolverClient:
    """Brief: Invocation-scoped client for a single resolver endpoint.

    Inputs:
      - config: Validated DnsProbeConfig (resolver address, transport, timeout).

    Outputs:
      - exchange(domain, rdtype) -> Exchange, raising TransportError whose
        .kind is ErrorKind.TIMEOUT or ErrorKind.CONNECTION.
    """

    def __init__(self, config: DnsProbeConfig) -> None:
        self._config = config

    @property
    def config(self) -> DnsProbeConfig:
        return self._config

    def _send(self, wire: bytes) -> bytes:
        cfg = self._config
        timeout_ms = cfg.timeout_ms
        if cfg.resolver_protocol == "tcp":
            return tcp_query(
                cfg.resolver_ip,
                cfg.resolver_port,
                wire,
                connect_timeout_ms=timeout_ms,
                read_timeout_ms=timeout_ms,
            )
        if cfg.resolver_protocol == "tcp-tls":
            return dot_query(
                cfg.resolver_ip,
                cfg.resolver_port,
                wire,
                verify=cfg.tls_verify,
                ca_file=cfg.tls_ca_file,
                connect_timeout_ms=timeout_ms,
                read_timeout_ms=timeout_ms,
            )
        return udp_query(cfg.resolver_ip, cfg.resolver_port, wire, timeout_ms=timeout_ms)

    def exchange(self, domain: str, rdtype: RdataType) -> Exchange:
        """Brief: Send one query and return the parsed response with its RTT.

        Inputs:
          - domain: Query name.
          - rdtype: Record type.

        Outputs:
          - Exchange(response, rtt).

        Raises:
          - TransportError: TIMEOUT on deadline expiry; CONNECTION for any
            other transport failure or an unparseable/mismatched response.
        """

        query = build_query(domain, rdtype)
        wire = query.to_wire()
        start = time.perf_counter()
        raw = self._send(wire)
        rtt = time.perf_counter() - start
        try:
            response = dns.message.from_wire(raw)
        except dns.exception.DNSException as exc:
            raise TransportError(f"malformed response: {exc}", ErrorKind.CONNECTION) from exc
        if not query.is_response(response):
            raise TransportError(
                "response does not match query id/question", ErrorKind.CONNECTION
            )
        logger.debug(
            "%s %s via %s:%s/%s rcode=%s rtt=%.1fms",
            domain,
            dns.rdatatype.to_text(query.question[0].rdtype),
            self._config.resolver_ip,
            self._config.resolver_port,
            self._config.resolver_protocol,
            response.rcode(),
            rtt * 1000.0,
        )
        return Exchange(response=response, rtt=rtt)


def reverse_name(ip: str) -> str:
    """Brief: Best-effort reverse-DNS name for a resolver address.

    Inputs:
      - ip: IPv4/IPv6 literal.

    Outputs:
      - Fully-qualified host name (trailing dot) or "" when lookup fails.

    Example:
      >>> reverse_name("192.0.2.254")  # doctest: +SKIP
      ''
    """

    try:
        name, _aliases, _addrs = socket.gethostbyaddr(ip)
    except (OSError, UnicodeError):
        return ""
    if not name:
        return ""
    return name if name.endswith(".") else name + "."
