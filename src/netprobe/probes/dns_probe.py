"""DNS probe: DNSSEC key fetch, record-type sweep and result aggregation.

Brief:
  One invocation of DnsProbe.run():
    1. fetches the domain's DNSKEY set (failure ends the probe with
       connection_failed) and self-checks its signature;
    2. queries every record type in SWEEP_ORDER exactly once, in order,
       verifying and mapping each non-empty answer;
    3. folds per-type transport outcomes into one ProbeResult.

  Everything is sequential and blocking; each exchange is bounded by the
  configured timeout and there are no retries. The resolver client is created
  per invocation, so separate probes may run concurrently without sharing
  mutable state.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import dns.rcode

from ..config.config_schema import DnsProbeConfig
from ..dnssec import (
    KeyMaterial,
    cross_check_ds,
    fetch_key_material,
    partition_signature,
    verify_answer,
    zsk_self_check,
)
from ..models import ProbeOutput, ProbeResult
from ..records import SWEEP_ORDER, map_answers
from ..resolver import ResolverClient, reverse_name
from ..transports import TransportError
from .base import BaseProbe

logger = logging.getLogger(__name__)


def failure_result(exc: TransportError) -> ProbeResult:
    return ProbeResult.TIMEOUT if exc.timeout else ProbeResult.CONNECTION_FAILED


class DnsProbe(BaseProbe):
    """Brief: Active DNS/DNSSEC probe against one resolver.

    Inputs:
      - config: Validated DnsProbeConfig.
      - client_factory: Callable building an invocation-scoped client from the
        config (defaults to ResolverClient).
      - reverse_lookup: Callable returning the resolver's reverse-DNS name or
        "" (defaults to reverse_name).

    Outputs:
      - run() -> ProbeOutput.

    Example:
      >>> probe = DnsProbe(build_probe_config(domain="example.com",
      ...                  resolver_ip="8.8.8.8", resolver_port=53))
      >>> probe.run().result  # doctest: +SKIP
      <ProbeResult.SUCCESS: 'success'>
    """

    measurement = "netprobe_dns"

    def __init__(
        self,
        config: DnsProbeConfig,
        *,
        client_factory: Callable[[DnsProbeConfig], ResolverClient] = ResolverClient,
        reverse_lookup: Callable[[str], str] = reverse_name,
    ) -> None:
        self.config = config
        self._client_factory = client_factory
        self._reverse_lookup = reverse_lookup

    def run(self) -> ProbeOutput:
        cfg = self.config
        output = ProbeOutput(domain=cfg.domain)
        client = self._client_factory(cfg)
        domain = cfg.ascii_domain

        try:
            material = fetch_key_material(client, domain)
        except TransportError as exc:
            logger.warning(
                "%s: DNSKEY query to %s:%s/%s failed: %s",
                cfg.domain,
                cfg.resolver_ip,
                cfg.resolver_port,
                cfg.resolver_protocol,
                exc,
            )
            output.result = ProbeResult.CONNECTION_FAILED
            return output

        output.zsk_verified = zsk_self_check(material)
        self._sweep(client, domain, material, output)

        output.resolver_ip = cfg.resolver_ip
        output.resolver_port = str(cfg.resolver_port)
        output.resolver_protocol = cfg.resolver_protocol
        output.resolver_name = self._reverse_lookup(cfg.resolver_ip)
        logger.info(
            "%s via %s: %s, %d record(s), %sms, zsk=%s ksk=%s",
            cfg.domain,
            cfg.resolver_ip,
            output.result.value,
            len(output.records),
            output.response_time,
            output.zsk_verified,
            output.ksk_verified,
        )
        return output

    def _sweep(
        self, client, domain: str, material: KeyMaterial, output: ProbeOutput
    ) -> None:
        succeeded = failed = False
        for kind in SWEEP_ORDER:
            try:
                exchange = client.exchange(domain, kind.rdtype)
            except TransportError as exc:
                logger.debug("%s %s: %s", domain, kind.name, exc)
                output.result = failure_result(exc)
                failed = True
                continue

            succeeded = True
            output.response_time_ms += int(exchange.rtt * 1000)
            response = exchange.response
            if not response.answer:
                continue

            rrsets, signature = partition_signature(response.answer)
            verified = verify_answer(client, domain, rrsets, signature, material)
            output.records.extend(
                map_answers(
                    rrsets,
                    rcode=dns.rcode.to_text(response.rcode()),
                    rtt=exchange.rtt,
                    verified=verified,
                )
            )
            ds_match: Optional[bool] = cross_check_ds(material, rrsets)
            if ds_match is not None:
                output.ksk_verified = ds_match

        if succeeded and failed:
            output.result = ProbeResult.PARTIAL_FAILURE
        elif succeeded:
            output.result = ProbeResult.SUCCESS
