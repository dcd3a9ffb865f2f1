"""Answer record mapping: typed DNS rdata -> flat AnswerRecord.

Every record kind the probe sweeps over has exactly one mapping function in
_MAPPERS. The table is checked against RecordKind at import time so a new kind
cannot be added without a mapper.
"""

from __future__ import annotations

import enum
from typing import Callable, Dict, Iterable, List, Optional

import dns.rdata
import dns.rdatatype
import dns.rrset

from .models import AnswerRecord, format_duration


class RecordKind(enum.Enum):
    """Record types queried by the DNS probe, in sweep order."""

    A = dns.rdatatype.A
    AAAA = dns.rdatatype.AAAA
    CNAME = dns.rdatatype.CNAME
    MX = dns.rdatatype.MX
    NS = dns.rdatatype.NS
    PTR = dns.rdatatype.PTR
    SOA = dns.rdatatype.SOA
    TXT = dns.rdatatype.TXT
    SRV = dns.rdatatype.SRV
    SPF = dns.rdatatype.SPF
    DS = dns.rdatatype.DS

    @property
    def rdtype(self) -> dns.rdatatype.RdataType:
        return self.value

    @classmethod
    def from_rdtype(cls, rdtype: int) -> Optional["RecordKind"]:
        try:
            return cls(int(rdtype))
        except ValueError:
            return None


# Enum iteration follows declaration order.
SWEEP_ORDER = tuple(RecordKind)


def _address(rd: dns.rdata.Rdata) -> str:
    return str(rd.address)


def _target(rd: dns.rdata.Rdata) -> str:
    return rd.target.to_text()


def _mx(rd: dns.rdata.Rdata) -> str:
    return f"({rd.preference}) {rd.exchange.to_text()}"


def _presentation(rd: dns.rdata.Rdata) -> str:
    # Rdata.to_text() carries no owner/TTL/class/type header.
    return rd.to_text()


_MAPPERS: Dict[RecordKind, Callable[[dns.rdata.Rdata], str]] = {
    RecordKind.A: _address,
    RecordKind.AAAA: _address,
    RecordKind.CNAME: _target,
    RecordKind.MX: _mx,
    RecordKind.NS: _target,
    RecordKind.PTR: _target,
    RecordKind.SOA: _presentation,
    RecordKind.TXT: _presentation,
    RecordKind.SRV: _presentation,
    RecordKind.SPF: _presentation,
    RecordKind.DS: _presentation,
}

_unmapped = [k.name for k in RecordKind if k not in _MAPPERS]
if _unmapped:
    raise RuntimeError("no answer mapper for record kinds: %s" % ", ".join(_unmapped))


def rdata_text(kind: RecordKind, rd: dns.rdata.Rdata) -> str:
    """Return the type-specific textual payload for one rdata."""
    return _MAPPERS[kind](rd)


def map_answers(
    rrsets: Iterable[dns.rrset.RRset],
    *,
    rcode: str,
    rtt: float,
    verified: bool,
) -> List[AnswerRecord]:
    """Brief: Flatten answer RRsets into AnswerRecord entries.

    Inputs:
      - rrsets: Answer-section RRsets with the signature already removed.
      - rcode: Response code mnemonic (e.g. "NOERROR").
      - rtt: Round-trip time of the exchange in seconds.
      - verified: DNSSEC verification flag applied to every record.

    Outputs:
      - One AnswerRecord per rdata of a known kind; RRsets of any other type
        (RRSIG, DNSKEY, NSEC, ...) produce nothing.
    """

    response_time = format_duration(rtt)
    out: List[AnswerRecord] = []
    for rrset in rrsets:
        kind = RecordKind.from_rdtype(rrset.rdtype)
        if kind is None:
            continue
        for rd in rrset:
            out.append(
                AnswerRecord(
                    rcode=rcode,
                    rtype=kind.name,
                    ttl=int(rrset.ttl),
                    response_time=response_time,
                    dnssec_verified=verified,
                    rdata=rdata_text(kind, rd),
                )
            )
    return out
