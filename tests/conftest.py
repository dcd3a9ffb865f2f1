"""
Brief: Global pytest configuration enforcing per-test 10s timeout, plus
shared DNS fixtures.

Inputs:
  - None

Outputs:
  - None
"""

import signal
import os
import sys
import time

import pytest

# Ensure 'src' is on sys.path so 'netprobe' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import dns.dnssec  # noqa: E402
import dns.message  # noqa: E402
import dns.name  # noqa: E402
import dns.rcode  # noqa: E402
import dns.rdatatype  # noqa: E402
import dns.rrset  # noqa: E402
from cryptography.hazmat.primitives.asymmetric import ec  # noqa: E402

from netprobe.resolver import Exchange, build_query  # noqa: E402


def _alarm_handler(signum, frame):
    """
    Brief: Signal handler that raises TimeoutError when alarm triggers.

    Inputs:
      - signum: signal number (int)
      - frame: current frame (ignored)

    Outputs:
      - None: Raises TimeoutError to fail the test
    """
    raise TimeoutError("Test exceeded 10 seconds")


# Install handler if supported on this platform
if hasattr(signal, "SIGALRM"):
    signal.signal(signal.SIGALRM, _alarm_handler)


@pytest.fixture(autouse=True)
def enforce_test_timeout():
    """
    Brief: Enforce a hard 10-second timeout for each test.

    Inputs:
      - None

    Outputs:
      - None: Cancels alarm after test
    """
    if hasattr(signal, "SIGALRM"):
        signal.alarm(10)
        try:
            yield
        finally:
            signal.alarm(0)
    else:
        # Fallback: no-op on platforms without SIGALRM
        yield


class SignedZone:
    """
    Brief: Throwaway DNSSEC zone with an ECDSA P-256 KSK (257) and ZSK (256).

    Inputs:
      - origin: Zone apex.
      - ttl: TTL for every generated RRset.

    Outputs:
      - Helpers producing signed RRsets, DS records and DNS responses.
    """

    def __init__(self, origin="example.com.", ttl=300):
        self.origin = dns.name.from_text(origin)
        self.ttl = ttl
        self.ksk_priv = ec.generate_private_key(ec.SECP256R1())
        self.zsk_priv = ec.generate_private_key(ec.SECP256R1())
        alg = dns.dnssec.Algorithm.ECDSAP256SHA256
        self.ksk = dns.dnssec.make_dnskey(self.ksk_priv.public_key(), alg, flags=257)
        self.zsk = dns.dnssec.make_dnskey(self.zsk_priv.public_key(), alg, flags=256)

    def rrset(self, rdtype, *texts, name=None):
        owner = self.origin if name is None else dns.name.from_text(name)
        return dns.rrset.from_text(owner, self.ttl, "IN", rdtype, *texts)

    def dnskey_rrset(self, *keys):
        return dns.rrset.from_rdata(self.origin, self.ttl, *(keys or (self.ksk, self.zsk)))

    def sign(self, rrset, key="zsk", inception=None, lifetime=3600):
        priv, pub = (
            (self.ksk_priv, self.ksk) if key == "ksk" else (self.zsk_priv, self.zsk)
        )
        rrsig = dns.dnssec.sign(
            rrset,
            priv,
            self.origin,
            pub,
            inception=time.time() - 300 if inception is None else inception,
            lifetime=lifetime,
        )
        return dns.rrset.from_rdata(rrset.name, rrset.ttl, rrsig)

    def ds(self, digest="SHA256"):
        return dns.dnssec.make_ds(self.origin, self.ksk, digest)

    def ds_rrset(self, *ds):
        return dns.rrset.from_rdata(self.origin, self.ttl, *(ds or (self.ds(),)))


def make_response(qname, rdtype, answer=(), rcode=dns.rcode.NOERROR):
    """Build a response message to the query build_query(qname, rdtype) would send."""
    response = dns.message.make_response(build_query(qname, rdtype))
    response.set_rcode(rcode)
    for rrset in answer:
        response.answer.append(rrset)
    return response


class FakeClient:
    """
    Brief: Scripted stand-in for ResolverClient.

    Inputs:
      - outcomes: Mapping of (domain, RdataType) to a list of answer RRsets,
        a dns.message.Message, or an exception instance to raise.
      - rtt: Round-trip time reported for every successful exchange.

    Outputs:
      - exchange() -> Exchange; every call is recorded in .calls.
    """

    def __init__(self, outcomes=None, rtt=0.0125):
        self.outcomes = dict(outcomes or {})
        self.rtt = rtt
        self.calls = []

    def exchange(self, domain, rdtype):
        rdtype = dns.rdatatype.RdataType.make(rdtype)
        self.calls.append((domain, rdtype))
        outcome = self.outcomes.get((domain, rdtype), [])
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, dns.message.Message):
            return Exchange(response=outcome, rtt=self.rtt)
        return Exchange(response=make_response(domain, rdtype, outcome), rtt=self.rtt)


@pytest.fixture
def signed_zone():
    """
    Brief: Fresh SignedZone for example.com.

    Inputs:
      - None

    Outputs:
      - SignedZone
    """
    return SignedZone()


@pytest.fixture
def zone_factory():
    return SignedZone


@pytest.fixture
def fake_client_factory():
    return FakeClient


@pytest.fixture
def response_factory():
    return make_response
