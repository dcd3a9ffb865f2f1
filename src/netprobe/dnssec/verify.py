"""Per-answer DNSSEC verification and KSK/DS digest cross-checking."""

from __future__ import annotations

import functools
import logging
from typing import Iterable, Optional

import dns.dnssec
import dns.exception
import dns.rdatatype
import dns.rrset
import tldextract

from ..transports import TransportError
from .keys import KeyMaterial, covered_rrset, dnskeys_of, partition_signature, verify_with_key

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=1)
def _suffix_extractor() -> tldextract.TLDExtract:
    # Bundled public suffix snapshot only: no HTTP fetch and no disk cache.
    return tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())


def registrable_domain(domain: str) -> Optional[str]:
    """Brief: Reduce a domain to its registrable form (eTLD+1).

    Inputs:
      - domain: Domain name, with or without trailing dot.

    Outputs:
      - "example.co.uk" for "www.example.co.uk"; None when the name has no
        registrable part (e.g. it is itself a public suffix).
    """

    ext = _suffix_extractor()(domain.rstrip("."))
    if not ext.domain or not ext.suffix:
        return None
    return f"{ext.domain}.{ext.suffix}"


def _verify_ds_signature(client, domain: str, ds_rrset, signature) -> bool:
    # The DS signature is checked against the DNSKEY set of the registrable
    # form of the probed domain, fetched fresh from the same resolver.
    reduced = registrable_domain(domain)
    if reduced is None:
        logger.debug("%s: no registrable domain for DS verification", domain)
        return False
    try:
        exchange = client.exchange(reduced, dns.rdatatype.DNSKEY)
    except TransportError as exc:
        logger.debug("%s: DNSKEY fetch for %s failed: %s", domain, reduced, exc)
        return False
    others, _ = partition_signature(exchange.response.answer)
    key_rrset, keys = dnskeys_of(others)
    if key_rrset is None:
        return False
    for key in keys:
        if verify_with_key(ds_rrset, signature, key, key_rrset.name):
            return True
    return False


def verify_answer(
    client,
    domain: str,
    rrsets: Iterable[dns.rrset.RRset],
    signature: Optional[dns.rrset.RRset],
    material: KeyMaterial,
) -> bool:
    """Brief: Decide whether one record-type response is DNSSEC-verified.

    Inputs:
      - client: ResolverClient used for the DS special case.
      - domain: Probed domain (ASCII form).
      - rrsets: Answer RRsets with the signature already partitioned out.
      - signature: The partitioned RRSIG RRset, or None.
      - material: Key material fetched at the start of the probe.

    Outputs:
      - bool applied to every answer record derived from this response.

    Notes:
      - No keys, no signature, or no RRset matching the signature's covered
        type all yield False.
      - A signature covering DS is verified against the registrable domain's
        DNSKEY set (queried again) rather than the probed zone's keys.
      - Otherwise each key of the probed zone is tried; one success suffices.
    """

    if not material.keys or signature is None:
        return False
    signed = covered_rrset(rrsets, signature)
    if signed is None:
        return False
    if signature.covers == dns.rdatatype.DS:
        return _verify_ds_signature(client, domain, signed, signature)
    for key in material.keys:
        if verify_with_key(signed, signature, key, material.owner):
            return True
    return False


def ksk_matches_ds(material: KeyMaterial, ds) -> bool:
    """Brief: Compare the zone's key-signing key digest with a DS record.

    Inputs:
      - material: Key material of the probed zone.
      - ds: DS rdata advertised for the zone.

    Outputs:
      - False if the digest of the first key flagged 257, computed with the
        DS record's digest type, differs from the advertised digest (or the
        digest type is unsupported). True otherwise, including when the zone
        has no key-signing key at all; callers must read that case as
        "unverifiable" rather than "matched".
    """

    for ksk in material.key_signing_keys[:1]:
        try:
            computed = dns.dnssec.make_ds(
                material.owner, ksk, ds.digest_type, validating=True
            )
        except (dns.exception.DNSException, ValueError) as exc:
            logger.debug("cannot compute DS digest type %s: %s", ds.digest_type, exc)
            return False
        if computed.digest != ds.digest:
            return False
    return True


def cross_check_ds(
    material: KeyMaterial, rrsets: Iterable[dns.rrset.RRset]
) -> Optional[bool]:
    """Brief: Cross-check every DS record in an answer against the local KSK.

    Outputs:
      - None when the answer holds no DS record; otherwise True if any
        advertised DS digest matches.
    """

    outcome: Optional[bool] = None
    for rrset in rrsets:
        if rrset.rdtype != dns.rdatatype.DS:
            continue
        for ds in rrset:
            matched = ksk_matches_ds(material, ds)
            outcome = matched or bool(outcome)
    return outcome
