"""DNSKEY retrieval and key-set self verification.

Brief:
  fetch_key_material() issues the DNSKEY query for the probed domain and splits
  the answer into the key RRset and its covering signature. zsk_self_check()
  then verifies that signature over the key set with each key-signing key.

Inputs:
  - A ResolverClient (or any object with a compatible exchange() method).

Outputs:
  - KeyMaterial and boolean verification outcomes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import dns.dnssec
import dns.exception
import dns.name
import dns.rdatatype
import dns.rrset

logger = logging.getLogger(__name__)

KSK_FLAGS = 257


def partition_signature(
    rrsets: Iterable[dns.rrset.RRset],
) -> Tuple[List[dns.rrset.RRset], Optional[dns.rrset.RRset]]:
    """Brief: Split the first RRSIG RRset away from an answer section.

    Inputs:
      - rrsets: Answer-section RRsets (not modified).

    Outputs:
      - (others, signature): a new list without the first RRSIG RRset, and
        that RRSIG RRset or None when the answer carried no signature.

    Example:
      >>> others, sig = partition_signature(response.answer)  # doctest: +SKIP
    """

    others: List[dns.rrset.RRset] = []
    signature: Optional[dns.rrset.RRset] = None
    for rrset in rrsets:
        if signature is None and rrset.rdtype == dns.rdatatype.RRSIG:
            signature = rrset
            continue
        others.append(rrset)
    return others, signature


def covered_rrset(
    rrsets: Iterable[dns.rrset.RRset], signature: dns.rrset.RRset
) -> Optional[dns.rrset.RRset]:
    """Return the RRset signed by `signature` (same owner, covered type)."""
    for rrset in rrsets:
        if rrset.rdtype == signature.covers and rrset.name == signature.name:
            return rrset
    return None


def verify_with_key(
    rrset: dns.rrset.RRset,
    signature: dns.rrset.RRset,
    key,
    key_owner: dns.name.Name,
) -> bool:
    """Brief: Check whether any signature in `signature` validates with `key`.

    Inputs:
      - rrset: The signed RRset (signature already stripped out).
      - signature: RRSIG RRset covering rrset.
      - key: A single DNSKEY rdata.
      - key_owner: Owner name of the key; must equal the RRSIG signer name.

    Outputs:
      - True on the first cryptographically valid signature, else False.
        The inception/expiration window is not enforced.
    """

    keys = {key_owner: dns.rrset.from_rdata(key_owner, signature.ttl, key)}
    for sig in signature:
        try:
            # Evaluate at inception so only the signature math is checked.
            dns.dnssec.validate_rrsig(rrset, sig, keys, now=sig.inception)
        except (dns.exception.DNSException, ValueError) as exc:
            logger.debug(
                "RRSIG(%s) keytag=%d by %s rejected: %s",
                dns.rdatatype.to_text(sig.type_covered),
                sig.key_tag,
                sig.signer,
                exc,
            )
            continue
        return True
    return False


def dnskeys_of(rrsets: Iterable[dns.rrset.RRset]) -> Tuple[Optional[dns.rrset.RRset], tuple]:
    """Return the first DNSKEY RRset and its keys in answer order."""
    for rrset in rrsets:
        if rrset.rdtype == dns.rdatatype.DNSKEY:
            return rrset, tuple(rrset)
    return None, ()


@dataclass(frozen=True)
class KeyMaterial:
    """Brief: DNSKEY set of the probed zone, held for one probe invocation.

    Attributes:
      - name: Owner name queried for DNSKEY.
      - key_rrset: The DNSKEY RRset with the signature removed (or None).
      - keys: DNSKEY rdata in answer order.
      - signature: RRSIG RRset that signed the key set, when present.
    """

    name: dns.name.Name
    key_rrset: Optional[dns.rrset.RRset] = None
    keys: tuple = ()
    signature: Optional[dns.rrset.RRset] = None

    @property
    def key_signing_keys(self) -> tuple:
        return tuple(k for k in self.keys if k.flags == KSK_FLAGS)

    @property
    def owner(self) -> dns.name.Name:
        return self.key_rrset.name if self.key_rrset is not None else self.name


def fetch_key_material(client, domain: str) -> KeyMaterial:
    """Brief: Query DNSKEY for domain and partition the answer.

    Inputs:
      - client: ResolverClient.
      - domain: Probed domain (ASCII form).

    Outputs:
      - KeyMaterial (possibly with no keys for unsigned zones).

    Raises:
      - TransportError: propagated from the exchange; callers treat this as a
        hard failure of the whole probe.
    """

    exchange = client.exchange(domain, dns.rdatatype.DNSKEY)
    others, signature = partition_signature(exchange.response.answer)
    key_rrset, keys = dnskeys_of(others)
    logger.debug(
        "%s: %d DNSKEY(s), signature %s",
        domain,
        len(keys),
        "present" if signature is not None else "absent",
    )
    return KeyMaterial(
        name=dns.name.from_text(domain, origin=dns.name.root),
        key_rrset=key_rrset,
        keys=keys,
        signature=signature,
    )


def zsk_self_check(material: KeyMaterial) -> bool:
    """Brief: Verify the key set's own signature with each key-signing key.

    Inputs:
      - material: KeyMaterial from fetch_key_material().

    Outputs:
      - True if any key flagged 257 validates the signature over the
        signature-stripped DNSKEY RRset; False when there is no signature,
        no key set, or no successful validation.
    """

    if material.signature is None or material.key_rrset is None:
        return False
    for ksk in material.key_signing_keys:
        if verify_with_key(material.key_rrset, material.signature, ksk, material.owner):
            return True
    return False
