"""Partial DNSSEC verification used by the DNS probe."""

from .keys import (
    KSK_FLAGS,
    KeyMaterial,
    fetch_key_material,
    partition_signature,
    zsk_self_check,
)
from .verify import cross_check_ds, ksk_matches_ds, registrable_domain, verify_answer

__all__ = [
    "KSK_FLAGS",
    "KeyMaterial",
    "cross_check_ds",
    "fetch_key_material",
    "ksk_matches_ds",
    "partition_signature",
    "registrable_domain",
    "verify_answer",
    "zsk_self_check",
]
