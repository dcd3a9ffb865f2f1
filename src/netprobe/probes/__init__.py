"""Active probes."""

from .base import BaseProbe
from .dns_probe import DnsProbe

__all__ = ["BaseProbe", "DnsProbe"]
