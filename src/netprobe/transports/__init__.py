"""One-shot DNS wire transports (UDP, TCP, DNS-over-TLS)."""

from .base import ErrorKind, TransportError
from .dot import DoTError, dot_query
from .tcp import TCPError, tcp_query
from .udp import UDPError, udp_query

__all__ = [
    "ErrorKind",
    "TransportError",
    "DoTError",
    "TCPError",
    "UDPError",
    "dot_query",
    "tcp_query",
    "udp_query",
]
