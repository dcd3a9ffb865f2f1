import socket
from typing import Optional

from .base import ErrorKind, TransportError, address_family, classify_os_error

# Large enough for the 2048-byte EDNS0 buffer advertised by every query.
MAX_UDP_RESPONSE = 4096


class UDPError(TransportError):
    """
    Brief: DNS-over-UDP transport error.

    Inputs:
      - message: description
      - kind: ErrorKind

    Outputs:
      - Exception instance
    """

    pass


def udp_query(
    host: str,
    port: int,
    query: bytes,
    *,
    timeout_ms: int = 2000,
    source_ip: Optional[str] = None,
) -> bytes:
    """
    Brief: Perform a single UDP DNS query.

    Inputs:
    - host: resolver IP literal (IPv4 or IPv6)
    - port: resolver UDP port
    - query: wire-format DNS query bytes
    - timeout_ms: socket timeout in milliseconds
    - source_ip: optional source address to bind

    Outputs:
    - bytes: wire-format DNS response

    Raises:
    - UDPError with kind TIMEOUT when no datagram arrives before the deadline,
      CONNECTION for any other socket error (e.g. ICMP port unreachable).

    Example:
        >>> try:
        ...     udp_query('127.0.0.1', 53, b'\x00\x01')
        ... except UDPError:
        ...     pass
    """
    try:
        s = socket.socket(address_family(host), socket.SOCK_DGRAM)
        try:
            if source_ip:
                s.bind((source_ip, 0))
            s.settimeout(timeout_ms / 1000.0)
            s.connect((host, int(port)))
            s.send(query)
            data = s.recv(MAX_UDP_RESPONSE)
            return data
        finally:
            s.close()
    except OSError as e:
        kind = classify_os_error(e)
        label = "timeout" if kind is ErrorKind.TIMEOUT else "error"
        raise UDPError(f"UDP {label}: {e}", kind) from e
