import socket
import ssl
from typing import Optional

from .base import ErrorKind, TransportError, classify_os_error
from .tcp import recv_exact


class DoTError(TransportError):
    """
    A DNS-over-TLS transport error.

    Inputs:
      - message: A short error description.
      - kind: ErrorKind.
    Outputs:
      - Exception instance.

    Brief: Raised for TLS connect/read/write or protocol framing errors.
    """

    pass


def build_ssl_context(
    verify: bool = True,
    ca_file: Optional[str] = None,
    min_version: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2,
) -> ssl.SSLContext:
    """
    Build an SSLContext for DoT connections.

    Inputs:
      - verify: Whether to verify certificates.
      - ca_file: Optional path to a CA bundle.
      - min_version: Minimum TLS version; default TLS 1.2.
    Outputs:
      - ssl.SSLContext configured for client use.

    Example:
      >>> ctx = build_ssl_context(True, None)
    """
    if verify:
        ctx = ssl.create_default_context(cafile=ca_file)
    else:
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    ctx.minimum_version = min_version
    return ctx


def dot_query(
    host: str,
    port: int,
    query: bytes,
    *,
    server_name: Optional[str] = None,
    verify: bool = True,
    ca_file: Optional[str] = None,
    connect_timeout_ms: int = 2000,
    read_timeout_ms: int = 2000,
) -> bytes:
    """
    Perform a single DNS-over-TLS query (RFC 7858) to host:port.

    Inputs:
      - host: Resolver IP literal.
      - port: Resolver DoT port (usually 853).
      - query: Wire-format DNS query bytes.
      - server_name: Expected certificate identity; defaults to host, so an IP
        SAN on the resolver certificate is what gets verified.
      - verify: Enable TLS certificate verification.
      - ca_file: Optional CA bundle path.
      - connect_timeout_ms: TCP connect timeout in milliseconds.
      - read_timeout_ms: Read timeout in milliseconds (also bounds the handshake).
    Outputs:
      - bytes: Wire-format DNS response.

    Example:
      >>> resp = dot_query('1.1.1.1', 853, b'\x12\x34...DNS...')
    """
    length_prefix = len(query).to_bytes(2, byteorder="big")
    payload = length_prefix + query
    expected_name = server_name or host

    try:
        sock = socket.create_connection(
            (host, port), timeout=connect_timeout_ms / 1000.0
        )
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            sock.settimeout(read_timeout_ms / 1000.0)
            ctx = build_ssl_context(verify=verify, ca_file=ca_file)
            with ctx.wrap_socket(
                sock, server_hostname=expected_name if verify else None
            ) as tls_sock:
                tls_sock.sendall(payload)
                hdr = recv_exact(tls_sock, 2)
                if len(hdr) != 2:
                    raise DoTError("short read on length header")
                resp_len = int.from_bytes(hdr, byteorder="big")
                resp = recv_exact(tls_sock, resp_len)
                if len(resp) != resp_len:
                    raise DoTError("short read on response body")
                return resp
        finally:
            sock.close()
    except ssl.SSLError as e:
        raise DoTError(f"TLS error: {e}", ErrorKind.CONNECTION) from e
    except OSError as e:
        kind = classify_os_error(e)
        label = "timeout" if kind is ErrorKind.TIMEOUT else "network error"
        raise DoTError(f"DoT {label}: {e}", kind) from e
