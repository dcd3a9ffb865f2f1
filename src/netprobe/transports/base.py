from __future__ import annotations

import enum
import socket
import ssl


class ErrorKind(str, enum.Enum):
    """Brief: Classification carried by every transport failure.

    Members:
      - TIMEOUT: the per-exchange deadline expired.
      - CONNECTION: any other transport problem (refused, unreachable, TLS
        handshake failure, short read, malformed or mismatched response).
    """

    TIMEOUT = "timeout"
    CONNECTION = "connection"


class TransportError(Exception):
    """
    Brief: Base class for DNS transport errors.

    Inputs:
      - message: Error description.
      - kind: ErrorKind describing why the exchange failed.

    Outputs:
      - Exception instance exposing .kind and .timeout.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.CONNECTION):
        super().__init__(message)
        self.kind = kind

    @property
    def timeout(self) -> bool:
        return self.kind is ErrorKind.TIMEOUT


def classify_os_error(exc: BaseException) -> ErrorKind:
    """Brief: Map a socket-level exception onto an ErrorKind.

    Inputs:
      - exc: Exception raised by socket/ssl operations.

    Outputs:
      - ErrorKind.TIMEOUT for deadline expiry, ErrorKind.CONNECTION otherwise.

    Example:
      >>> classify_os_error(socket.timeout("timed out"))
      <ErrorKind.TIMEOUT: 'timeout'>
    """

    # ssl.SSLError subclasses OSError; a handshake failure is never a timeout.
    if isinstance(exc, ssl.SSLError):
        return ErrorKind.CONNECTION
    if isinstance(exc, (socket.timeout, TimeoutError)):
        return ErrorKind.TIMEOUT
    return ErrorKind.CONNECTION


def address_family(host: str) -> int:
    """Return AF_INET6 for IPv6 literals and AF_INET otherwise."""
    return socket.AF_INET6 if ":" in host else socket.AF_INET
