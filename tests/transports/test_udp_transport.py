"""
Brief: Unit tests for the UDP transport using a local UDP stub server.

Inputs:
  - None

Outputs:
  - None
"""

import socket
import threading
import time

import pytest

from netprobe.transports import ErrorKind, UDPError, udp_query


class _UDPStub:
    def __init__(self):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.addr = self.sock.getsockname()
        self._stop = False
        self.thread = threading.Thread(target=self._loop, daemon=True)

    def start(self):
        self.thread.start()
        time.sleep(0.02)

    def _loop(self):
        while not self._stop:
            try:
                self.sock.settimeout(0.2)
                data, peer = self.sock.recvfrom(4096)
            except OSError:
                continue
            # Echo back
            try:
                self.sock.sendto(data, peer)
            except OSError:
                pass

    def close(self):
        self._stop = True
        self.sock.close()


@pytest.fixture(scope="module")
def udp_stub():
    s = _UDPStub()
    s.start()
    try:
        yield s
    finally:
        s.close()


def test_udp_query_roundtrip(udp_stub):
    q = b"\x12\x34hello"
    resp = udp_query(udp_stub.addr[0], udp_stub.addr[1], q, timeout_ms=500)
    assert resp == q


def test_udp_query_large_response_is_not_truncated(udp_stub):
    q = b"\xab\xcd" + b"x" * 3000
    resp = udp_query(udp_stub.addr[0], udp_stub.addr[1], q, timeout_ms=500)
    assert resp == q


def test_udp_query_with_source_ip(udp_stub):
    q = b"\x00\x01src"
    resp = udp_query(
        udp_stub.addr[0], udp_stub.addr[1], q, timeout_ms=500, source_ip="127.0.0.1"
    )
    assert resp == q


def test_udp_query_silent_server_times_out():
    """
    Brief: A bound socket that never answers yields a TIMEOUT-kind error.

    Inputs:
      - None

    Outputs:
      - None: Asserts error kind and timeout flag
    """
    silent = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    silent.bind(("127.0.0.1", 0))
    try:
        host, port = silent.getsockname()
        with pytest.raises(UDPError) as excinfo:
            udp_query(host, port, b"\x00\x01", timeout_ms=100)
    finally:
        silent.close()
    assert excinfo.value.kind is ErrorKind.TIMEOUT
    assert excinfo.value.timeout is True
