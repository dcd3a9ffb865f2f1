"""
Brief: Tests for netprobe.config.config_schema (probe config validation).

Inputs:
  - None

Outputs:
  - None
"""

import pytest

from netprobe.config import AppConfig, ConfigError, SinkConfig, build_probe_config
from netprobe.config.config_schema import parse_duration, validate_config


def _probe(**overrides):
    values = dict(domain="example.com", resolver_ip="8.8.8.8", resolver_port=53)
    values.update(overrides)
    return build_probe_config(**values)


def test_defaults():
    cfg = _probe()
    assert cfg.resolver_protocol == "udp"
    assert cfg.timeout == 2.0
    assert cfg.timeout_ms == 2000
    assert cfg.tls_verify is True
    assert cfg.ascii_domain == "example.com"


@pytest.mark.parametrize(
    "domain",
    [
        "",
        None,
        "   ",
        "a..b",
        "x" * 64 + ".com",
        ".".join(["a" * 63] * 5),
        "exa mple.com",
        "foo/bar.com",
        "-bad.example.com",
        "bad-.example.com",
        "under_score.example.com",
    ],
)
def test_invalid_domain(domain):
    with pytest.raises(ConfigError) as excinfo:
        _probe(domain=domain)
    assert "domain is missing or invalid" in str(excinfo.value)


@pytest.mark.parametrize("ip", ["", None, "not-an-ip", "256.1.1.1", "dns.google"])
def test_invalid_resolver_ip(ip):
    with pytest.raises(ConfigError) as excinfo:
        _probe(resolver_ip=ip)
    assert "resolver_ip is missing or invalid" in str(excinfo.value)


def test_ipv6_resolver_is_normalized():
    assert _probe(resolver_ip="2001:4860:4860:0:0:0:0:8888").resolver_ip == "2001:4860:4860::8888"


@pytest.mark.parametrize("port", [0, -1, 65536])
def test_invalid_port(port):
    with pytest.raises(ConfigError) as excinfo:
        _probe(resolver_port=port)
    assert "resolver_port" in str(excinfo.value)


def test_missing_port():
    with pytest.raises(ConfigError):
        build_probe_config(domain="example.com", resolver_ip="8.8.8.8")


@pytest.mark.parametrize(
    "value,expected",
    [("udp", "udp"), ("TCP", "tcp"), ("tcp-tls", "tcp-tls"), ("https", "udp"), ("", "udp"), (None, "udp")],
)
def test_protocol_fallback(value, expected):
    assert _probe(resolver_protocol=value).resolver_protocol == expected


@pytest.mark.parametrize(
    "value,expected",
    [(None, 2.0), (0, 2.0), (-5, 2.0), ("500ms", 0.5), ("3s", 3.0), (1.25, 1.25), ("1m", 60.0)],
)
def test_timeout_normalization(value, expected):
    assert _probe(timeout=value).timeout == expected


def test_invalid_timeout_string():
    with pytest.raises(ConfigError):
        _probe(timeout="soon")


@pytest.mark.parametrize(
    "domain",
    ["example.com.", "a-b.example.com", "xn--bcher-kva.example", ".".join(["a" * 63] * 3)],
)
def test_valid_hostnames(domain):
    assert _probe(domain=domain).domain == domain


def test_idn_domain_ascii_form():
    cfg = _probe(domain="bücher.example")
    assert cfg.domain == "bücher.example"
    assert cfg.ascii_domain == "xn--bcher-kva.example"


def test_unknown_probe_key_rejected():
    with pytest.raises(ConfigError):
        _probe(retries=3)


def test_probe_config_is_frozen():
    cfg = _probe()
    with pytest.raises(Exception):
        cfg.domain = "other.example"


def test_parse_duration():
    assert parse_duration(2) == 2.0
    assert parse_duration("250ms") == 0.25
    assert parse_duration(" 1.5 ") == 1.5
    with pytest.raises(ValueError):
        parse_duration(True)


def test_validate_config_defaults_to_stdout_sink():
    cfg = validate_config({"probes": [{"domain": "example.com", "resolver_ip": "1.1.1.1", "resolver_port": 53}]})
    assert isinstance(cfg, AppConfig)
    assert [s.backend for s in cfg.sinks] == ["stdout"]
    assert cfg.probes[0].resolver_ip == "1.1.1.1"


def test_validate_config_reports_probe_location():
    with pytest.raises(ConfigError) as excinfo:
        validate_config({"probes": [{"domain": "", "resolver_ip": "1.1.1.1", "resolver_port": 53}]})
    msg = str(excinfo.value)
    assert "probes.0.domain" in msg
    assert "domain is missing or invalid" in msg


def test_validate_config_rejects_non_mapping():
    with pytest.raises(ConfigError):
        validate_config(["not", "a", "mapping"])


def test_sink_config_keeps_backend_options():
    sink = SinkConfig(backend="json", config={"file_path": "/tmp/x.jsonl"})
    assert sink.config["file_path"] == "/tmp/x.jsonl"
