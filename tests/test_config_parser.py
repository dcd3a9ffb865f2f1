"""
Brief: Tests for netprobe.config.config_parser (YAML loading, variables and
`${VAR}` expansion).

Inputs:
  - None

Outputs:
  - None
"""

import textwrap

import pytest

from netprobe.config import ConfigError, load_config_dict, parse_config_file
from netprobe.config.config_parser import expand_variables, parse_config_variables


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return str(path)


def test_parse_config_file_with_variables(tmp_path):
    path = _write(
        tmp_path,
        """
        vars:
          PROBE_RESOLVER: 9.9.9.9
          PROBE_PORT: 53
        logging:
          level: debug
        sinks:
          - backend: json
            config:
              file_path: ${PROBE_OUT_DIR}/probe.jsonl
        probes:
          - domain: example.com
            resolver_ip: ${PROBE_RESOLVER}
            resolver_port: ${PROBE_PORT}
            resolver_protocol: tcp
            timeout: 1500ms
        """,
    )
    cfg = parse_config_file(path, cli_vars=["PROBE_OUT_DIR=/var/tmp"])
    probe = cfg.probes[0]
    assert probe.resolver_ip == "9.9.9.9"
    assert probe.resolver_port == 53
    assert probe.resolver_protocol == "tcp"
    assert probe.timeout == 1.5
    assert cfg.logging == {"level": "debug"}
    assert cfg.sinks[0].config["file_path"] == "/var/tmp/probe.jsonl"


def test_cli_overrides_environment_overrides_file():
    cfg = {"vars": {"PORT": 53, "HOST": "a"}}
    merged = parse_config_variables(
        cfg, cli_vars=["PORT=853"], environ={"PORT": "5353", "HOST": "b"}
    )
    assert merged == {"PORT": 853, "HOST": "b"}


def test_environment_only_applies_to_declared_vars():
    merged = parse_config_variables({"vars": {"A": 1}}, environ={"B": "2"})
    assert merged == {"A": 1}


def test_cli_var_must_be_assignment():
    with pytest.raises(ConfigError):
        parse_config_variables({}, cli_vars=["NOEQUALS"], environ={})


def test_var_keys_must_be_uppercase():
    with pytest.raises(ConfigError):
        parse_config_variables({"vars": {"lower": 1}}, environ={})
    with pytest.raises(ConfigError):
        parse_config_variables({}, cli_vars=["lower=1"], environ={})


def test_expand_whole_value_keeps_yaml_type():
    cfg = {"vars": {"PORT": 853, "FLAGS": [1, 2]}, "a": "${PORT}", "b": "${FLAGS}"}
    out = expand_variables(cfg)
    assert out == {"a": 853, "b": [1, 2]}


def test_expand_embedded_and_unknown_references():
    cfg = {"vars": {"HOST": "ns1", "ON": True}, "a": "${HOST}.example:${ON}", "b": "${MISSING}"}
    out = expand_variables(cfg)
    assert out["a"] == "ns1.example:true"
    assert out["b"] == "${MISSING}"


def test_expand_nested_variables():
    cfg = {"vars": {"BASE": "example.com", "WWW": "www.${BASE}"}, "d": "${WWW}"}
    assert expand_variables(cfg)["d"] == "www.example.com"


def test_expand_detects_cycles():
    with pytest.raises(ConfigError):
        expand_variables({"vars": {"A": "${B}", "B": "${A}"}, "x": "${A}"})


def test_load_config_dict_invalid_probe_is_config_error():
    with pytest.raises(ConfigError) as excinfo:
        load_config_dict(
            {"probes": [{"domain": "example.com", "resolver_ip": "nope", "resolver_port": 53}]},
            environ={},
        )
    assert "resolver_ip is missing or invalid" in str(excinfo.value)


def test_parse_config_file_missing(tmp_path):
    with pytest.raises(ConfigError):
        parse_config_file(str(tmp_path / "absent.yaml"))


def test_parse_config_file_bad_yaml(tmp_path):
    path = _write(tmp_path, "probes: [unterminated\n")
    with pytest.raises(ConfigError):
        parse_config_file(path)


def test_empty_file_yields_empty_config(tmp_path):
    cfg = parse_config_file(_write(tmp_path, ""))
    assert cfg.probes == []
