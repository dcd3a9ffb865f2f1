"""Configuration parsing helpers for netprobe.

Brief:
  This module contains the configuration-parsing utilities used by the CLI
  entrypoint. It centralizes:
    - reading YAML config files
    - merging variables from config/env/CLI
    - `${VAR}` expansion
    - validation into typed models (see config_schema)

Inputs:
  - YAML config paths and CLI `KEY=YAML` assignments

Outputs:
  - AppConfig instances
"""

from __future__ import annotations

import copy
import json
import os
import re
from typing import Any, Dict, List, Optional

import yaml

from .config_schema import AppConfig, ConfigError, validate_config

_VAR_KEY = re.compile(r"[A-Z_][A-Z0-9_]*")
_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


def _is_var_key(key: str) -> bool:
    """Brief: Validate whether a string is a supported variable key name.

    Inputs:
      - key: Candidate variable name.

    Outputs:
      - bool: True when the name matches [A-Z_][A-Z0-9_]*.
    """

    return bool(key) and bool(_VAR_KEY.fullmatch(key))


def _parse_yaml_value(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def parse_config_variables(
    cfg: Dict[str, Any],
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Brief: Merge config/environment/CLI variables into cfg['vars'].

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).
      - cli_vars: Optional list of CLI `KEY=YAML` assignments.
      - environ: Optional environment mapping (defaults to os.environ).

    Outputs:
      - dict: The merged variables mapping stored back onto cfg['vars'].

    Precedence:
      - CLI (-v/--var) overrides environment overrides config-file variables.
      - Environment entries only apply to keys the config file declares, so
        unrelated process variables never leak into the document.

    Example:
      >>> cfg = {'vars': {'PORT': 53}}
      >>> parse_config_variables(cfg, cli_vars=['PORT=853'], environ={})['PORT']
      853
    """

    base = cfg.get("vars")
    if base is None:
        merged: Dict[str, Any] = {}
    elif isinstance(base, dict):
        merged = dict(base)
    else:
        raise ConfigError("config.vars must be a mapping when present")

    for k in merged:
        if not isinstance(k, str) or not _is_var_key(k):
            raise ConfigError(
                f"config.vars key {k!r} must be ALL_UPPERCASE and match [A-Z_][A-Z0-9_]*"
            )

    env = os.environ if environ is None else environ
    for k in list(merged):
        if k in env:
            merged[k] = _parse_yaml_value(str(env[k]))

    for assignment in cli_vars or []:
        if "=" not in assignment:
            raise ConfigError(
                "Invalid -v/--var value (expected KEY=YAML), got: %r" % assignment
            )
        k, raw = assignment.split("=", 1)
        k = k.strip()
        if not _is_var_key(k):
            raise ConfigError(
                "Invalid variable name %r (must be ALL_UPPERCASE and match [A-Z_][A-Z0-9_]*)"
                % k
            )
        merged[k] = _parse_yaml_value(raw)

    cfg["vars"] = merged
    return merged


def expand_variables(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Brief: Expand `${KEY}` references using cfg['vars'] and drop the group.

    Inputs:
      - cfg: Configuration mapping (mutated in-place).

    Outputs:
      - dict: The same mapping, expanded.

    Behavior:
      - A string that is exactly `${KEY}` is replaced by the variable's YAML
        value (so ports stay integers).
      - `${KEY}` inside a longer string is substituted textually.
      - Unknown references are left untouched; cycles raise ConfigError.
    """

    variables = cfg.pop("vars", None) or {}
    resolved: Dict[str, Any] = {}

    def _resolve(key: str, stack: List[str]) -> Any:
        if key in resolved:
            return resolved[key]
        if key in stack:
            raise ConfigError(
                "config.vars contains a cycle: %s" % " -> ".join(stack + [key])
            )
        value = _expand(variables[key], stack + [key])
        resolved[key] = value
        return value

    def _expand_string(text: str, stack: List[str]) -> Any:
        whole = _VAR_PATTERN.fullmatch(text)
        if whole and whole.group(1) in variables:
            return copy.deepcopy(_resolve(whole.group(1), stack))

        def _repl(match: re.Match) -> str:
            key = match.group(1)
            if key not in variables:
                return match.group(0)
            v = _resolve(key, stack)
            if isinstance(v, bool):
                return "true" if v else "false"
            if v is None:
                return "null"
            if isinstance(v, (int, float, str)):
                return str(v)
            return json.dumps(v)

        return _VAR_PATTERN.sub(_repl, text)

    def _expand(obj: Any, stack: List[str]) -> Any:
        if isinstance(obj, str):
            return _expand_string(obj, stack)
        if isinstance(obj, list):
            return [_expand(item, stack) for item in obj]
        if isinstance(obj, dict):
            return {k: _expand(v, stack) for k, v in obj.items()}
        return obj

    for key in list(variables):
        _resolve(key, [])
    for top_key in list(cfg):
        cfg[top_key] = _expand(cfg[top_key], [])
    return cfg


def load_config_dict(
    cfg: Dict[str, Any],
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> AppConfig:
    """Brief: Merge variables, expand, and validate an in-memory config mapping."""

    if not isinstance(cfg, dict):
        raise ConfigError("Configuration root must be a mapping")
    parse_config_variables(cfg, cli_vars=cli_vars, environ=environ)
    expand_variables(cfg)
    return validate_config(cfg)


def parse_config_file(
    config_path: str,
    *,
    cli_vars: Optional[List[str]] = None,
) -> AppConfig:
    """Brief: Read, variable-merge, and validate a YAML config file.

    Inputs:
      - config_path: Path to the YAML configuration file.
      - cli_vars: Optional list of CLI `KEY=YAML` assignments (from -v/--var).

    Outputs:
      - AppConfig: Validated configuration.

    Raises:
      - ConfigError: When the file is unreadable, not YAML, or invalid.
    """

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"cannot read config file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {config_path}: {exc}") from exc

    return load_config_dict(cfg, cli_vars=cli_vars)
