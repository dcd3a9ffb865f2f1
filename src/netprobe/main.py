from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from .config import (
    AppConfig,
    ConfigError,
    SinkConfig,
    build_probe_config,
    init_logging,
    parse_config_file,
)
from .probes import DnsProbe
from .sinks import BaseSink, load_sink


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netprobe",
        description="Run DNS/DNSSEC health probes once and emit the results",
    )
    parser.add_argument("--config", help="Path to YAML config")
    parser.add_argument(
        "-v",
        "--var",
        action="append",
        default=[],
        metavar="KEY=YAML",
        help="Override a config variable (repeatable)",
    )
    adhoc = parser.add_argument_group("ad-hoc probe (ignored with --config)")
    adhoc.add_argument("--domain", help="Domain to probe")
    adhoc.add_argument("--resolver-ip", help="Resolver IP address")
    adhoc.add_argument("--resolver-port", type=int, default=53)
    adhoc.add_argument(
        "--protocol",
        default="udp",
        help="Resolver transport: udp, tcp or tcp-tls (default udp)",
    )
    adhoc.add_argument("--timeout", default="2s", help="Per-exchange timeout (e.g. 2s, 500ms)")
    adhoc.add_argument(
        "--log-level", default="warn", help="debug, info, warn, error or crit"
    )
    return parser


def _adhoc_config(args: argparse.Namespace) -> AppConfig:
    if not args.domain or not args.resolver_ip:
        raise ConfigError("either --config or both --domain and --resolver-ip are required")
    probe = build_probe_config(
        domain=args.domain,
        resolver_ip=args.resolver_ip,
        resolver_port=args.resolver_port,
        resolver_protocol=args.protocol,
        timeout=args.timeout,
    )
    return AppConfig(
        logging={"level": args.log_level},
        sinks=[SinkConfig(backend="stdout")],
        probes=[probe],
    )


def run_probes(cfg: AppConfig, sinks: Sequence[BaseSink]) -> int:
    """Brief: Run every configured probe once, in order.

    Inputs:
      - cfg: Validated AppConfig.
      - sinks: Sinks receiving each probe's output.

    Outputs:
      - int: Number of probes run.
    """

    count = 0
    for probe_cfg in cfg.probes:
        DnsProbe(probe_cfg).gather(sinks)
        count += 1
    return count


def main(argv: List[str] | None = None) -> int:
    """
    Main entry point.
    Parses arguments, loads configuration, runs each probe once and writes the
    results to the configured sinks.

    Args:
        argv: Command-line arguments.

    Returns:
        0 when all probes ran, 1 on configuration errors.

    Example use:
        CLI:
            netprobe --config config.yaml -v RESOLVER=1.1.1.1
            netprobe --domain example.com --resolver-ip 8.8.8.8 --protocol tcp-tls --resolver-port 853
    """
    args = _build_parser().parse_args(argv)

    try:
        cfg = parse_config_file(args.config, cli_vars=args.var) if args.config else _adhoc_config(args)
    except ConfigError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 1

    init_logging(cfg.logging)
    logger = logging.getLogger("netprobe.main")
    if args.config:
        logger.info("Loaded config from %s (%d probe(s))", args.config, len(cfg.probes))

    sinks: List[BaseSink] = []
    try:
        for sink_cfg in cfg.sinks:
            sinks.append(load_sink(sink_cfg))
        run_probes(cfg, sinks)
    except ConfigError as exc:
        logger.error("config error: %s", exc)
        return 1
    finally:
        for sink in sinks:
            sink.close()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
