from __future__ import annotations

"""InfluxDB line-protocol metrics sink.

Inputs:
  - Constructed from SinkConfig.config with fields such as write_url, org,
    bucket, precision and token.

Outputs:
  - Sink that POSTs each probe measurement as one line-protocol point to an
    InfluxDB-compatible HTTP write endpoint.
"""

import logging
from typing import Any, Dict, Optional

import requests

from .base import BaseSink

logger = logging.getLogger(__name__)

_PRECISION_SCALE = {"ns": 1_000_000_000, "us": 1_000_000, "ms": 1_000, "s": 1}


def _escape_tag(value: str) -> str:
    """Escape a measurement, tag key/value or field key for line protocol."""

    return (
        value.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(" ", "\\ ")
        .replace("=", "\\=")
    )


def _escape_field_string(value: str) -> str:
    """Quote a string field value, escaping quotes and backslashes."""

    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_line_protocol(
    measurement: str,
    tags: Dict[str, Optional[str]],
    fields: Dict[str, Any],
    ts: float,
    precision: str = "ns",
) -> str:
    """Format a single InfluxDB line-protocol entry.

    Inputs:
        measurement: Measurement name.
        tags: Mapping of tag keys to optional values; None values are skipped.
        fields: Mapping of field keys to values (ints, floats, bools, or strings).
        ts: Unix timestamp in seconds.
        precision: Timestamp precision ("ns", "us", "ms" or "s").

    Outputs:
        Single line-protocol string.

    Example:
        >>> format_line_protocol("m", {"domain": "example.com"}, {"ok": True}, 1.0, "s")
        'm,domain=example.com ok=true 1'
    """

    tag_parts = []
    for k, v in sorted(tags.items()):
        if v is None or v == "":
            continue
        tag_parts.append(f"{_escape_tag(str(k))}={_escape_tag(str(v))}")
    tag_section = "" if not tag_parts else "," + ",".join(tag_parts)

    field_parts = []
    for k, v in fields.items():
        key = _escape_tag(str(k))
        if v is None:
            continue
        if isinstance(v, bool):
            field_parts.append(f"{key}={'true' if v else 'false'}")
        elif isinstance(v, int):
            field_parts.append(f"{key}={v}i")
        elif isinstance(v, float):
            field_parts.append(f"{key}={v}")
        else:
            field_parts.append(f"{key}={_escape_field_string(str(v))}")

    if not field_parts:
        field_parts.append("count=1i")

    stamp = int(ts * _PRECISION_SCALE.get(precision, _PRECISION_SCALE["ns"]))
    return f"{_escape_tag(measurement)}{tag_section} {','.join(field_parts)} {stamp}"


class InfluxLogging(BaseSink):
    """InfluxDB-backed metrics sink.

    Inputs (constructor):
        write_url: HTTP endpoint for line-protocol writes
            (for example, "http://127.0.0.1:8086/api/v2/write").
        org: Optional organization (v2); sent as a query parameter.
        bucket: Optional bucket/database name; sent as a query parameter.
        precision: Timestamp precision for writes (default "ns").
        token: Optional token; adds "Authorization: Token <token>".
        timeout: Request timeout in seconds (default 2.0).
        session_kwargs: Optional attributes applied to the requests.Session
            (for example {"verify": False}).

    Outputs:
        Initialized InfluxLogging instance.
    """

    aliases = ("influx", "influxdb")

    def __init__(
        self,
        write_url: str,
        org: Optional[str] = None,
        bucket: Optional[str] = None,
        precision: str = "ns",
        token: Optional[str] = None,
        timeout: float = 2.0,
        session_kwargs: Optional[Dict[str, Any]] = None,
        **_: Any,
    ) -> None:
        super().__init__()
        self._write_url = str(write_url)
        self._precision = str(precision or "ns")
        if self._precision not in _PRECISION_SCALE:
            raise ValueError(f"unsupported InfluxDB precision {precision!r}")
        self._timeout = float(timeout)

        self._session = requests.Session()
        for attr, value in (session_kwargs or {}).items():
            setattr(self._session, attr, value)

        self._params: Dict[str, str] = {"precision": self._precision}
        if org is not None:
            self._params["org"] = str(org)
        if bucket is not None:
            self._params["bucket"] = str(bucket)

        self._headers: Dict[str, str] = {"Content-Type": "text/plain; charset=utf-8"}
        if token is not None:
            self._headers["Authorization"] = f"Token {token}"

    def close(self) -> None:
        try:
            self._session.close()
        finally:
            self._healthy = False

    def _write(self, measurement, fields, tags, ts) -> None:
        line = format_line_protocol(measurement, tags, fields, ts, self._precision)
        try:
            resp = self._session.post(
                self._write_url,
                params=self._params,
                data=line.encode("utf-8"),
                headers=self._headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("Failed to write %s to InfluxDB: %s", measurement, exc)
            self._healthy = False
            return
        if resp.status_code >= 400:
            logger.warning(
                "InfluxDB write failed with status %s: %s", resp.status_code, resp.text
            )
            self._healthy = False
        else:
            self._healthy = True
