from __future__ import annotations

"""JSON-lines metrics sinks (file and stdout).

Each measurement is written as one compact JSON object:
{"ts": ..., "measurement": ..., "tags": {...}, "fields": {...}, "hostname": ...}
"""

import json
import logging
import os
import socket
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from .base import BaseSink

logger = logging.getLogger(__name__)


def _hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:  # pragma: no cover - environment specific
        return "unknown-host"


def _encode(
    measurement: str,
    fields: Dict[str, Any],
    tags: Dict[str, Optional[str]],
    ts: float,
) -> str:
    payload = {
        "ts": float(ts),
        "measurement": measurement,
        "tags": {k: v for k, v in tags.items() if v is not None},
        "fields": fields,
        "hostname": _hostname(),
    }
    return json.dumps(payload, separators=(",", ":"), default=str)


class JsonLogging(BaseSink):
    """JSON file sink appending one line per measurement.

    Inputs (constructor):
        file_path: Path to the JSON-lines file. Parent directories are created
            if they do not already exist.

    Outputs:
        Initialized JsonLogging instance; a header line marks the start of a
        logging session.
    """

    aliases = ("json", "file")

    def __init__(self, file_path: str, **_: Any) -> None:
        self._healthy = False
        self._fh: Optional[TextIO] = None

        path = os.path.abspath(os.path.expanduser(str(file_path)))
        self._file_path = path
        try:
            dir_path = os.path.dirname(path)
            if dir_path:
                os.makedirs(dir_path, exist_ok=True)
            self._fh = open(path, "a", encoding="utf-8")
        except OSError:
            logger.exception("Failed to open JSON metrics file %s", path)
            return

        header = {
            "log_start": datetime.now(timezone.utc).isoformat(),
            "hostname": _hostname(),
        }
        self._fh.write(json.dumps(header, separators=(",", ":")) + "\n")
        self._fh.flush()
        self._healthy = True

    @property
    def file_path(self) -> str:
        return self._file_path

    def health_check(self) -> bool:
        return bool(self._healthy and self._fh is not None)

    def close(self) -> None:
        fh, self._fh = self._fh, None
        self._healthy = False
        if fh is not None:
            try:
                fh.close()
            except OSError:  # pragma: no cover
                logger.exception("Failed to close JSON metrics file")

    def _write(self, measurement, fields, tags, ts) -> None:
        if not self.health_check():
            return
        try:
            self._fh.write(_encode(measurement, fields, tags, ts) + "\n")
            self._fh.flush()
        except OSError:
            logger.exception("Failed to append measurement to %s", self._file_path)
            self._healthy = False


class StdoutLogging(BaseSink):
    """Sink printing one JSON line per measurement to standard output."""

    aliases = ("stdout", "console")

    def __init__(self, stream: Optional[TextIO] = None, **_: Any) -> None:
        super().__init__()
        self._stream = stream

    def _write(self, measurement, fields, tags, ts) -> None:
        stream = self._stream or sys.stdout
        stream.write(_encode(measurement, fields, tags, ts) + "\n")
        stream.flush()
