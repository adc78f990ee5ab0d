from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import IO, Optional


class JsonFormatter(logging.Formatter):
    """
    One JSON object per log line:
      { "t": 1712345678901, "lvl": "INFO", "name": "calibration", "msg": "text", "extra": {...} }
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        # callers pass structured context as extra={"extra": {...}}
        if hasattr(record, "extra") and isinstance(record.extra, dict):  # type: ignore[attr-defined]
            payload["extra"] = record.extra  # type: ignore[attr-defined]
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    lvl = getattr(logging, name, None)
    return lvl if isinstance(lvl, int) else logging.INFO


def setup_logging(level: Optional[str] = None, stream: Optional[IO[str]] = None, force: bool = False) -> None:
    """
    Configure the root logger with JSON formatting.

    Level precedence:
      - explicit `level` arg
      - env LOG_LEVEL (DEBUG/INFO/WARNING/ERROR)
      - default INFO

    Later calls are no-ops unless `force` is set (the CLI uses it to apply
    the level from its config file).
    """
    root = logging.getLogger()
    if getattr(root, "_georef_configured", False) and not force:
        return

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter())

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(level))
    root._georef_configured = True  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; ensures root is configured."""
    setup_logging()
    return logging.getLogger(name)
