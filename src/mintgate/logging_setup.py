"""Structured logging helpers.

Library modules only create loggers. Output configuration belongs to
the entry point (the CLI calls configure_logging).
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Any


def _now_ms() -> int:
    return int(time.time() * 1000)


def configure_logging() -> None:
    """Configure stdlib logging for JSONL output on stderr.

    - Level from MINTGATE_LOG_LEVEL (default INFO).
    - Safe to call multiple times.
    """
    level_name = (os.environ.get("MINTGATE_LOG_LEVEL") or "INFO").strip().upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger("mintgate")
    if getattr(root, "_mintgate_configured", False):
        root.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root.handlers = [handler]
    root.setLevel(level)
    root.propagate = False
    setattr(root, "_mintgate_configured", True)


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    payload: dict[str, Any] = {"ts_ms": _now_ms(), "event": event}
    payload.update(fields)
    logger.info(json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str))
