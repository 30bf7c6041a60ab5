"""Structured logging helpers."""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

_json_logs: bool | None = None


def _json_logs_enabled() -> bool:
    if _json_logs is not None:
        return _json_logs
    return os.getenv("BROWNIAN_JSON_LOGS", "false").lower() == "true"


def configure_logging(level: str = "WARNING", json_logs: bool | None = None) -> None:
    """Configure global logging on stderr. Respects BROWNIAN_JSON_LOGS env override.

    Standard output carries the sample stream, so log records never go there.
    An explicit ``json_logs`` choice is remembered for later ``log_event`` calls.
    """

    global _json_logs
    _json_logs = json_logs
    json_logs = _json_logs_enabled()

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s" if json_logs else "%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
        force=True,
    )


def log_event(logger: logging.Logger, event: str, *, json_logs: bool | None = None, **fields: Any) -> None:
    """Emit a structured log event."""

    if json_logs is None:
        json_logs = _json_logs_enabled()

    payload = {"event": event, **fields}
    if json_logs:
        logger.info(json.dumps(payload))
    else:
        logger.info(payload)
