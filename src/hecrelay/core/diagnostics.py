"""
Structured diagnostics output for the relay.

Each call emits one JSON line (serialized with orjson) to stderr, which the
Lambda runtime forwards to CloudWatch Logs. The minimum level is read from
``HECRELAY_CORE__LOG_LEVEL`` on first use and can be changed with
`configure`.
"""

from __future__ import annotations

import os
import sys
import time
from typing import Any, Callable

import orjson

_LEVELS: dict[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
}

Writer = Callable[[dict[str, Any]], None]


def _default_writer(payload: dict[str, Any]) -> None:
    line = orjson.dumps(payload, default=str)
    sys.stderr.write(line.decode("utf-8") + "\n")
    sys.stderr.flush()


_writer: Writer = _default_writer
_threshold: int | None = None


def _resolve_threshold() -> int:
    global _threshold
    if _threshold is None:
        raw = os.getenv("HECRELAY_CORE__LOG_LEVEL", "INFO").strip().upper()
        _threshold = _LEVELS.get(raw, _LEVELS["INFO"])
    return _threshold


def configure(level: str) -> None:
    """Set the minimum level emitted (DEBUG, INFO, WARNING, ERROR)."""
    global _threshold
    try:
        _threshold = _LEVELS[level.upper()]
    except KeyError:
        raise ValueError(f"unknown diagnostics level: {level!r}") from None


def is_enabled_for(level: str) -> bool:
    return _LEVELS[level] >= _resolve_threshold()


def emit(level: str, component: str, message: str, **fields: Any) -> None:
    if not is_enabled_for(level):
        return
    payload: dict[str, Any] = {
        "timestamp": time.time(),
        "level": level,
        "component": component,
        "message": message,
    }
    payload.update(fields)
    _writer(payload)


def debug(component: str, message: str, **fields: Any) -> None:
    emit("DEBUG", component, message, **fields)


def info(component: str, message: str, **fields: Any) -> None:
    emit("INFO", component, message, **fields)


def warn(component: str, message: str, **fields: Any) -> None:
    emit("WARNING", component, message, **fields)


def error(component: str, message: str, **fields: Any) -> None:
    emit("ERROR", component, message, **fields)


def set_writer_for_tests(writer: Writer) -> None:
    global _writer
    _writer = writer


def _reset_for_tests() -> None:
    global _writer, _threshold
    _writer = _default_writer
    _threshold = None
