"""
Internal diagnostics channel for non-fatal pipeline errors.

Sinks never raise delivery failures into the producer's call stack; they
report them here instead. Each diagnostic is a single JSON line on stderr:

    {"component":"http-sink","level":"WARN","message":"...","endpoint":"..."}

Emission is controlled by ``Settings().core.internal_logging_enabled``. The
setting is read once and cached in ``_internal_logging_enabled``; tests reset
the cache to ``None`` between runs.
"""

from __future__ import annotations

import sys
import time
from typing import Any

import orjson

_internal_logging_enabled: bool | None = None

# Minimum seconds between two diagnostics sharing a rate-limit key
RATE_LIMIT_WINDOW_SECONDS = 5.0
_last_emitted: dict[str, float] = {}


def _is_enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(
                Settings().core.internal_logging_enabled
            )
        except Exception:
            _internal_logging_enabled = True
    return _internal_logging_enabled


def _rate_limited(key: str | None) -> bool:
    if key is None:
        return False
    now = time.monotonic()
    last = _last_emitted.get(key)
    if last is not None and now - last < RATE_LIMIT_WINDOW_SECONDS:
        return True
    _last_emitted[key] = now
    return False


def _emit(level: str, component: str, message: str, fields: dict[str, Any]) -> None:
    rate_key = fields.pop("_rate_limit_key", None)
    if not _is_enabled() or _rate_limited(rate_key):
        return
    payload = {"component": component, "level": level, "message": message}
    payload.update(fields)
    try:
        line = orjson.dumps(payload, default=str)
        sys.stderr.write(line.decode("utf-8") + "\n")
        sys.stderr.flush()
    except Exception:
        # Diagnostics must never break the pipeline
        pass


def warn(component: str, message: str, **fields: Any) -> None:
    """Report a recovered failure (dropped chunk, failed batch, restart)."""
    _emit("WARN", component, message, fields)


def debug(component: str, message: str, **fields: Any) -> None:
    _emit("DEBUG", component, message, fields)


def _reset_rate_limits() -> None:
    """Reset rate-limit memory (for testing only)."""
    _last_emitted.clear()
