"""
orjson-based encoding for batch bodies and worker envelopes.

Everything that leaves the process as JSON goes through this module so the
wire formats stay in one place:

- HTTP batch body: a JSON array of formatter output strings
- worker envelope: one JSON object per line, ``{"type": "log", "data": ...}``
  or ``{"type": "close"}``
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import orjson

from .errors import ErrorCategory, RelaylogError

LOG_MESSAGE = "log"
CLOSE_MESSAGE = "close"


def _default(obj: Any) -> Any:
    """Default serializer hook for unsupported types.

    Context values are primitives or opaque objects; opaque ones are rendered
    with ``str`` rather than failing the whole record.
    """
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    return str(obj)


def dumps(payload: Any) -> str:
    """Compact JSON text."""
    try:
        return orjson.dumps(payload, default=_default).decode("utf-8")
    except TypeError as e:
        raise RelaylogError(
            "Serialization failed",
            category=ErrorCategory.SERIALIZATION,
            cause=e,
        ) from e


def serialize_batch(lines: Sequence[str]) -> bytes:
    """Encode a batch of formatted records as a JSON array body."""
    return orjson.dumps(list(lines))


def serialize_ndjson(lines: Sequence[str]) -> bytes:
    """Encode pre-rendered JSON lines as a newline-delimited body."""
    if not lines:
        return b""
    return ("\n".join(lines) + "\n").encode("utf-8")


def log_envelope(data: str) -> dict[str, str]:
    return {"type": LOG_MESSAGE, "data": data}


def close_envelope() -> dict[str, str]:
    return {"type": CLOSE_MESSAGE}


def encode_envelope(message: Mapping[str, Any]) -> bytes:
    """Encode a worker envelope as one newline-terminated JSON line."""
    return orjson.dumps(message, option=orjson.OPT_APPEND_NEWLINE)


def decode_envelope(line: bytes | str) -> dict[str, Any]:
    message = orjson.loads(line)
    if not isinstance(message, dict) or "type" not in message:
        raise RelaylogError(
            "Invalid worker envelope",
            category=ErrorCategory.SERIALIZATION,
        )
    return message
