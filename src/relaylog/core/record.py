"""
Immutable log record values flowing through the delivery pipeline.

A record is created once per log call and never mutated afterwards. Sinks
own a record only while it sits in their buffer.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from .levels import LogLevel


@dataclass(frozen=True)
class ErrorInfo:
    """Name, message and stack trace of an exception attached to a record."""

    name: str
    message: str
    stack: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorInfo:
        stack = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        ).rstrip("\n")
        return cls(name=type(exc).__name__, message=str(exc), stack=stack or None)


@dataclass(frozen=True)
class LogRecord:
    level: LogLevel
    message: str
    timestamp: datetime
    context: Mapping[str, Any] | None = None
    tags: tuple[str, ...] | None = None
    error: ErrorInfo | None = None

    @classmethod
    def create(
        cls,
        level: LogLevel | int | str,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        tags: Iterable[str] | None = None,
        exc: BaseException | ErrorInfo | None = None,
        timestamp: datetime | None = None,
    ) -> LogRecord:
        """Build a record, freezing context and tags.

        The context mapping is copied into a read-only proxy so later changes
        by the caller cannot leak into buffered records.
        """
        error: ErrorInfo | None
        if exc is None or isinstance(exc, ErrorInfo):
            error = exc
        else:
            error = ErrorInfo.from_exception(exc)
        tag_tuple = tuple(tags) if tags else None
        return cls(
            level=LogLevel.parse(level),
            message=str(message),
            timestamp=timestamp or datetime.now(timezone.utc),
            context=MappingProxyType(dict(context)) if context is not None else None,
            tags=tag_tuple,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert record to a plain dictionary for serialization."""
        data: dict[str, Any] = {
            "timestamp": format_timestamp(self.timestamp),
            "level": self.level.name,
            "message": self.message,
        }
        if self.context is not None:
            data["context"] = dict(self.context)
        if self.tags:
            data["tags"] = list(self.tags)
        if self.error is not None:
            data["error"] = {
                "name": self.error.name,
                "message": self.error.message,
                "stack": self.error.stack,
            }
        return data


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    iso = ts.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z")
