from __future__ import annotations

from typing import Protocol, runtime_checkable

from ...core.record import LogRecord
from .cef import CefFormatter
from .json_formatter import JsonFormatter
from .syslog import SyslogFormatter
from .text import Colors, TextFormatter


@runtime_checkable
class Formatter(Protocol):
    """Render a record to a single string. Pure; no state between calls."""

    def format(self, record: LogRecord) -> str:  # noqa: D401
        ...


__all__ = [
    "CefFormatter",
    "Colors",
    "Formatter",
    "JsonFormatter",
    "SyslogFormatter",
    "TextFormatter",
]
