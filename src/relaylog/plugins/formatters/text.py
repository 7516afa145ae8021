from __future__ import annotations

from typing import Final

from ...core.levels import LogLevel
from ...core.record import LogRecord, format_timestamp
from ...core.serialization import dumps


class Colors:
    RESET: Final = "\x1b[0m"

    RED: Final = "\x1b[31m"
    GREEN: Final = "\x1b[92m"
    BLUE: Final = "\x1b[34m"
    MAGENTA: Final = "\x1b[35m"
    CYAN: Final = "\x1b[36m"
    GRAY: Final = "\x1b[90m"

    ORANGE: Final = "\x1b[38;2;253;182;0m"

    RED_BG: Final = "\x1b[41m"


_LEVEL_COLORS: Final[dict[LogLevel, str]] = {
    LogLevel.TRACE: Colors.BLUE,
    LogLevel.DEBUG: Colors.MAGENTA,
    LogLevel.INFO: Colors.BLUE,
    LogLevel.WARN: Colors.ORANGE,
    LogLevel.ERROR: Colors.RED_BG,
    LogLevel.FATAL: Colors.RED_BG,
}


class TextFormatter:
    """Human-readable line: ``[ts] [LEVEL] [tag] message {context}``.

    An attached error is appended on following lines as
    ``Error: <message>`` and its stack trace.
    """

    name = "text"

    def __init__(self, include_timestamp: bool = True, colored: bool = True) -> None:
        self.include_timestamp = include_timestamp
        self.colored = colored

    def format(self, record: LogRecord) -> str:
        parts: list[str] = []
        if self.include_timestamp:
            parts.append(f"[{format_timestamp(record.timestamp)}]")
        if self.colored:
            parts.append(_LEVEL_COLORS.get(record.level, ""))
        parts.append(f"[{record.level.name}]")
        if self.colored:
            parts.append(Colors.RESET)
        for tag in record.tags or ():
            parts.append(f"[{tag}]")
        parts.append(record.message)
        if record.context:
            parts.append(dumps(dict(record.context)))

        result = " ".join(parts)
        if record.error is not None:
            result += f"\nError: {record.error.message}\n{record.error.stack or ''}"
        return result
