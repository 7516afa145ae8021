from __future__ import annotations

import os
import socket
from datetime import timezone
from typing import Final

from ...core.levels import LogLevel
from ...core.record import LogRecord

_SYSLOG_SEVERITY: Final[dict[LogLevel, int]] = {
    LogLevel.TRACE: 7,  # debug
    LogLevel.DEBUG: 7,  # debug
    LogLevel.INFO: 6,  # informational
    LogLevel.WARN: 4,  # warning
    LogLevel.ERROR: 3,  # error
    LogLevel.FATAL: 2,  # critical
}


def _default_hostname() -> str:
    return os.getenv("HOSTNAME") or socket.gethostname() or "localhost"


class SyslogFormatter:
    """BSD syslog (RFC 3164) style line: ``<PRI>Mmm dd HH:MM:SS host app: msg``."""

    name = "syslog"

    def __init__(
        self,
        facility: int = 16,  # local0
        hostname: str | None = None,
        app_name: str = "relaylog",
    ) -> None:
        self.facility = facility
        self.hostname = hostname or _default_hostname()
        self.app_name = app_name

    def priority(self, level: LogLevel) -> int:
        return self.facility * 8 + _SYSLOG_SEVERITY.get(level, 6)

    def format(self, record: LogRecord) -> str:
        ts = record.timestamp.astimezone(timezone.utc).strftime("%b %d %H:%M:%S")
        return (
            f"<{self.priority(record.level)}>{ts} {self.hostname} "
            f"{self.app_name}: {record.message}"
        )
