from __future__ import annotations

from typing import Final

from ...core.levels import LogLevel
from ...core.record import LogRecord

_CEF_SEVERITY: Final[dict[LogLevel, int]] = {
    LogLevel.TRACE: 1,
    LogLevel.DEBUG: 2,
    LogLevel.INFO: 3,
    LogLevel.WARN: 6,
    LogLevel.ERROR: 8,
    LogLevel.FATAL: 10,
}


class CefFormatter:
    """ArcSight Common Event Format (CEF:0) line for SIEM ingestion."""

    name = "cef"

    def __init__(
        self,
        vendor: str = "Relaylog",
        product: str = "relaylog",
        version: str = "1.0",
    ) -> None:
        self.vendor = vendor
        self.product = product
        self.version = version

    def format(self, record: LogRecord) -> str:
        severity = _CEF_SEVERITY.get(record.level, 0)
        header = (
            f"CEF:0|{self.vendor}|{self.product}|{self.version}"
            f"|{int(record.level)}|{record.level.name}|{severity}|"
        )
        extensions = [
            f"rt={int(record.timestamp.timestamp() * 1000)}",
            f"msg={record.message}",
        ]
        for key, value in (record.context or {}).items():
            extensions.append(f"{key}={value}")
        return header + " ".join(extensions)
