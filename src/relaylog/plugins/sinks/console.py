from __future__ import annotations

import sys
from typing import TextIO

from ...core.levels import LogLevel
from ...core.record import LogRecord
from ..formatters import Formatter, TextFormatter


class ConsoleSink:
    """Stateless console sink.

    - TRACE/DEBUG/INFO go to stdout, WARN and above to stderr
    - No buffering and nothing to close
    - Never raises upstream; stream errors are contained
    """

    name = "console"

    def __init__(
        self,
        formatter: Formatter | None = None,
        min_level: LogLevel | str = LogLevel.INFO,
        *,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self._formatter = formatter or TextFormatter()
        self._min_level = LogLevel.parse(min_level)
        self._stdout = stdout
        self._stderr = stderr

    def write(self, record: LogRecord) -> None:
        if record.level < self._min_level:
            return
        try:
            line = self._formatter.format(record)
            if record.level >= LogLevel.WARN:
                stream = self._stderr or sys.stderr
            else:
                stream = self._stdout or sys.stdout
            stream.write(line + "\n")
            stream.flush()
        except Exception:
            # Contain sink errors; do not propagate
            return None


PLUGIN_METADATA = {
    "name": "console",
    "version": "1.0.0",
    "plugin_type": "sink",
    "entry_point": "relaylog.plugins.sinks.console:ConsoleSink",
    "description": "Stateless console sink splitting stdout/stderr by level",
    "author": "Relaylog Core",
    "api_version": "1.0",
}
