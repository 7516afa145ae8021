from __future__ import annotations

from ...core.record import LogRecord
from ...core.serialization import dumps


class JsonFormatter:
    """Compact single-line JSON: timestamp, level, message, context, tags, error."""

    name = "json"

    def format(self, record: LogRecord) -> str:
        return dumps(record.to_dict())
