from __future__ import annotations

from typing import Awaitable, Protocol, runtime_checkable

from ...core.record import LogRecord
from .buffered_file import BufferedFileSink, BufferedFileSinkConfig
from .console import ConsoleSink
from .http_client import HttpSink, HttpSinkConfig
from .worker import ChannelStatus, WorkerSink, WorkerSinkConfig


@runtime_checkable
class BaseSink(Protocol):
    """Uniform sink contract consumed by the logger.

    Sinks decouple producers from their destination (file, HTTP endpoint,
    worker process). ``write`` may complete synchronously or return an
    awaitable; either way it must not raise delivery failures to the caller.

    Optional lifecycle hooks: ``async start()`` arms timers or spawns workers,
    ``async close()`` drains and releases resources (idempotent).
    """

    def write(self, record: LogRecord) -> None | Awaitable[None]:  # noqa: D401
        """Accept one record for delivery."""
        ...


__all__ = [
    "BaseSink",
    "BufferedFileSink",
    "BufferedFileSinkConfig",
    "ChannelStatus",
    "ConsoleSink",
    "HttpSink",
    "HttpSinkConfig",
    "WorkerSink",
    "WorkerSinkConfig",
]
