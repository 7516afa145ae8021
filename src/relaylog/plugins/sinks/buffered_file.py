"""
Buffered append-mode file sink driven by the flush trigger engine.

Formatted lines accumulate in memory and leave the process as one chunk per
flush. Chunk writes are offloaded to a worker thread and ordered by a lock,
so ``write()`` never blocks on disk I/O.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, TextIO

from pydantic import BaseModel, ConfigDict, Field

from ...core import diagnostics
from ...core.defaults import DEFAULT_AUTO_FLUSH
from ...core.io import open_append_stream
from ...core.levels import LevelField, LogLevel
from ...core.record import LogRecord
from ...core.triggers import AutoFlushConfig, FlushReason, TriggerEngine
from ...metrics.metrics import MetricsCollector
from ..formatters import Formatter, JsonFormatter
from ..utils import parse_plugin_config

__all__ = ["BufferedFileSink", "BufferedFileSinkConfig"]

StreamOpener = Callable[[Path, str], TextIO]


def _default_opener(path: Path, encoding: str) -> TextIO:
    return open_append_stream(path, encoding=encoding)


class BufferedFileSinkConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    path: Path
    min_level: LevelField = LogLevel.INFO
    auto_flush: AutoFlushConfig = Field(default=DEFAULT_AUTO_FLUSH)
    encoding: str = "utf-8"


class BufferedFileSink:
    """Buffer formatted records and append them to a file on trigger.

    - Records below ``min_level`` or written after ``close()`` began are ignored
    - A failed chunk write is reported and the chunk is dropped (no retry)
    - ``close()`` flushes once more and closes the stream exactly once
    """

    name = "buffered_file"

    def __init__(
        self,
        config: BufferedFileSinkConfig | dict | None = None,
        *,
        formatter: Formatter | None = None,
        metrics: MetricsCollector | None = None,
        opener: StreamOpener | None = None,
        **kwargs: Any,
    ) -> None:
        cfg = parse_plugin_config(BufferedFileSinkConfig, config, **kwargs)
        self._config = cfg
        self._formatter = formatter or JsonFormatter()
        self._metrics = metrics
        # Fail fast: nothing can be buffered safely without a destination
        self._stream = (opener or _default_opener)(cfg.path, cfg.encoding)
        self._buffer: list[str] = []
        self._write_lock = asyncio.Lock()
        self._pending: set[asyncio.Task[None]] = set()
        self._closing = False
        self._closed = False
        self._close_task: asyncio.Task[None] | None = None
        self._triggers = TriggerEngine(cfg.auto_flush, self._on_trigger, name=self.name)

    @property
    def config(self) -> BufferedFileSinkConfig:
        return self._config

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        if not self._closing:
            self._triggers.start()

    def write(self, record: LogRecord) -> None:
        if self._closing or self._closed or record.level < self._config.min_level:
            return
        try:
            line = self._formatter.format(record)
        except Exception as exc:
            diagnostics.warn(
                "buffered-file-sink",
                "formatter failed; record dropped",
                path=str(self._config.path),
                error=str(exc),
            )
            return
        self._buffer.append(line)
        self._triggers.on_write(record.level, len(self._buffer))

    def _on_trigger(self, _reason: FlushReason) -> None:
        self.flush()

    def flush(self) -> None:
        """Drain the buffer into one chunk write. Never raises."""
        if not self._buffer or self._closed:
            return
        # Swap, not copy: writes after this point start the next generation
        batch, self._buffer = self._buffer, []
        data = "\n".join(batch) + "\n"
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write_chunk(data, len(batch))
            return
        task = loop.create_task(self._write_async(data, len(batch)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_async(self, data: str, count: int) -> None:
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._write_blocking, data)
            except Exception as exc:
                self._report_write_failure(exc, count)
                if self._metrics is not None:
                    await self._metrics.record_delivery_failure(
                        sink=self.name, records=count
                    )
                return
        if self._metrics is not None:
            await self._metrics.record_flush(sink=self.name, records=count)

    def _write_chunk(self, data: str, count: int) -> None:
        try:
            self._write_blocking(data)
        except Exception as exc:
            self._report_write_failure(exc, count)

    def _write_blocking(self, data: str) -> None:
        self._stream.write(data)
        self._stream.flush()

    def _report_write_failure(self, exc: BaseException, count: int) -> None:
        diagnostics.warn(
            "buffered-file-sink",
            "write failed; chunk dropped",
            path=str(self._config.path),
            records=count,
            error=str(exc),
        )

    async def close(self) -> None:
        if self._close_task is None:
            self._close_task = asyncio.ensure_future(self._close())
        await self._close_task

    async def _close(self) -> None:
        self._closing = True
        self._triggers.cancel()
        self.flush()
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        self._closed = True
        try:
            await asyncio.to_thread(self._stream.close)
        except Exception as exc:
            diagnostics.warn(
                "buffered-file-sink",
                "stream close failed",
                path=str(self._config.path),
                error=str(exc),
            )


PLUGIN_METADATA = {
    "name": "buffered_file",
    "version": "1.0.0",
    "plugin_type": "sink",
    "entry_point": "relaylog.plugins.sinks.buffered_file:BufferedFileSink",
    "description": "Buffered append-mode file sink with size/interval/level/idle flush triggers.",
    "author": "Relaylog Core",
    "api_version": "1.0",
}
