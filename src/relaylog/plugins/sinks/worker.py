"""
Out-of-process channel: forward formatted records to a supervised worker.

The sink is a small supervisor with an explicit status:

    STARTING -> RUNNING -> RESTARTING -> RUNNING
    RESTARTING -> CIRCUIT_OPEN (until reset_circuit())
    any -> CLOSED

While no worker is running, formatted messages wait in an unbounded FIFO
replay queue. After a successful (re)spawn the backlog is replayed in order
before any newer message, then the consecutive-failure counter resets.
When failures exceed ``max_restarts`` the circuit opens: the transition is
reported once, no further restarts happen, and writes keep queueing.
"""

from __future__ import annotations

import asyncio
from collections import deque
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Final

from pydantic import BaseModel, ConfigDict, Field

from ...core import diagnostics
from ...core.defaults import (
    DEFAULT_MAX_RESTARTS,
    DEFAULT_RESTART_DELAY_SECONDS,
    DEFAULT_WORKER_SHUTDOWN_TIMEOUT_SECONDS,
)
from ...core.levels import LevelField, LogLevel
from ...core.process import SubprocessWorker, WorkerHandle, default_worker_command
from ...core.record import LogRecord
from ...core.serialization import log_envelope
from ...metrics.metrics import MetricsCollector
from ..formatters import Formatter, JsonFormatter
from ..utils import parse_plugin_config

__all__ = ["ChannelStatus", "WorkerSink", "WorkerSinkConfig"]

WorkerSpawner = Callable[[], Awaitable[WorkerHandle]]


class ChannelStatus(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    RESTARTING = "restarting"
    CIRCUIT_OPEN = "circuit_open"
    CLOSED = "closed"


_TRANSITIONS: Final[dict[ChannelStatus, frozenset[ChannelStatus]]] = {
    ChannelStatus.STARTING: frozenset(
        {
            ChannelStatus.RUNNING,
            ChannelStatus.RESTARTING,
            ChannelStatus.CIRCUIT_OPEN,
            ChannelStatus.CLOSED,
        }
    ),
    ChannelStatus.RUNNING: frozenset(
        {ChannelStatus.RESTARTING, ChannelStatus.CIRCUIT_OPEN, ChannelStatus.CLOSED}
    ),
    ChannelStatus.RESTARTING: frozenset(
        {
            ChannelStatus.RUNNING,
            ChannelStatus.RESTARTING,
            ChannelStatus.CIRCUIT_OPEN,
            ChannelStatus.CLOSED,
        }
    ),
    ChannelStatus.CIRCUIT_OPEN: frozenset(
        {ChannelStatus.RESTARTING, ChannelStatus.CLOSED}
    ),
    ChannelStatus.CLOSED: frozenset(),
}


class WorkerSinkConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    command: list[str] | None = None
    output: Path | None = None
    min_level: LevelField = LogLevel.INFO
    max_restarts: int = Field(default=DEFAULT_MAX_RESTARTS, ge=0)
    restart_delay_seconds: float = Field(default=DEFAULT_RESTART_DELAY_SECONDS, ge=0.0)
    shutdown_timeout_seconds: float = Field(
        default=DEFAULT_WORKER_SHUTDOWN_TIMEOUT_SECONDS, gt=0.0
    )

    def resolved_command(self) -> list[str]:
        if self.command:
            return list(self.command)
        return default_worker_command(str(self.output) if self.output else None)


class WorkerSink:
    """Deliver formatted records to a worker process, surviving its crashes."""

    name = "worker"

    def __init__(
        self,
        config: WorkerSinkConfig | dict | None = None,
        *,
        formatter: Formatter | None = None,
        spawner: WorkerSpawner | None = None,
        metrics: MetricsCollector | None = None,
        **kwargs: Any,
    ) -> None:
        cfg = parse_plugin_config(WorkerSinkConfig, config, **kwargs)
        self._config = cfg
        self._formatter = formatter or JsonFormatter()
        self._spawner = spawner or self._spawn_subprocess
        self._metrics = metrics
        self._status = ChannelStatus.STARTING
        self._handle: WorkerHandle | None = None
        self._queue: deque[str] = deque()
        self._restarts = 0
        self._watcher: asyncio.Task[None] | None = None
        self._restart_task: asyncio.Task[None] | None = None
        self._close_task: asyncio.Task[None] | None = None
        self._started = False

    @property
    def status(self) -> ChannelStatus:
        return self._status

    @property
    def queued(self) -> int:
        return len(self._queue)

    @property
    def restarts(self) -> int:
        return self._restarts

    async def _spawn_subprocess(self) -> WorkerHandle:
        return await SubprocessWorker.spawn(self._config.resolved_command())

    async def start(self) -> None:
        if self._started or self._status is ChannelStatus.CLOSED:
            return
        self._started = True
        await self._spawn()

    def write(self, record: LogRecord) -> None:
        if self._status is ChannelStatus.CLOSED or record.level < self._config.min_level:
            return
        try:
            data = self._formatter.format(record)
        except Exception as exc:
            diagnostics.warn(
                "worker-sink",
                "formatter failed; record dropped",
                error=str(exc),
            )
            return
        handle = self._handle
        if self._status is ChannelStatus.RUNNING and handle is not None:
            try:
                handle.send(log_envelope(data))
                return
            except Exception as exc:
                self._queue.append(data)
                self._on_failure(handle, f"send failed: {exc}")
                return
        self._queue.append(data)

    def _transition(self, status: ChannelStatus) -> None:
        if status not in _TRANSITIONS[self._status]:
            raise RuntimeError(
                f"invalid worker channel transition {self._status.value} -> {status.value}"
            )
        self._status = status

    async def _spawn(self) -> None:
        try:
            handle = await self._spawner()
        except Exception as exc:
            self._on_failure(None, f"spawn failed: {exc}")
            return
        if self._status is ChannelStatus.CLOSED:
            await self._stop_handle(handle)
            return
        self._handle = handle
        self._watcher = asyncio.get_running_loop().create_task(self._watch(handle))
        self._transition(ChannelStatus.RUNNING)
        if self._replay(handle):
            # A clean spawn and replay resets the consecutive-failure budget
            self._restarts = 0

    def _replay(self, handle: WorkerHandle) -> bool:
        while self._queue:
            try:
                handle.send(log_envelope(self._queue[0]))
            except Exception as exc:
                self._on_failure(handle, f"replay failed: {exc}")
                return False
            self._queue.popleft()
        return True

    async def _watch(self, handle: WorkerHandle) -> None:
        try:
            code = await handle.wait()
        except asyncio.CancelledError:
            return
        except Exception as exc:
            self._on_failure(handle, f"worker error: {exc}")
            return
        if handle is not self._handle or self._status is ChannelStatus.CLOSED:
            return
        if code != 0:
            self._on_failure(handle, f"worker exited with code {code}")
        else:
            self._on_failure(handle, "worker exited unexpectedly")

    def _on_failure(self, handle: WorkerHandle | None, reason: str) -> None:
        if self._status is ChannelStatus.CLOSED:
            return
        if handle is not None:
            if handle is not self._handle:
                return  # stale notification for a replaced worker
            self._handle = None
            self._cancel_watcher()
            try:
                handle.terminate()
            except Exception:
                pass
        self._restarts += 1
        diagnostics.warn(
            "worker-sink",
            "worker failed",
            reason=reason,
            restarts=self._restarts,
            queued=len(self._queue),
        )
        if self._restarts > self._config.max_restarts:
            self._open_circuit()
            return
        self._transition(ChannelStatus.RESTARTING)
        self._schedule_restart(self._config.restart_delay_seconds)

    def _cancel_watcher(self) -> None:
        watcher, self._watcher = self._watcher, None
        if watcher is None:
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if watcher is not current:
            watcher.cancel()

    def _open_circuit(self) -> None:
        if self._status is ChannelStatus.CIRCUIT_OPEN:
            return
        self._transition(ChannelStatus.CIRCUIT_OPEN)
        diagnostics.warn(
            "worker-sink",
            "circuit open; worker restarts disabled",
            restarts=self._restarts,
            max_restarts=self._config.max_restarts,
            queued=len(self._queue),
        )

    def _schedule_restart(self, delay: float) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._restart_task = loop.create_task(self._restart_after(delay))

    async def _restart_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._status is not ChannelStatus.RESTARTING:
            return
        if self._metrics is not None:
            await self._metrics.record_worker_restart(sink=self.name)
        await self._spawn()

    async def reset_circuit(self) -> None:
        """Leave CIRCUIT_OPEN: clear the failure count and spawn immediately."""
        if self._status is not ChannelStatus.CIRCUIT_OPEN:
            return
        self._restarts = 0
        self._transition(ChannelStatus.RESTARTING)
        await self._spawn()

    async def _stop_handle(self, handle: WorkerHandle) -> None:
        try:
            await handle.stop(self._config.shutdown_timeout_seconds)
        except Exception as exc:
            diagnostics.warn("worker-sink", "worker shutdown failed", error=str(exc))

    async def close(self) -> None:
        if self._close_task is None:
            self._close_task = asyncio.ensure_future(self._close())
        await self._close_task

    async def _close(self) -> None:
        self._transition(ChannelStatus.CLOSED)
        if self._restart_task is not None:
            self._restart_task.cancel()
            self._restart_task = None
        handle, self._handle = self._handle, None
        if handle is not None:
            await self._stop_handle(handle)
        self._cancel_watcher()
        if self._queue:
            diagnostics.warn(
                "worker-sink",
                "closed with undelivered messages",
                queued=len(self._queue),
            )


PLUGIN_METADATA = {
    "name": "worker",
    "version": "1.0.0",
    "plugin_type": "sink",
    "entry_point": "relaylog.plugins.sinks.worker:WorkerSink",
    "description": "Supervised out-of-process sink with restart backoff, replay queue and circuit breaker.",
    "author": "Relaylog Core",
    "api_version": "1.0",
}
