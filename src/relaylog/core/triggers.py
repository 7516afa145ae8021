"""
Flush trigger engine shared by the buffering sinks.

Four independent conditions decide when a buffer must drain:

- size: buffered count reaches ``on_size`` (checked on every write)
- level: the incoming record is at or above ``on_level`` (checked on every write)
- interval: a periodic timer, re-armed after every flush
- idle: a one-shot timer cancelled and re-scheduled by every write

Any firing condition results in exactly one call to the owner's flush
callback. Timers live on the running asyncio loop as ``TimerHandle`` objects
so evaluation and re-arming stay synchronous.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from . import diagnostics
from .levels import LevelField, LogLevel


class AutoFlushConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    enabled: bool = True
    interval_seconds: float | None = Field(default=None, gt=0.0)
    on_size: int | None = Field(default=None, ge=1)
    on_level: LevelField | None = None
    on_idle_seconds: float | None = Field(default=None, gt=0.0)


class FlushReason(str, Enum):
    SIZE = "size"
    LEVEL = "level"
    INTERVAL = "interval"
    IDLE = "idle"


class TriggerEngine:
    """Decide when a buffer drains and own the interval/idle timers.

    The engine never raises. A condition that is not configured simply never
    fires; ``enabled=False`` disables every automatic flush.
    """

    def __init__(
        self,
        config: AutoFlushConfig,
        flush: Callable[[FlushReason], None],
        *,
        name: str = "sink",
    ) -> None:
        self._config = config
        self._flush = flush
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._interval_handle: asyncio.TimerHandle | None = None
        self._idle_handle: asyncio.TimerHandle | None = None
        self._running = False

    @property
    def config(self) -> AutoFlushConfig:
        return self._config

    @property
    def running(self) -> bool:
        return self._running

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        if self._running or not self._config.enabled:
            return
        self._loop = loop or asyncio.get_running_loop()
        self._running = True
        self._arm_interval()

    def cancel(self) -> None:
        self._running = False
        if self._interval_handle is not None:
            self._interval_handle.cancel()
            self._interval_handle = None
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    def evaluate(self, level: LogLevel, buffered: int) -> FlushReason | None:
        """Return the write-time reason to flush now, or ``None``."""
        cfg = self._config
        if not cfg.enabled:
            return None
        if cfg.on_size is not None and buffered >= cfg.on_size:
            return FlushReason.SIZE
        if cfg.on_level is not None and level >= cfg.on_level:
            return FlushReason.LEVEL
        return None

    def on_write(self, level: LogLevel, buffered: int) -> FlushReason | None:
        """Re-arm the idle timer and flush synchronously if a condition holds."""
        if not self._config.enabled:
            return None
        self._arm_idle()
        reason = self.evaluate(level, buffered)
        if reason is not None:
            self._fire(reason)
        return reason

    def _fire(self, reason: FlushReason) -> None:
        try:
            self._flush(reason)
        except Exception as exc:
            diagnostics.warn(
                "triggers",
                "flush callback failed",
                sink=self._name,
                reason=reason.value,
                error=str(exc),
            )
        self._arm_interval()

    def _arm_interval(self) -> None:
        interval = self._config.interval_seconds
        if not self._running or interval is None or self._loop is None:
            return
        if self._interval_handle is not None:
            self._interval_handle.cancel()
        self._interval_handle = self._loop.call_later(interval, self._on_interval)

    def _arm_idle(self) -> None:
        idle = self._config.on_idle_seconds
        if not self._running or idle is None or self._loop is None:
            return
        if self._idle_handle is not None:
            self._idle_handle.cancel()
        self._idle_handle = self._loop.call_later(idle, self._on_idle)

    def _on_interval(self) -> None:
        self._interval_handle = None
        self._fire(FlushReason.INTERVAL)

    def _on_idle(self) -> None:
        self._idle_handle = None
        self._fire(FlushReason.IDLE)
