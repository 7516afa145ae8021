"""
Logger facade fanning each record out to every attached sink.

Log calls never block and never raise: a sink whose ``write`` returns an
awaitable is scheduled as a task, and failures from either path are reported
through diagnostics.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Iterable

from . import diagnostics
from ..plugins.utils import get_plugin_name
from .defaults import DEFAULT_MIN_LEVEL
from .levels import LogLevel
from .record import LogRecord


class Logger:
    """Async-aware logger facade.

    Child loggers created with :meth:`with_tags` share the parent's sink list
    and pending-write set, so closing the parent also drains their writes.
    """

    def __init__(
        self,
        min_level: LogLevel | int | str = DEFAULT_MIN_LEVEL,
        sinks: Iterable[Any] | None = None,
        *,
        tags: Iterable[str] = (),
    ) -> None:
        if sinks is None:
            from ..plugins.sinks.console import ConsoleSink

            sinks = [ConsoleSink()]
        self._min_level = LogLevel.parse(min_level)
        self._sinks: list[Any] = list(sinks)
        self._tags: tuple[str, ...] = tuple(tags)
        self._pending: set[asyncio.Task[Any]] = set()

    @property
    def min_level(self) -> LogLevel:
        return self._min_level

    @property
    def sinks(self) -> tuple[Any, ...]:
        return tuple(self._sinks)

    @property
    def tags(self) -> tuple[str, ...]:
        return self._tags

    def add_sink(self, sink: Any) -> Logger:
        self._sinks.append(sink)
        return self

    def remove_sink(self, sink: Any) -> Logger:
        try:
            self._sinks.remove(sink)
        except ValueError:
            pass
        return self

    def set_level(self, level: LogLevel | int | str) -> Logger:
        self._min_level = LogLevel.parse(level)
        return self

    def with_tags(self, *tags: str) -> Logger:
        child = Logger.__new__(Logger)
        child._min_level = self._min_level
        child._sinks = self._sinks
        child._tags = self._tags + tuple(tags)
        child._pending = self._pending
        return child

    # Level methods
    def trace(self, message: str, *, exc: BaseException | None = None, **context: Any) -> None:
        self._log(LogLevel.TRACE, message, exc, context)

    def debug(self, message: str, *, exc: BaseException | None = None, **context: Any) -> None:
        self._log(LogLevel.DEBUG, message, exc, context)

    def info(self, message: str, *, exc: BaseException | None = None, **context: Any) -> None:
        self._log(LogLevel.INFO, message, exc, context)

    def warn(self, message: str, *, exc: BaseException | None = None, **context: Any) -> None:
        self._log(LogLevel.WARN, message, exc, context)

    warning = warn

    def error(self, message: str, *, exc: BaseException | None = None, **context: Any) -> None:
        self._log(LogLevel.ERROR, message, exc, context)

    def fatal(self, message: str, *, exc: BaseException | None = None, **context: Any) -> None:
        self._log(LogLevel.FATAL, message, exc, context)

    def log(
        self,
        level: LogLevel | int | str,
        message: str,
        *,
        exc: BaseException | None = None,
        **context: Any,
    ) -> None:
        self._log(LogLevel.parse(level), message, exc, context)

    def _log(
        self,
        level: LogLevel,
        message: str,
        exc: BaseException | None,
        context: dict[str, Any],
    ) -> None:
        if level < self._min_level:
            return
        record = LogRecord.create(
            level,
            message,
            context=context or None,
            tags=self._tags,
            exc=exc,
        )
        for sink in list(self._sinks):
            self._dispatch(sink, record)

    def _dispatch(self, sink: Any, record: LogRecord) -> None:
        try:
            result = sink.write(record)
        except Exception as exc:
            diagnostics.warn(
                "logger",
                "sink write failed",
                sink=get_plugin_name(sink),
                error=str(exc),
            )
            return
        if not inspect.isawaitable(result):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            # No running loop to drive an async write
            if inspect.iscoroutine(result):
                result.close()
            diagnostics.warn(
                "logger",
                "async sink write dropped; no running event loop",
                sink=get_plugin_name(sink),
                error=str(exc),
            )
            return
        task = asyncio.ensure_future(result, loop=loop)
        self._pending.add(task)
        task.add_done_callback(lambda t, s=sink: self._on_write_done(t, s))

    def _on_write_done(self, task: asyncio.Task[Any], sink: Any) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            diagnostics.warn(
                "logger",
                "async sink write failed",
                sink=get_plugin_name(sink),
                error=str(exc),
            )

    async def start(self) -> None:
        """Start every sink exposing a ``start`` hook."""
        for sink in list(self._sinks):
            start = getattr(sink, "start", None)
            if start is None:
                continue
            result = start()
            if inspect.isawaitable(result):
                await result

    async def close(self) -> None:
        """Drain pending writes, then close every sink concurrently."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        closers = []
        for sink in list(self._sinks):
            close = getattr(sink, "close", None)
            if close is None:
                continue
            try:
                result = close()
            except Exception as exc:
                diagnostics.warn(
                    "logger", "sink close failed", sink=get_plugin_name(sink), error=str(exc)
                )
                continue
            if inspect.isawaitable(result):
                closers.append((sink, result))
        results = await asyncio.gather(
            *(aw for _, aw in closers), return_exceptions=True
        )
        for (sink, _), outcome in zip(closers, results):
            if isinstance(outcome, BaseException):
                diagnostics.warn(
                    "logger",
                    "sink close failed",
                    sink=get_plugin_name(sink),
                    error=str(outcome),
                )

    async def __aenter__(self) -> Logger:
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()
