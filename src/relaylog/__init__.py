"""
Public entrypoints for relaylog.

Provides the ``Logger`` facade, the built-in sinks and formatters, and a
zero-config :func:`get_logger` driven by ``RELAYLOG_*`` environment variables.
"""

from __future__ import annotations

from typing import Any

from ._version import __version__
from .core.errors import (
    DeliveryError,
    ErrorCategory,
    RelaylogError,
    SinkAcquisitionError,
    WorkerSpawnError,
)
from .core.levels import LogLevel
from .core.logger import Logger
from .core.record import ErrorInfo, LogRecord
from .core.settings import Settings
from .core.triggers import AutoFlushConfig
from .metrics.metrics import MetricsCollector
from .plugins.formatters import (
    CefFormatter,
    Formatter,
    JsonFormatter,
    SyslogFormatter,
    TextFormatter,
)
from .plugins.sinks import (
    BaseSink,
    BufferedFileSink,
    BufferedFileSinkConfig,
    ChannelStatus,
    ConsoleSink,
    HttpSink,
    HttpSinkConfig,
    WorkerSink,
    WorkerSinkConfig,
)
from .plugins.sinks.contrib import (
    ElasticsearchSink,
    ElasticsearchSinkConfig,
    SplunkSink,
    SplunkSinkConfig,
)
from .presets import console_logger, elasticsearch_logger, file_logger, splunk_logger

__all__ = [
    "AutoFlushConfig",
    "BaseSink",
    "BufferedFileSink",
    "BufferedFileSinkConfig",
    "CefFormatter",
    "ChannelStatus",
    "ConsoleSink",
    "DeliveryError",
    "ElasticsearchSink",
    "ElasticsearchSinkConfig",
    "ErrorCategory",
    "ErrorInfo",
    "Formatter",
    "HttpSink",
    "HttpSinkConfig",
    "JsonFormatter",
    "LogLevel",
    "LogRecord",
    "Logger",
    "MetricsCollector",
    "RelaylogError",
    "Settings",
    "SinkAcquisitionError",
    "SplunkSink",
    "SplunkSinkConfig",
    "SyslogFormatter",
    "TextFormatter",
    "WorkerSink",
    "WorkerSinkConfig",
    "WorkerSpawnError",
    "__version__",
    "console_logger",
    "elasticsearch_logger",
    "file_logger",
    "get_logger",
    "splunk_logger",
]


def get_logger(settings: Settings | None = None) -> Logger:
    """Return a logger wired from ``Settings`` (environment by default).

    A console sink is always attached. ``RELAYLOG_FILE__PATH`` adds a buffered
    file sink and ``RELAYLOG_HTTP__ENDPOINT`` adds a batching HTTP sink. Call
    ``await logger.start()`` (or use ``async with``) to arm the flush timers.

    Example:
        ```python
        from relaylog import get_logger

        async with get_logger() as logger:
            logger.info("service started", port=8080)
        ```
    """
    cfg = settings or Settings()
    level = cfg.core.min_level
    metrics: MetricsCollector | None = None
    if cfg.core.enable_metrics:
        metrics = MetricsCollector(enabled=True)

    sinks: list[Any] = [ConsoleSink(TextFormatter(), level)]
    if cfg.file.path is not None:
        sinks.append(
            BufferedFileSink(
                path=cfg.file.path,
                min_level=level,
                auto_flush=cfg.file.auto_flush,
                metrics=metrics,
            )
        )
    if cfg.http.endpoint:
        sinks.append(
            HttpSink(
                endpoint=cfg.http.endpoint,
                headers=cfg.http.headers,
                min_level=level,
                batch_size=cfg.http.batch_size,
                flush_interval_seconds=cfg.http.flush_interval_seconds,
                max_retries=cfg.http.max_retries,
                retry_delay_seconds=cfg.http.retry_delay_seconds,
                metrics=metrics,
            )
        )
    return Logger(level, sinks)
