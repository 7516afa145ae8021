"""Convenience logger constructors for common deployments.

Each preset pairs a colored console sink with the named destination, both
filtered at the same level.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .core.levels import LogLevel
from .core.logger import Logger
from .plugins.formatters import JsonFormatter, TextFormatter
from .plugins.sinks.buffered_file import BufferedFileSink
from .plugins.sinks.console import ConsoleSink
from .plugins.sinks.contrib.elasticsearch import ElasticsearchSink
from .plugins.sinks.contrib.splunk import SplunkSink


def _console(level: LogLevel) -> ConsoleSink:
    return ConsoleSink(TextFormatter(), level)


def console_logger(level: LogLevel | str = LogLevel.INFO) -> Logger:
    lvl = LogLevel.parse(level)
    return Logger(lvl, [_console(lvl)])


def file_logger(
    path: str | Path,
    level: LogLevel | str = LogLevel.INFO,
    **file_options: Any,
) -> Logger:
    """Console plus a buffered JSON-lines file at ``path``.

    Extra keyword options (``auto_flush``, ``encoding``) go to
    :class:`BufferedFileSinkConfig`. Call ``await logger.start()`` to arm the
    interval and idle flush timers.
    """
    lvl = LogLevel.parse(level)
    file_sink = BufferedFileSink(
        path=Path(path), min_level=lvl, formatter=JsonFormatter(), **file_options
    )
    return Logger(lvl, [_console(lvl), file_sink])


def splunk_logger(
    endpoint: str,
    token: str,
    *,
    index: str = "main",
    level: LogLevel | str = LogLevel.INFO,
    **options: Any,
) -> Logger:
    lvl = LogLevel.parse(level)
    sink = SplunkSink(endpoint=endpoint, token=token, index=index, min_level=lvl, **options)
    return Logger(lvl, [_console(lvl), sink])


def elasticsearch_logger(
    endpoint: str,
    *,
    api_key: str | None = None,
    index: str = "logs",
    level: LogLevel | str = LogLevel.INFO,
    **options: Any,
) -> Logger:
    lvl = LogLevel.parse(level)
    sink = ElasticsearchSink(
        endpoint=endpoint, api_key=api_key, index=index, min_level=lvl, **options
    )
    return Logger(lvl, [_console(lvl), sink])


__all__ = [
    "console_logger",
    "elasticsearch_logger",
    "file_logger",
    "splunk_logger",
]
