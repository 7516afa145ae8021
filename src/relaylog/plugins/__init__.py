"""
Relaylog sinks and formatters.

Built-in plugins are registered with the loader on import so they can be
instantiated by name; third-party plugins are discovered through the
``relaylog.sinks`` and ``relaylog.formatters`` entry point groups.
"""

from .formatters import CefFormatter, JsonFormatter, SyslogFormatter, TextFormatter
from .loader import (
    FORMATTERS_GROUP,
    SINKS_GROUP,
    PluginLoadError,
    PluginNotFoundError,
    list_available_plugins,
    load_plugin,
    register_builtin,
)
from .sinks import BufferedFileSink, ConsoleSink, HttpSink, WorkerSink
from .sinks.contrib import ElasticsearchSink, SplunkSink

register_builtin(SINKS_GROUP, "console", ConsoleSink)
register_builtin(SINKS_GROUP, "buffered_file", BufferedFileSink, aliases=["file"])
register_builtin(SINKS_GROUP, "http", HttpSink)
register_builtin(SINKS_GROUP, "worker", WorkerSink)
register_builtin(SINKS_GROUP, "splunk", SplunkSink)
register_builtin(SINKS_GROUP, "elasticsearch", ElasticsearchSink)

register_builtin(FORMATTERS_GROUP, "json", JsonFormatter)
register_builtin(FORMATTERS_GROUP, "text", TextFormatter)
register_builtin(FORMATTERS_GROUP, "cef", CefFormatter)
register_builtin(FORMATTERS_GROUP, "syslog", SyslogFormatter)

__all__ = [
    "FORMATTERS_GROUP",
    "SINKS_GROUP",
    "PluginLoadError",
    "PluginNotFoundError",
    "list_available_plugins",
    "load_plugin",
    "register_builtin",
]
