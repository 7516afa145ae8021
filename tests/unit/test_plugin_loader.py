from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from relaylog.plugins import (
    FORMATTERS_GROUP,
    SINKS_GROUP,
    PluginLoadError,
    PluginNotFoundError,
    list_available_plugins,
    load_plugin,
    register_builtin,
)
from relaylog.plugins.formatters import CefFormatter, JsonFormatter
from relaylog.plugins.sinks import BufferedFileSink, ConsoleSink


def test_builtin_sinks_are_listed() -> None:
    names = list_available_plugins(SINKS_GROUP)
    for expected in ("console", "buffered_file", "file", "http", "worker", "splunk", "elasticsearch"):
        assert expected in names


def test_load_console_sink_with_config() -> None:
    sink = load_plugin(SINKS_GROUP, "console", {"min_level": "debug"})
    assert isinstance(sink, ConsoleSink)


@pytest.mark.asyncio
async def test_alias_and_hyphenated_names_resolve(tmp_path: Path) -> None:
    by_alias = load_plugin(SINKS_GROUP, "file", {"path": tmp_path / "a.log"})
    by_hyphen = load_plugin(SINKS_GROUP, "Buffered-File", {"path": tmp_path / "b.log"})
    assert isinstance(by_alias, BufferedFileSink)
    assert isinstance(by_hyphen, BufferedFileSink)
    await by_alias.close()
    await by_hyphen.close()


def test_load_formatter() -> None:
    assert isinstance(load_plugin(FORMATTERS_GROUP, "json"), JsonFormatter)
    cef = load_plugin(FORMATTERS_GROUP, "cef", {"vendor": "Acme"})
    assert isinstance(cef, CefFormatter)
    assert cef.vendor == "Acme"


def test_unknown_plugin_raises() -> None:
    with pytest.raises(PluginNotFoundError):
        load_plugin(SINKS_GROUP, "carrier-pigeon")


def test_invalid_config_raises_load_error() -> None:
    with patch("relaylog.core.diagnostics.warn") as warn:
        with pytest.raises(PluginLoadError):
            load_plugin(SINKS_GROUP, "http", {"batch_size": 10})
    assert warn.call_args.args == ("plugins", "plugin instantiation failed")


def test_name_mismatch_is_reported() -> None:
    class MislabeledSink(ConsoleSink):
        name = "not-console"

    MislabeledSink.__module__ = "relaylog.plugins.sinks.console"
    register_builtin(SINKS_GROUP, "mislabeled", MislabeledSink)
    with patch("relaylog.core.diagnostics.warn") as warn:
        load_plugin(SINKS_GROUP, "mislabeled")
    assert warn.call_args.args == ("plugins", "plugin name mismatch")


def test_register_into_unknown_group_fails() -> None:
    with pytest.raises(ValueError):
        register_builtin("relaylog.nothing", "x", ConsoleSink)
