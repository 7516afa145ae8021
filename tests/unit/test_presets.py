from __future__ import annotations

from pathlib import Path

import pytest

from relaylog import (
    console_logger,
    elasticsearch_logger,
    file_logger,
    splunk_logger,
)
from relaylog.core.levels import LogLevel
from relaylog.plugins.sinks import BufferedFileSink, ConsoleSink
from relaylog.plugins.sinks.contrib import ElasticsearchSink, SplunkSink


def test_console_logger() -> None:
    logger = console_logger("debug")
    assert logger.min_level is LogLevel.DEBUG
    assert [type(s) for s in logger.sinks] == [ConsoleSink]


@pytest.mark.asyncio
async def test_file_logger_writes_json_lines(tmp_path: Path) -> None:
    path = tmp_path / "app.log"
    logger = file_logger(path, level="warn")
    assert [type(s) for s in logger.sinks] == [ConsoleSink, BufferedFileSink]

    async with logger:
        logger.info("filtered")
        logger.warn("kept")
    content = path.read_text()
    assert "kept" in content
    assert "filtered" not in content


@pytest.mark.asyncio
async def test_vendor_presets_pair_console_with_remote_sink() -> None:
    splunk = splunk_logger("https://splunk.example.com", "tok", index="ops")
    elastic = elasticsearch_logger("https://es.example.com/_bulk", api_key="k")

    assert isinstance(splunk.sinks[1], SplunkSink)
    assert splunk.sinks[1].splunk_config.index == "ops"
    assert isinstance(elastic.sinks[1], ElasticsearchSink)
    assert elastic.sinks[1].elasticsearch_config.index == "logs"

    await splunk.close()
    await elastic.close()
