"""
Splunk HTTP Event Collector preset of the batching HTTP sink.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ....core.defaults import DEFAULT_BATCH_SIZE, DEFAULT_HTTP_FLUSH_INTERVAL_SECONDS
from ....core.levels import LevelField, LogLevel
from ....core.record import LogRecord, format_timestamp
from ....core.serialization import dumps
from ....metrics.metrics import MetricsCollector
from ...utils import parse_plugin_config
from ..http_client import HttpSink, HttpSinkConfig


class SplunkSinkConfig(BaseModel):
    """Configuration for the Splunk HEC sink."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    endpoint: str
    token: str
    index: str = "main"
    sourcetype: str = "_json"
    source: str = "relaylog"
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    flush_interval_seconds: float = Field(
        default=DEFAULT_HTTP_FLUSH_INTERVAL_SECONDS, gt=0.0
    )
    min_level: LevelField = LogLevel.INFO


class SplunkHecFormatter:
    """Render a record as a HEC event object."""

    name = "splunk_hec"

    def __init__(self, *, index: str, sourcetype: str, source: str) -> None:
        self.index = index
        self.sourcetype = sourcetype
        self.source = source

    def format(self, record: LogRecord) -> str:
        event: dict[str, Any] = {
            "timestamp": format_timestamp(record.timestamp),
            "level": record.level.name,
            "message": record.message,
        }
        event.update(record.context or {})
        return dumps(
            {
                "event": event,
                "index": self.index,
                "sourcetype": self.sourcetype,
                "source": self.source,
            }
        )


class SplunkSink(HttpSink):
    name = "splunk"

    def __init__(
        self,
        config: SplunkSinkConfig | dict | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        metrics: MetricsCollector | None = None,
        **kwargs: Any,
    ) -> None:
        cfg = parse_plugin_config(SplunkSinkConfig, config, **kwargs)
        self.splunk_config = cfg
        super().__init__(
            HttpSinkConfig(
                endpoint=cfg.endpoint,
                headers={"Authorization": f"Splunk {cfg.token}"},
                batch_size=cfg.batch_size,
                flush_interval_seconds=cfg.flush_interval_seconds,
                min_level=cfg.min_level,
            ),
            formatter=SplunkHecFormatter(
                index=cfg.index, sourcetype=cfg.sourcetype, source=cfg.source
            ),
            client=client,
            metrics=metrics,
        )


PLUGIN_METADATA = {
    "name": "splunk",
    "version": "1.0.0",
    "plugin_type": "sink",
    "entry_point": "relaylog.plugins.sinks.contrib.splunk:SplunkSink",
    "description": "Splunk HTTP Event Collector sink built on the batching HTTP sink.",
    "author": "Relaylog Core",
    "api_version": "1.0",
}
