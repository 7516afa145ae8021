"""
Elasticsearch ``_bulk`` preset of the batching HTTP sink.

Each record renders to an action line plus a document line; a batch is sent
as newline-delimited JSON, as the bulk API expects.
"""

from __future__ import annotations

from typing import Any, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ....core.defaults import DEFAULT_BATCH_SIZE, DEFAULT_HTTP_FLUSH_INTERVAL_SECONDS
from ....core.levels import LevelField, LogLevel
from ....core.record import LogRecord, format_timestamp
from ....core.serialization import dumps, serialize_ndjson
from ....metrics.metrics import MetricsCollector
from ...utils import parse_plugin_config
from ..http_client import HttpSink, HttpSinkConfig


class ElasticsearchSinkConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    endpoint: str  # should end with /_bulk
    api_key: str | None = None
    index: str = "logs"
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    flush_interval_seconds: float = Field(
        default=DEFAULT_HTTP_FLUSH_INTERVAL_SECONDS, gt=0.0
    )
    min_level: LevelField = LogLevel.INFO


class ElasticsearchBulkFormatter:
    name = "elasticsearch_bulk"

    def __init__(self, *, index: str) -> None:
        self.index = index

    def format(self, record: LogRecord) -> str:
        action = dumps({"index": {"_index": self.index}})
        doc: dict[str, Any] = {
            "@timestamp": format_timestamp(record.timestamp),
            "level": record.level.name,
            "message": record.message,
        }
        doc.update(record.context or {})
        return action + "\n" + dumps(doc)


class ElasticsearchSink(HttpSink):
    name = "elasticsearch"
    content_type = "application/x-ndjson"

    def __init__(
        self,
        config: ElasticsearchSinkConfig | dict | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        metrics: MetricsCollector | None = None,
        **kwargs: Any,
    ) -> None:
        cfg = parse_plugin_config(ElasticsearchSinkConfig, config, **kwargs)
        self.elasticsearch_config = cfg
        headers: dict[str, str] = {}
        if cfg.api_key:
            headers["Authorization"] = f"Bearer {cfg.api_key}"
        super().__init__(
            HttpSinkConfig(
                endpoint=cfg.endpoint,
                headers=headers,
                batch_size=cfg.batch_size,
                flush_interval_seconds=cfg.flush_interval_seconds,
                min_level=cfg.min_level,
            ),
            formatter=ElasticsearchBulkFormatter(index=cfg.index),
            client=client,
            metrics=metrics,
        )

    def _encode_batch(self, lines: Sequence[str]) -> bytes:
        return serialize_ndjson(lines)


PLUGIN_METADATA = {
    "name": "elasticsearch",
    "version": "1.0.0",
    "plugin_type": "sink",
    "entry_point": "relaylog.plugins.sinks.contrib.elasticsearch:ElasticsearchSink",
    "description": "Elasticsearch bulk-API sink built on the batching HTTP sink.",
    "author": "Relaylog Core",
    "api_version": "1.0",
}
