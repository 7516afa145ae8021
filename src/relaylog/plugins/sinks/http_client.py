"""
Remote batch sender: queue raw records and POST them in batches via httpx.

Each batch is the queue snapshot at flush time, rendered through the
formatter and sent as one JSON array body. At most one delivery is in flight
per sink; failures retry with exponential backoff and the batch is dropped
once retries are exhausted.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...core import diagnostics
from ...core.defaults import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_HTTP_FLUSH_INTERVAL_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_SECONDS,
)
from ...core.errors import DeliveryError
from ...core.levels import LevelField, LogLevel
from ...core.record import LogRecord
from ...core.retry import AsyncRetrier, RetryCallable, RetryConfig
from ...core.serialization import serialize_batch
from ...core.triggers import AutoFlushConfig, FlushReason, TriggerEngine
from ...metrics.metrics import MetricsCollector
from ..formatters import Formatter, JsonFormatter
from ..utils import parse_plugin_config

__all__ = ["HttpSink", "HttpSinkConfig"]


class HttpSinkConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    endpoint: str
    method: str = "POST"
    headers: dict[str, str] = Field(default_factory=dict)
    min_level: LevelField = LogLevel.INFO
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    flush_interval_seconds: float | None = Field(
        default=DEFAULT_HTTP_FLUSH_INTERVAL_SECONDS, gt=0.0
    )
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    retry_delay_seconds: float = Field(default=DEFAULT_RETRY_DELAY_SECONDS, ge=0.0)
    timeout_seconds: float = Field(default=DEFAULT_HTTP_TIMEOUT_SECONDS, gt=0.0)
    on_level: LevelField | None = None
    on_idle_seconds: float | None = Field(default=None, gt=0.0)

    @field_validator("headers", mode="before")
    @classmethod
    def _coerce_headers(cls, value: Mapping[str, str] | None) -> dict[str, str]:
        if value is None:
            return {}
        return dict(value)

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.strip().upper()

    def auto_flush(self) -> AutoFlushConfig:
        """Trigger config equivalent: batch size and flush interval."""
        return AutoFlushConfig(
            enabled=True,
            interval_seconds=self.flush_interval_seconds,
            on_size=self.batch_size,
            on_level=self.on_level,
            on_idle_seconds=self.on_idle_seconds,
        )


class HttpSink:
    """Batching HTTP sink with single-flight delivery and bounded retry."""

    name = "http"
    content_type = "application/json"

    def __init__(
        self,
        config: HttpSinkConfig | dict | None = None,
        *,
        formatter: Formatter | None = None,
        client: httpx.AsyncClient | None = None,
        retrier: RetryCallable | None = None,
        metrics: MetricsCollector | None = None,
        **kwargs: Any,
    ) -> None:
        cfg = parse_plugin_config(HttpSinkConfig, config, **kwargs)
        self._config = cfg
        self._formatter = formatter or JsonFormatter()
        self._metrics = metrics
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=cfg.timeout_seconds)
        self._retrier: RetryCallable = retrier or AsyncRetrier(
            RetryConfig(
                max_retries=cfg.max_retries,
                base_delay_seconds=cfg.retry_delay_seconds,
            )
        )
        self._queue: list[LogRecord] = []
        self._flush_in_progress = False
        self._inflight: asyncio.Task[None] | None = None
        self._closing = False
        self._close_task: asyncio.Task[None] | None = None
        self._last_status: int | None = None
        self._last_error: str | None = None
        self._triggers = TriggerEngine(cfg.auto_flush(), self._on_trigger, name=self.name)

    @property
    def config(self) -> HttpSinkConfig:
        return self._config

    @property
    def queued(self) -> int:
        return len(self._queue)

    @property
    def flush_in_progress(self) -> bool:
        return self._flush_in_progress

    async def start(self) -> None:
        if not self._closing:
            self._triggers.start()

    def write(self, record: LogRecord) -> None:
        if self._closing or record.level < self._config.min_level:
            return
        self._queue.append(record)
        self._triggers.on_write(record.level, len(self._queue))

    def _on_trigger(self, _reason: FlushReason) -> None:
        self.flush()

    def flush(self) -> asyncio.Task[None] | None:
        """Start delivering the current queue; returns the delivery task.

        Returns ``None`` when the queue is empty, a delivery is already in
        flight, or there is no running event loop to send from.
        """
        if not self._queue or self._flush_in_progress:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        self._flush_in_progress = True
        batch, self._queue = self._queue, []
        task = loop.create_task(self._deliver(batch))
        self._inflight = task
        return task

    async def _deliver(self, batch: list[LogRecord]) -> None:
        try:
            body = self._encode_batch([self._formatter.format(r) for r in batch])
            await self._retrier(lambda: self._send(body))
        except Exception as exc:
            self._last_error = str(exc)
            diagnostics.warn(
                "http-sink",
                "batch delivery failed; batch dropped",
                endpoint=self._config.endpoint,
                records=len(batch),
                attempts=getattr(self._retrier, "last_attempts", None),
                status_code=getattr(exc, "status_code", None),
                error=str(exc),
            )
            if self._metrics is not None:
                await self._metrics.record_delivery_failure(
                    sink=self.name, records=len(batch)
                )
        else:
            self._last_error = None
            if self._metrics is not None:
                await self._metrics.record_flush(sink=self.name, records=len(batch))
        finally:
            self._flush_in_progress = False
            self._inflight = None

    def _encode_batch(self, lines: Sequence[str]) -> bytes:
        return serialize_batch(lines)

    def _request_headers(self) -> dict[str, str]:
        headers = {"Content-Type": self.content_type}
        headers.update(self._config.headers)
        return headers

    async def _send(self, body: bytes) -> httpx.Response:
        try:
            resp = await self._client.request(
                self._config.method,
                self._config.endpoint,
                content=body,
                headers=self._request_headers(),
            )
        except httpx.HTTPError as exc:
            self._last_status = None
            raise DeliveryError(
                f"Transport error: {exc}",
                cause=exc,
                endpoint=self._config.endpoint,
            ) from exc
        self._last_status = resp.status_code
        if not resp.is_success:
            snippet = None
            try:
                snippet = resp.text[:256]
            except Exception:
                snippet = None
            raise DeliveryError(
                f"HTTP {resp.status_code}: {snippet or ''}".rstrip(),
                status_code=resp.status_code,
                endpoint=self._config.endpoint,
            )
        return resp

    async def close(self) -> None:
        if self._close_task is None:
            self._close_task = asyncio.ensure_future(self._close())
        await self._close_task

    async def _close(self) -> None:
        self._closing = True
        self._triggers.cancel()
        if self._inflight is not None:
            await asyncio.gather(self._inflight, return_exceptions=True)
        final = self.flush()
        if final is not None:
            await asyncio.gather(final, return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()

    async def health_check(self) -> bool:
        return (
            self._last_error is None
            and self._last_status is not None
            and 200 <= self._last_status < 300
        )


PLUGIN_METADATA = {
    "name": "http",
    "version": "1.0.0",
    "plugin_type": "sink",
    "entry_point": "relaylog.plugins.sinks.http_client:HttpSink",
    "description": "Batching HTTP sink with single-flight delivery and exponential backoff.",
    "author": "Relaylog Core",
    "api_version": "1.0",
}
