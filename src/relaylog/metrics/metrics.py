"""
Async-first delivery metrics collection for relaylog.

Implements minimal Prometheus-compatible counters for the sinks' delivery
paths.

Design goals:
- Pure async/await, no blocking I/O
- Zero global state; every collector owns an isolated registry
- Safe no-op behavior when metrics are disabled by settings
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from prometheus_client import CollectorRegistry, Counter


@dataclass
class DeliveryMetrics:
    """Captured runtime metrics for quick assertions in tests."""

    records_written: int = 0
    records_dropped: int = 0
    flushes: int = 0
    delivery_failures: int = 0
    worker_restarts: int = 0


class MetricsCollector:
    """Sink-scoped async metrics collector.

    When disabled, all methods still track the in-memory counters used by
    tests but skip the Prometheus exporters.
    """

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = asyncio.Lock()
        self._state = DeliveryMetrics()

        self._c_written: Any | None = None
        self._c_dropped: Any | None = None
        self._c_flushes: Any | None = None
        self._c_failures: Any | None = None
        self._c_restarts: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            # Isolated registry to avoid global duplication in tests
            self._registry = CollectorRegistry()
            self._c_written = Counter(
                "relaylog_records_written_total",
                "Records delivered to a sink destination",
                ["sink"],
                registry=self._registry,
            )
            self._c_dropped = Counter(
                "relaylog_records_dropped_total",
                "Records lost after a failed delivery",
                ["sink"],
                registry=self._registry,
            )
            self._c_flushes = Counter(
                "relaylog_flushes_total",
                "Buffer drains performed",
                ["sink"],
                registry=self._registry,
            )
            self._c_failures = Counter(
                "relaylog_delivery_failures_total",
                "Deliveries that failed after exhausting retries",
                ["sink"],
                registry=self._registry,
            )
            self._c_restarts = Counter(
                "relaylog_worker_restarts_total",
                "Out-of-process worker restarts",
                ["sink"],
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    async def record_flush(self, *, sink: str, records: int) -> None:
        async with self._lock:
            self._state.flushes += 1
            self._state.records_written += records
        if not self._enabled:
            return
        if self._c_flushes is not None:
            self._c_flushes.labels(sink=sink).inc()
        if self._c_written is not None:
            self._c_written.labels(sink=sink).inc(records)

    async def record_delivery_failure(self, *, sink: str, records: int) -> None:
        async with self._lock:
            self._state.delivery_failures += 1
            self._state.records_dropped += records
        if not self._enabled:
            return
        if self._c_failures is not None:
            self._c_failures.labels(sink=sink).inc()
        if self._c_dropped is not None:
            self._c_dropped.labels(sink=sink).inc(records)

    async def record_worker_restart(self, *, sink: str) -> None:
        async with self._lock:
            self._state.worker_restarts += 1
        if not self._enabled:
            return
        if self._c_restarts is not None:
            self._c_restarts.labels(sink=sink).inc()

    async def snapshot(self) -> DeliveryMetrics:
        # Lightweight copy without exposing internals
        async with self._lock:
            return DeliveryMetrics(
                records_written=self._state.records_written,
                records_dropped=self._state.records_dropped,
                flushes=self._state.flushes,
                delivery_failures=self._state.delivery_failures,
                worker_restarts=self._state.worker_restarts,
            )
