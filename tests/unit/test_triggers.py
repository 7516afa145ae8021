from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from relaylog.core.levels import LogLevel
from relaylog.core.triggers import AutoFlushConfig, FlushReason, TriggerEngine


class _Recorder:
    def __init__(self) -> None:
        self.reasons: list[FlushReason] = []

    def __call__(self, reason: FlushReason) -> None:
        self.reasons.append(reason)


def test_size_is_checked_before_level() -> None:
    engine = TriggerEngine(AutoFlushConfig(on_size=2, on_level="error"), _Recorder())
    assert engine.evaluate(LogLevel.ERROR, 2) is FlushReason.SIZE
    assert engine.evaluate(LogLevel.ERROR, 1) is FlushReason.LEVEL
    assert engine.evaluate(LogLevel.INFO, 1) is None


def test_unconfigured_conditions_never_fire() -> None:
    engine = TriggerEngine(AutoFlushConfig(), _Recorder())
    assert engine.evaluate(LogLevel.FATAL, 10_000) is None


def test_disabled_config_suppresses_every_flush() -> None:
    recorder = _Recorder()
    engine = TriggerEngine(AutoFlushConfig(enabled=False, on_size=1), recorder)
    assert engine.on_write(LogLevel.FATAL, 5) is None
    assert recorder.reasons == []


def test_on_write_fires_exactly_once_per_write() -> None:
    recorder = _Recorder()
    engine = TriggerEngine(AutoFlushConfig(on_size=1, on_level="warn"), recorder)
    engine.on_write(LogLevel.ERROR, 1)
    assert recorder.reasons == [FlushReason.SIZE]


def test_flush_callback_errors_are_reported() -> None:
    def _boom(_reason: FlushReason) -> None:
        raise RuntimeError("flush broke")

    engine = TriggerEngine(AutoFlushConfig(on_size=1), _boom, name="unit")
    with patch("relaylog.core.diagnostics.warn") as warn:
        engine.on_write(LogLevel.INFO, 1)
    warn.assert_called_once()
    assert warn.call_args.args[0] == "triggers"
    assert warn.call_args.kwargs["sink"] == "unit"


@pytest.mark.asyncio
async def test_interval_timer_fires_until_cancelled() -> None:
    recorder = _Recorder()
    engine = TriggerEngine(AutoFlushConfig(interval_seconds=0.05), recorder)
    engine.start()
    await asyncio.sleep(0.18)
    engine.cancel()
    fired = len(recorder.reasons)

    assert fired >= 2
    assert set(recorder.reasons) == {FlushReason.INTERVAL}
    await asyncio.sleep(0.12)
    assert len(recorder.reasons) == fired


@pytest.mark.asyncio
async def test_timers_inactive_before_start() -> None:
    recorder = _Recorder()
    engine = TriggerEngine(AutoFlushConfig(on_idle_seconds=0.02), recorder)
    engine.on_write(LogLevel.INFO, 1)
    await asyncio.sleep(0.08)
    assert recorder.reasons == []
    assert not engine.running


@pytest.mark.asyncio
@pytest.mark.slow
async def test_idle_timer_is_rearmed_by_each_write() -> None:
    recorder = _Recorder()
    engine = TriggerEngine(AutoFlushConfig(on_idle_seconds=0.5), recorder)
    engine.start()
    try:
        engine.on_write(LogLevel.INFO, 1)
        await asyncio.sleep(0.3)
        engine.on_write(LogLevel.INFO, 2)
        # First write's deadline (0.5s) has passed; the second moved it to 0.8s
        await asyncio.sleep(0.35)
        assert recorder.reasons == []
        await asyncio.sleep(0.4)
        assert recorder.reasons == [FlushReason.IDLE]
    finally:
        engine.cancel()
