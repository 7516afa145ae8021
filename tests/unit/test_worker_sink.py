from __future__ import annotations

import asyncio
import warnings
from pathlib import Path
from typing import Any
from unittest.mock import patch

import orjson
import pytest

from relaylog.core.errors import WorkerSpawnError
from relaylog.core.levels import LogLevel
from relaylog.core.record import LogRecord
from relaylog.metrics.metrics import MetricsCollector
from relaylog.plugins.sinks.worker import ChannelStatus, WorkerSink, WorkerSinkConfig


class _FakeHandle:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail_send = False
        self.stop_calls = 0
        self.terminated = 0
        self._exit: asyncio.Future[int] = asyncio.get_running_loop().create_future()

    def send(self, message: dict[str, Any]) -> None:
        if self.fail_send:
            raise BrokenPipeError("pipe closed")
        self.sent.append(message)

    async def wait(self) -> int:
        return await asyncio.shield(self._exit)

    async def stop(self, timeout: float) -> None:
        self.stop_calls += 1
        self.exit(0)

    def terminate(self) -> None:
        self.terminated += 1
        self.exit(-9)

    def exit(self, code: int) -> None:
        if not self._exit.done():
            self._exit.set_result(code)

    def messages(self) -> list[str]:
        return [orjson.loads(m["data"])["message"] for m in self.sent]


class _Spawner:
    def __init__(self) -> None:
        self.fail = False
        self.attempts = 0
        self.handles: list[_FakeHandle] = []

    async def __call__(self) -> _FakeHandle:
        self.attempts += 1
        if self.fail:
            raise WorkerSpawnError("cannot start worker")
        handle = _FakeHandle()
        self.handles.append(handle)
        return handle


def _sink(spawner: _Spawner, **config: Any) -> WorkerSink:
    cfg: dict[str, Any] = {"restart_delay_seconds": 0.01}
    cfg.update(config)
    return WorkerSink(WorkerSinkConfig(**cfg), spawner=spawner)


def _rec(message: str, level: LogLevel = LogLevel.INFO) -> LogRecord:
    return LogRecord.create(level, message)


async def _settle(seconds: float = 0.05) -> None:
    await asyncio.sleep(seconds)


@pytest.mark.asyncio
async def test_running_worker_receives_log_envelopes() -> None:
    spawner = _Spawner()
    sink = _sink(spawner)
    await sink.start()
    assert sink.status is ChannelStatus.RUNNING

    sink.write(_rec("hello"))
    sink.write(_rec("hidden", LogLevel.DEBUG))

    handle = spawner.handles[0]
    assert [m["type"] for m in handle.sent] == ["log"]
    assert handle.messages() == ["hello"]
    await sink.close()


@pytest.mark.asyncio
async def test_messages_queue_while_down_and_replay_in_order() -> None:
    spawner = _Spawner()
    metrics = MetricsCollector(enabled=False)
    sink = WorkerSink(
        WorkerSinkConfig(restart_delay_seconds=0.05), spawner=spawner, metrics=metrics
    )
    await sink.start()
    sink.write(_rec("before"))

    with patch("relaylog.core.diagnostics.warn") as warn:
        spawner.handles[0].exit(1)
        await _settle(0.01)
        assert sink.status is ChannelStatus.RESTARTING
        assert sink.restarts == 1
        sink.write(_rec("queued-1"))
        sink.write(_rec("queued-2"))
        assert sink.queued == 2

        await _settle(0.1)
    assert warn.call_args_list[0].args == ("worker-sink", "worker failed")

    assert sink.status is ChannelStatus.RUNNING
    assert len(spawner.handles) == 2
    assert spawner.handles[1].messages() == ["queued-1", "queued-2"]
    assert sink.queued == 0
    assert sink.restarts == 0
    assert spawner.handles[0].terminated == 1

    sink.write(_rec("after"))
    assert spawner.handles[1].messages() == ["queued-1", "queued-2", "after"]
    assert metrics._state.worker_restarts == 1  # type: ignore[attr-defined]
    await sink.close()


@pytest.mark.asyncio
async def test_clean_exit_not_requested_by_close_is_a_failure() -> None:
    spawner = _Spawner()
    sink = _sink(spawner)
    await sink.start()
    with patch("relaylog.core.diagnostics.warn") as warn:
        spawner.handles[0].exit(0)
        await _settle()
    assert warn.call_args_list[0].kwargs["reason"] == "worker exited unexpectedly"
    assert len(spawner.handles) == 2
    assert sink.status is ChannelStatus.RUNNING
    await sink.close()


@pytest.mark.asyncio
async def test_send_failure_queues_message_and_restarts() -> None:
    spawner = _Spawner()
    sink = _sink(spawner)
    await sink.start()
    spawner.handles[0].fail_send = True

    with patch("relaylog.core.diagnostics.warn"):
        sink.write(_rec("retry me"))
        assert sink.status is ChannelStatus.RESTARTING
        assert sink.queued == 1
        await _settle()

    assert spawner.handles[1].messages() == ["retry me"]
    assert sink.queued == 0
    await sink.close()


@pytest.mark.asyncio
async def test_circuit_opens_once_after_max_restarts() -> None:
    spawner = _Spawner()
    spawner.fail = True
    sink = _sink(spawner, max_restarts=2)

    with patch("relaylog.core.diagnostics.warn") as warn:
        await sink.start()
        await _settle(0.15)
        sink.write(_rec("held"))
        await _settle(0.05)

    assert sink.status is ChannelStatus.CIRCUIT_OPEN
    assert spawner.attempts == 3
    assert sink.restarts == 3
    assert sink.queued == 1
    opened = [c for c in warn.call_args_list if c.args[1].startswith("circuit open")]
    assert len(opened) == 1

    spawner.fail = False
    await sink.reset_circuit()
    assert sink.status is ChannelStatus.RUNNING
    assert sink.restarts == 0
    assert spawner.handles[0].messages() == ["held"]
    await sink.close()


@pytest.mark.asyncio
async def test_zero_max_restarts_opens_circuit_on_first_failure() -> None:
    spawner = _Spawner()
    spawner.fail = True
    sink = _sink(spawner, max_restarts=0)
    with patch("relaylog.core.diagnostics.warn"):
        await sink.start()
    assert sink.status is ChannelStatus.CIRCUIT_OPEN
    assert spawner.attempts == 1
    await sink.close()


@pytest.mark.asyncio
async def test_crash_after_successful_spawn_keeps_restarting() -> None:
    # Each successful spawn and replay resets the budget, so only consecutive
    # spawn or replay failures can open the circuit.
    spawner = _Spawner()
    sink = _sink(spawner, max_restarts=1)
    await sink.start()

    with patch("relaylog.core.diagnostics.warn") as warn:
        for _ in range(5):
            spawner.handles[-1].exit(1)
            await _settle()

    assert spawner.attempts == 6
    assert sink.status is ChannelStatus.RUNNING
    assert sink.restarts == 0
    assert not [c for c in warn.call_args_list if c.args[1].startswith("circuit open")]
    sink.write(_rec("still delivered"))
    assert spawner.handles[-1].messages() == ["still delivered"]
    await sink.close()


@pytest.mark.asyncio
async def test_close_is_idempotent_and_stops_worker_once() -> None:
    spawner = _Spawner()
    sink = _sink(spawner)
    await sink.start()
    sink.write(_rec("one"))

    await asyncio.gather(sink.close(), sink.close())
    await sink.close()

    handle = spawner.handles[0]
    assert handle.stop_calls == 1
    assert sink.status is ChannelStatus.CLOSED
    sink.write(_rec("dropped"))
    assert handle.messages() == ["one"]
    assert sink.queued == 0
    await _settle(0.03)
    assert len(spawner.handles) == 1


@pytest.mark.asyncio
async def test_close_cancels_pending_restart_and_reports_backlog() -> None:
    spawner = _Spawner()
    sink = _sink(spawner, restart_delay_seconds=0.2)
    await sink.start()
    with patch("relaylog.core.diagnostics.warn") as warn:
        spawner.handles[0].exit(3)
        await _settle(0.01)
        sink.write(_rec("stranded"))
        await sink.close()

    assert warn.call_args_list[-1].args == (
        "worker-sink",
        "closed with undelivered messages",
    )
    assert warn.call_args_list[-1].kwargs["queued"] == 1
    await _settle(0.3)
    assert spawner.attempts == 1


def test_default_command_runs_bundled_worker(tmp_path) -> None:
    cfg = WorkerSinkConfig(output=tmp_path / "out.log")
    command = cfg.resolved_command()
    assert command[1:3] == ["-m", "relaylog.worker_process"]
    assert command[-2:] == ["--output", str(tmp_path / "out.log")]
    assert WorkerSinkConfig(command=["worker", "-v"]).resolved_command() == ["worker", "-v"]


def test_module_source_compiles_without_warnings() -> None:
    from relaylog.plugins.sinks import worker

    source = Path(worker.__file__).read_text(encoding="utf-8")
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(source, worker.__file__, "exec")
