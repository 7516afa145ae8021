"""
Worker handles for the out-of-process channel.

A worker is an isolated execution unit reached through a one-way message
channel. Its lifecycle is observed through ``wait()``, which completes with
the exit code when the worker terminates for any reason.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from .errors import WorkerSpawnError
from .serialization import close_envelope, encode_envelope


@runtime_checkable
class WorkerHandle(Protocol):
    def send(self, message: Mapping[str, Any]) -> None:
        """Queue one envelope for the worker without blocking."""
        ...

    async def wait(self) -> int:
        """Complete with the exit code once the worker has terminated."""
        ...

    async def stop(self, timeout: float) -> None:
        """Ask the worker to shut down gracefully, killing it after ``timeout``."""
        ...

    def terminate(self) -> None:
        """Kill the worker immediately."""
        ...


def default_worker_command(output: str | None = None) -> list[str]:
    command = [sys.executable, "-m", "relaylog.worker_process"]
    if output:
        command.extend(["--output", output])
    return command


class SubprocessWorker:
    """Worker running as a child process fed newline-delimited JSON on stdin."""

    def __init__(self, process: asyncio.subprocess.Process) -> None:
        self._process = process

    @classmethod
    async def spawn(cls, command: Sequence[str]) -> SubprocessWorker:
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise WorkerSpawnError(
                f"Failed to start worker: {exc}",
                cause=exc,
                command=list(command),
            ) from exc
        return cls(process)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    def send(self, message: Mapping[str, Any]) -> None:
        stdin = self._process.stdin
        if stdin is None or stdin.is_closing() or self._process.returncode is not None:
            raise ConnectionResetError("worker channel is closed")
        stdin.write(encode_envelope(message))

    async def wait(self) -> int:
        return await self._process.wait()

    async def stop(self, timeout: float) -> None:
        stdin = self._process.stdin
        if self._process.returncode is None and stdin is not None:
            try:
                if not stdin.is_closing():
                    stdin.write(encode_envelope(close_envelope()))
                    await stdin.drain()
                    stdin.close()
            except (BrokenPipeError, ConnectionResetError):
                pass
        try:
            await asyncio.wait_for(self._process.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            self.terminate()
            await self._process.wait()

    def terminate(self) -> None:
        if self._process.returncode is None:
            try:
                self._process.kill()
            except ProcessLookupError:
                pass
