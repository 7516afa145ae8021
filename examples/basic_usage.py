"""
Basic usage example for relaylog.

Logs to the console, a buffered JSON-lines file and a supervised worker
process, then drains everything on exit.
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from relaylog import (  # noqa: E402
    AutoFlushConfig,
    BufferedFileSink,
    ConsoleSink,
    Logger,
    LogLevel,
    WorkerSink,
)


async def main() -> None:
    log_dir = Path("./logs")
    file_sink = BufferedFileSink(
        path=log_dir / "app.log",
        auto_flush=AutoFlushConfig(
            interval_seconds=2.0,
            on_size=50,
            on_level=LogLevel.ERROR,
            on_idle_seconds=5.0,
        ),
    )
    worker_sink = WorkerSink(output=log_dir / "worker.log", restart_delay_seconds=0.5)

    async with Logger(LogLevel.DEBUG, [ConsoleSink(min_level="debug"), file_sink, worker_sink]) as logger:
        logger.info("Application started", version="0.1.0")
        api = logger.with_tags("api")
        api.debug("Handling request", path="/health")
        try:
            raise TimeoutError("upstream took too long")
        except TimeoutError as exc:
            api.error("Request failed", exc=exc, path="/orders")
        await asyncio.sleep(0.1)


if __name__ == "__main__":
    asyncio.run(main())
