from __future__ import annotations

from typing import Final

from .levels import LogLevel
from .triggers import AutoFlushConfig

DEFAULT_MIN_LEVEL: Final = LogLevel.INFO

DEFAULT_AUTO_FLUSH: Final = AutoFlushConfig(
    enabled=True,
    interval_seconds=5.0,  # 5 seconds
    on_size=100,  # 100 log records
    on_level=LogLevel.ERROR,  # immediate flush for ERROR and FATAL
    on_idle_seconds=10.0,  # 10 seconds of inactivity
)

# Remote batch sender
DEFAULT_BATCH_SIZE: Final = 10
DEFAULT_HTTP_FLUSH_INTERVAL_SECONDS: Final = 5.0
DEFAULT_MAX_RETRIES: Final = 3
DEFAULT_RETRY_DELAY_SECONDS: Final = 1.0
DEFAULT_HTTP_TIMEOUT_SECONDS: Final = 10.0

# Out-of-process channel
DEFAULT_MAX_RESTARTS: Final = 5
DEFAULT_RESTART_DELAY_SECONDS: Final = 1.0
DEFAULT_WORKER_SHUTDOWN_TIMEOUT_SECONDS: Final = 5.0
