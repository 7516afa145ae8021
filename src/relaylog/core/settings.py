"""
Environment-driven configuration for relaylog using Pydantic v2 Settings.

Variables use the ``RELAYLOG_`` prefix with ``__`` between nested groups:

    RELAYLOG_CORE__MIN_LEVEL=DEBUG
    RELAYLOG_FILE__PATH=/var/log/app/app.log
    RELAYLOG_FILE__AUTO_FLUSH__ON_SIZE=50
    RELAYLOG_HTTP__ENDPOINT=https://logs.example.com/ingest
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .defaults import (
    DEFAULT_AUTO_FLUSH,
    DEFAULT_BATCH_SIZE,
    DEFAULT_HTTP_FLUSH_INTERVAL_SECONDS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_SECONDS,
)
from .levels import LevelField, LogLevel
from .triggers import AutoFlushConfig


class CoreSettings(BaseModel):
    """Logger-wide settings."""

    app_name: str = Field(default="relaylog", description="Logical application name")
    min_level: LevelField = Field(
        default=LogLevel.INFO,
        description="Records below this level are dropped by the logger",
    )
    internal_logging_enabled: bool = Field(
        default=True,
        description="Emit JSON diagnostics to stderr for recovered sink failures",
    )
    enable_metrics: bool = Field(
        default=False,
        description="Enable Prometheus-compatible metrics",
    )

    @field_validator("app_name")
    @classmethod
    def _ensure_app_name_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("app_name must not be empty")
        return value


class FileSettings(BaseModel):
    """Buffered file sink; enabled when ``path`` is set."""

    path: Path | None = Field(default=None, description="Append-mode log file")
    auto_flush: AutoFlushConfig = Field(default=DEFAULT_AUTO_FLUSH)


class HttpSettings(BaseModel):
    """Remote batch sender; enabled when ``endpoint`` is set."""

    endpoint: str | None = Field(default=None, description="Batch ingest URL")
    headers: dict[str, str] = Field(default_factory=dict)
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    flush_interval_seconds: float = Field(
        default=DEFAULT_HTTP_FLUSH_INTERVAL_SECONDS, gt=0.0
    )
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    retry_delay_seconds: float = Field(default=DEFAULT_RETRY_DELAY_SECONDS, ge=0.0)


class Settings(BaseSettings):
    """Top-level configuration model."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    file: FileSettings = Field(default_factory=FileSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)

    model_config = SettingsConfigDict(
        env_prefix="RELAYLOG_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json", exclude_none=True)
