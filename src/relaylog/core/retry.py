"""
Bounded retry with exponential backoff for async delivery calls.

The delay before retry ``n`` (counting from 0) is ``base_delay * 2**n``;
after ``max_retries`` retries the last error propagates to the caller.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class RetryConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    max_retries: int = Field(default=3, ge=0)
    base_delay_seconds: float = Field(default=1.0, ge=0.0)
    max_delay_seconds: float | None = Field(default=None, gt=0.0)
    retry_on: tuple[type[BaseException], ...] = (Exception,)


class RetryCallable(Protocol):
    async def __call__(self, fn: Callable[[], Awaitable[T]]) -> T: ...


class AsyncRetrier:
    """Run an async callable, retrying failures with exponential backoff.

    Usage:
        retrier = AsyncRetrier(RetryConfig(max_retries=2, base_delay_seconds=0.5))
        response = await retrier.retry(lambda: client.post(url, content=body))
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_retry: Callable[[int, BaseException, float], None] | None = None,
    ) -> None:
        self._config = config or RetryConfig()
        self._sleep = sleep
        self._on_retry = on_retry
        self.last_attempts = 0

    @property
    def config(self) -> RetryConfig:
        return self._config

    def compute_delay(self, attempt: int) -> float:
        delay = self._config.base_delay_seconds * (2**attempt)
        if self._config.max_delay_seconds is not None:
            delay = min(delay, self._config.max_delay_seconds)
        return delay

    async def retry(self, fn: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            self.last_attempts = attempt + 1
            try:
                return await fn()
            except self._config.retry_on as exc:
                if attempt >= self._config.max_retries:
                    raise
                delay = self.compute_delay(attempt)
                if self._on_retry is not None:
                    self._on_retry(attempt, exc, delay)
                await self._sleep(delay)
                attempt += 1

    async def __call__(self, fn: Callable[[], Awaitable[T]]) -> T:
        return await self.retry(fn)
