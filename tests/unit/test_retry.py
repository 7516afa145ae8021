from __future__ import annotations

import pytest

from relaylog.core.retry import AsyncRetrier, RetryConfig


class _Sleeper:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class _Flaky:
    def __init__(self, failures: int, exc: type[Exception] = ConnectionError) -> None:
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"failure {self.calls}")
        return "ok"


@pytest.mark.asyncio
async def test_retries_with_exponential_backoff_then_succeeds() -> None:
    sleeper = _Sleeper()
    retrier = AsyncRetrier(
        RetryConfig(max_retries=3, base_delay_seconds=0.1), sleep=sleeper
    )
    fn = _Flaky(failures=2)

    assert await retrier(fn) == "ok"
    assert fn.calls == 3
    assert sleeper.delays == pytest.approx([0.1, 0.2])
    assert retrier.last_attempts == 3


@pytest.mark.asyncio
async def test_exhaustion_raises_after_max_retries_plus_one_attempts() -> None:
    sleeper = _Sleeper()
    retries: list[int] = []
    retrier = AsyncRetrier(
        RetryConfig(max_retries=2, base_delay_seconds=1.0),
        sleep=sleeper,
        on_retry=lambda attempt, _exc, _delay: retries.append(attempt),
    )
    fn = _Flaky(failures=10)

    with pytest.raises(ConnectionError, match="failure 3"):
        await retrier.retry(fn)
    assert fn.calls == 3
    assert sleeper.delays == [1.0, 2.0]
    assert retries == [0, 1]


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt() -> None:
    retrier = AsyncRetrier(RetryConfig(max_retries=0), sleep=_Sleeper())
    fn = _Flaky(failures=1)
    with pytest.raises(ConnectionError):
        await retrier(fn)
    assert fn.calls == 1


@pytest.mark.asyncio
async def test_non_matching_errors_are_not_retried() -> None:
    retrier = AsyncRetrier(
        RetryConfig(max_retries=5, retry_on=(ConnectionError,)), sleep=_Sleeper()
    )
    fn = _Flaky(failures=1, exc=KeyError)
    with pytest.raises(KeyError):
        await retrier(fn)
    assert fn.calls == 1


def test_compute_delay_respects_cap() -> None:
    retrier = AsyncRetrier(RetryConfig(base_delay_seconds=1.0, max_delay_seconds=3.0))
    assert [retrier.compute_delay(n) for n in range(4)] == [1.0, 2.0, 3.0, 3.0]
