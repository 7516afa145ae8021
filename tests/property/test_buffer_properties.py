from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from relaylog.core.levels import LogLevel
from relaylog.core.record import LogRecord
from relaylog.core.retry import AsyncRetrier, RetryConfig
from relaylog.core.triggers import AutoFlushConfig
from relaylog.plugins.sinks.buffered_file import BufferedFileSink, BufferedFileSinkConfig

pytestmark = pytest.mark.property

message_text = st.text(
    alphabet=st.characters(min_codepoint=32, max_codepoint=126),
    min_size=1,
    max_size=40,
)
levels = st.sampled_from(list(LogLevel))


class _MessageFormatter:
    def format(self, record: LogRecord) -> str:
        return record.message


class _ChunkStream:
    def __init__(self) -> None:
        self.chunks: list[list[str]] = []

    def write(self, data: str) -> int:
        self.chunks.append(data.split("\n")[:-1])
        return len(data)

    def flush(self) -> None:
        return None

    def close(self) -> None:
        return None


@given(
    entries=st.lists(st.tuples(levels, message_text), max_size=60),
    on_size=st.integers(min_value=1, max_value=10),
    min_level=levels,
)
@settings(max_examples=150)
def test_size_chunks_preserve_order_and_filter(
    entries: list[tuple[LogLevel, str]], on_size: int, min_level: LogLevel
) -> None:
    stream = _ChunkStream()
    sink = BufferedFileSink(
        BufferedFileSinkConfig(
            path=Path("unused.log"),
            min_level=min_level,
            auto_flush=AutoFlushConfig(on_size=on_size),
        ),
        formatter=_MessageFormatter(),
        opener=lambda _path, _encoding: stream,
    )
    for level, message in entries:
        sink.write(LogRecord.create(level, message))
    sink.flush()

    expected = [message for level, message in entries if level >= min_level]
    written = [line for chunk in stream.chunks for line in chunk]
    assert written == expected
    assert all(len(chunk) == on_size for chunk in stream.chunks[:-1])
    assert all(0 < len(chunk) <= on_size for chunk in stream.chunks)
    assert sink.buffered == 0


@given(
    base=st.floats(min_value=0.0, max_value=10.0, allow_nan=False),
    attempt=st.integers(min_value=0, max_value=12),
)
def test_backoff_doubles_per_attempt(base: float, attempt: int) -> None:
    retrier = AsyncRetrier(RetryConfig(base_delay_seconds=base))
    assert retrier.compute_delay(attempt) == pytest.approx(base * 2**attempt)
    if attempt:
        assert retrier.compute_delay(attempt) == pytest.approx(
            2 * retrier.compute_delay(attempt - 1)
        )
