"""Destination acquisition for file-backed sinks."""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

from .errors import SinkAcquisitionError


def open_append_stream(path: str | Path, *, encoding: str = "utf-8") -> TextIO:
    """Create parent directories and open ``path`` in append mode.

    Raises:
        SinkAcquisitionError: If the directory or file cannot be opened.
    """
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SinkAcquisitionError(
            f"Failed to create log directory {target.parent}",
            cause=exc,
            path=str(target.parent),
        ) from exc
    try:
        return open(target, "a", encoding=encoding)
    except OSError as exc:
        raise SinkAcquisitionError(
            f"Failed to open log file {target}",
            cause=exc,
            path=str(target),
        ) from exc
