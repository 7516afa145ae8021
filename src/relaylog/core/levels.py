"""Severity levels for relaylog records.

Levels are totally ordered so sinks can compare a record against a
configured threshold with plain ``<`` / ``>=``:

    TRACE < DEBUG < INFO < WARN < ERROR < FATAL

Configuration accepts names as well as members, so ``"warning"``,
``"WARN"`` and ``LogLevel.WARN`` all resolve to the same level.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Annotated, Any, Final

from pydantic import BeforeValidator

_ALIASES: Final[dict[str, str]] = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}


class LogLevel(IntEnum):
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5

    @classmethod
    def parse(cls, value: LogLevel | int | str) -> LogLevel:
        """Resolve a member, integer value or (case-insensitive) name.

        Raises:
            ValueError: If the value does not name a known level.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid log level: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            name = value.strip().upper()
            name = _ALIASES.get(name, name)
            try:
                return cls[name]
            except KeyError:
                raise ValueError(f"Unknown log level: {value!r}") from None
        raise ValueError(f"Invalid log level: {value!r}")


def coerce_level(value: Any) -> Any:
    """Pydantic pre-validator: accept level names in config models."""
    if value is None:
        return None
    return LogLevel.parse(value)


# Annotated field type used by every config model that takes a level
LevelField = Annotated[LogLevel, BeforeValidator(coerce_level)]
