"""
Error taxonomy for the relaylog delivery pipeline.

Only resource-acquisition errors ever reach a caller (at sink
construction). Delivery and saturation failures are raised and caught
inside the sinks, then reported through diagnostics.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    RESOURCE = "resource"  # destination cannot be opened
    DELIVERY = "delivery"  # write/send failed
    SATURATION = "saturation"  # circuit breaker open
    SERIALIZATION = "serialization"
    CONFIG = "config"


class RelaylogError(Exception):
    """Base class for relaylog errors carrying a category and context."""

    category: ErrorCategory = ErrorCategory.DELIVERY

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        if category is not None:
            self.category = category
        self.cause = cause
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error": type(self).__name__,
            "category": self.category.value,
            "message": self.message,
        }
        if self.cause is not None:
            data["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        data.update(self.context)
        return data


class SinkAcquisitionError(RelaylogError):
    """A sink could not acquire its destination (file, directory, ...)."""

    category = ErrorCategory.RESOURCE


class DeliveryError(RelaylogError):
    """A batch could not be delivered; ``status_code`` is set for HTTP errors."""

    category = ErrorCategory.DELIVERY

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message, cause=cause, status_code=status_code, **context)
        self.status_code = status_code


class WorkerSpawnError(RelaylogError):
    """A worker process could not be started."""

    category = ErrorCategory.DELIVERY
