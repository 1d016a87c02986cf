"""
Error hierarchy for relaylog.

Sink errors are raised by sinks and caught by the dispatch worker; they never
reach code that calls the logging methods. A sink error from a sink marked
``fatal_on_error`` stops the worker and becomes its ``stop_reason``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Coarse error categories used in diagnostics and ``to_dict()``."""

    CONFIG = "config"
    SINK = "sink"
    QUEUE = "queue"
    SYSTEM = "system"


class RelaylogError(Exception):
    """Base class for all relaylog errors."""

    category: ErrorCategory = ErrorCategory.SYSTEM

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "category": self.category.value,
            "message": self.message,
        }
        if self.__cause__ is not None:
            data["cause"] = f"{type(self.__cause__).__name__}: {self.__cause__}"
        return data


class ConfigurationError(RelaylogError):
    """Invalid settings or an unusable sink configuration."""

    category = ErrorCategory.CONFIG


class QueueClosedError(RelaylogError):
    """Raised by the queue once it is closed and has nothing left to hand out."""

    category = ErrorCategory.QUEUE


class SinkError(RelaylogError):
    """A sink could not open, write, or close its destination."""

    category = ErrorCategory.SINK
    operation = "io"

    def __init__(
        self,
        message: str,
        *,
        sink: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.sink = sink

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["sink"] = self.sink
        data["operation"] = self.operation
        return data


class SinkOpenError(SinkError):
    operation = "open"


class SinkWriteError(SinkError):
    operation = "write"


class SinkCloseError(SinkError):
    operation = "close"


__all__ = [
    "ErrorCategory",
    "RelaylogError",
    "ConfigurationError",
    "QueueClosedError",
    "SinkError",
    "SinkOpenError",
    "SinkWriteError",
    "SinkCloseError",
]
