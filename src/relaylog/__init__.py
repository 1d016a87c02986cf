"""
Public entrypoints for relaylog.

Asynchronous multi-sink logging: application threads call leveled methods on a
``Logger`` and one background worker writes the lines to the console, the
local syslog daemon, and/or a daily log file.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from ._version import __version__
from .core.caller import CallerInfo, FixedCallerResolver, FrameCallerResolver
from .core.errors import (
    RelaylogError,
    SinkCloseError,
    SinkError,
    SinkOpenError,
    SinkWriteError,
)
from .core.formatting import CodeValue, ErrorValue, OpaqueValue, TextValue
from .core.levels import Level
from .core.logger import Logger, create_logger
from .core.settings import Settings
from .core.worker import WorkerState

__all__ = [
    "Logger",
    "create_logger",
    "runtime",
    "Settings",
    "Level",
    "WorkerState",
    "CallerInfo",
    "FrameCallerResolver",
    "FixedCallerResolver",
    "ErrorValue",
    "TextValue",
    "CodeValue",
    "OpaqueValue",
    "RelaylogError",
    "SinkError",
    "SinkOpenError",
    "SinkWriteError",
    "SinkCloseError",
    "__version__",
    "VERSION",
]

VERSION = __version__


@contextmanager
def runtime(
    settings: Settings | None = None,
    *,
    drain_timeout: float | None = None,
    **kwargs: Any,
) -> Iterator[Logger]:
    """Run a started logger for the duration of a ``with`` block.

    On exit the queue is drained (bounded by ``drain_timeout`` when given)
    and the worker is stopped.

    Example:
        >>> with runtime(Settings(file={"enabled": True})) as log:
        ...     log.info("batch %d complete", 7)
    """
    logger = create_logger(settings, **kwargs)
    try:
        yield logger
    finally:
        logger.drain(timeout=drain_timeout)
        logger.stop(timeout=drain_timeout)
