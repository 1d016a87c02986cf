"""Exit-time draining of running loggers.

Loggers register themselves here when their worker starts. At interpreter exit
each still-registered logger is drained (bounded by its configured timeout)
and stopped so queued lines reach their sinks. Registration uses a WeakSet,
so an abandoned logger is not kept alive by this module.

The handler is best-effort and never raises.
"""

from __future__ import annotations

import atexit
import weakref
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .logger import Logger

_shutdown_in_progress: bool = False
_registered_loggers: weakref.WeakSet[Any] = weakref.WeakSet()


def register_logger(logger: Logger) -> None:
    """Register a logger for automatic drain on exit."""
    _registered_loggers.add(logger)


def unregister_logger(logger: Logger) -> None:
    """Forget a logger, typically after an explicit stop()."""
    _registered_loggers.discard(logger)


def registered_loggers() -> list[Logger]:
    try:
        return list(_registered_loggers)
    except RuntimeError:  # pragma: no cover - set changed during iteration
        return []


def _drain_single_logger(logger: Any) -> None:
    try:
        timeout = logger.settings.core.atexit_drain_timeout_seconds
        logger.drain(timeout=timeout)
        logger.stop(timeout=timeout)
    except Exception:
        pass  # Best effort - don't crash on exit


def _atexit_handler() -> None:
    global _shutdown_in_progress

    if _shutdown_in_progress:
        return
    _shutdown_in_progress = True
    for logger in registered_loggers():
        _drain_single_logger(logger)


atexit.register(_atexit_handler)
