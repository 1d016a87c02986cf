"""Internal diagnostics for relaylog itself.

Diagnostics are how the pipeline reports its own trouble (a sink that failed,
a worker that stopped) without going through the pipeline. They are off by
default; turn them on with ``RELAYLOG_CORE__INTERNAL_LOGGING_ENABLED=true`` or
``core.internal_logging_enabled`` in settings. Each diagnostic is written to
stderr as a single JSON object per line.

Rate limiting: calls sharing a ``_rate_limit_key`` are emitted at most once per
``_RATE_LIMIT_WINDOW_SECONDS``.
"""

from __future__ import annotations

import sys
import threading
import time
from typing import Any, Callable

import orjson

_RATE_LIMIT_WINDOW_SECONDS = 5.0

# Cached enablement; None means "read settings on next use"
_internal_logging_enabled: bool | None = None

_writer: Callable[[dict[str, Any]], None] | None = None
_last_emitted: dict[str, float] = {}
_lock = threading.Lock()


def _default_writer(payload: dict[str, Any]) -> None:
    sys.stderr.write(orjson.dumps(payload, default=str).decode("utf-8") + "\n")
    sys.stderr.flush()


def _enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(Settings().core.internal_logging_enabled)
        except Exception:
            _internal_logging_enabled = False
    return _internal_logging_enabled


def configure(*, enabled: bool) -> None:
    """Force diagnostics on or off, overriding the environment."""
    global _internal_logging_enabled
    _internal_logging_enabled = enabled


def _rate_limited(key: str | None) -> bool:
    if key is None:
        return False
    now = time.monotonic()
    with _lock:
        last = _last_emitted.get(key)
        if last is not None and now - last < _RATE_LIMIT_WINDOW_SECONDS:
            return True
        _last_emitted[key] = now
    return False


def _emit(
    level: str,
    component: str,
    message: str,
    rate_limit_key: str | None,
    fields: dict[str, Any],
) -> None:
    if not _enabled() or _rate_limited(rate_limit_key):
        return
    payload: dict[str, Any] = {
        "ts": time.time(),
        "level": level,
        "component": component,
        "message": message,
    }
    payload.update(fields)
    writer = _writer or _default_writer
    try:
        writer(payload)
    except Exception:
        # Diagnostics must never break the caller
        pass


def warn(
    component: str,
    message: str,
    *,
    _rate_limit_key: str | None = None,
    **fields: Any,
) -> None:
    _emit("WARN", component, message, _rate_limit_key, fields)


def debug(
    component: str,
    message: str,
    *,
    _rate_limit_key: str | None = None,
    **fields: Any,
) -> None:
    _emit("DEBUG", component, message, _rate_limit_key, fields)


def set_writer_for_tests(writer: Callable[[dict[str, Any]], None] | None) -> None:
    """Redirect diagnostics into ``writer`` (``None`` restores stderr)."""
    global _writer
    _writer = writer


def _reset_for_tests() -> None:
    global _internal_logging_enabled, _writer
    _internal_logging_enabled = None
    _writer = None
    with _lock:
        _last_emitted.clear()
