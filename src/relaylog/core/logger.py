"""
Logger facade: leveled entry points in front of the dispatch pipeline.

A call is checked against the threshold before anything else happens; a
filtered call formats nothing, walks no frames and touches no queue. Accepted
calls are rendered into a ``LogRecord`` and put on the bounded queue, waiting
for space when it is full. The dispatch worker delivers them in order.

Example:
    >>> from relaylog import Logger, Settings
    >>> with Logger(Settings(core={"level": "INFO"})) as log:
    ...     log.info("listening on %s:%d", "0.0.0.0", 8080)
    ...     log.error(OSError("disk full"), "cannot save %s", "report.pdf")
"""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Callable

from ..metrics.metrics import MetricsCollector
from ..plugins.sinks import BaseSink, sinks_from_settings
from . import diagnostics, shutdown
from .caller import FrameCallerResolver, ProvenanceProvider
from .concurrency import BoundedQueue
from .errors import QueueClosedError, SinkError
from .formatting import (
    ErrorValue,
    LogRecord,
    apply_args,
    as_cause,
    describe_cause,
    format_line,
)
from .levels import Level, parse_level
from .settings import Settings
from .worker import LoggerWorker, WorkerState

# Frames between the caller resolver and user code: _log() and the entry point
_INTERNAL_FRAMES = 2


class Logger:
    """Severity-filtered logger backed by one dispatch worker."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        sinks: Sequence[BaseSink] | None = None,
        caller_resolver: ProvenanceProvider | None = None,
        clock: Callable[[], datetime] | None = None,
        metrics: MetricsCollector | None = None,
        name: str = "relaylog",
    ) -> None:
        self._settings = settings or Settings()
        core = self._settings.core
        if core.internal_logging_enabled:
            diagnostics.configure(enabled=True)
        self._name = name
        self._threshold = core.threshold
        self._queue: BoundedQueue[LogRecord] = BoundedQueue(core.queue_capacity)
        self._sinks: list[BaseSink] = (
            list(sinks) if sinks is not None else sinks_from_settings(self._settings)
        )
        self._resolver = caller_resolver or FrameCallerResolver()
        self._clock = clock or datetime.now
        self._metrics = metrics or MetricsCollector(enabled=core.enable_metrics)
        self._lifecycle_lock = threading.Lock()
        self._stopped = False
        self._stop_listeners: list[Callable[[LoggerWorker], None]] = []
        self._worker = self._new_worker()

    # -- configuration ---------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def level(self) -> Level:
        return self._threshold

    def set_level(self, level: str | int | Level) -> None:
        """Change the threshold; the only setting that may change at runtime."""
        self._threshold = parse_level(level)

    @property
    def sinks(self) -> tuple[BaseSink, ...]:
        return tuple(self._sinks)

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    # -- worker lifecycle ---------------------------------------------------

    @property
    def worker_state(self) -> WorkerState:
        return self._worker.state

    @property
    def stop_reason(self) -> SinkError | None:
        return self._worker.stop_reason

    @property
    def pending(self) -> int:
        """Records queued but not yet taken by the worker."""
        return self._queue.qsize()

    def _new_worker(self) -> LoggerWorker:
        worker = LoggerWorker(
            queue=self._queue,
            sinks=self._sinks,
            clock=self._clock,
            report_error=self._report_worker_error,
            metrics=self._metrics,
            name=f"{self._name}-worker",
        )
        for listener in self._stop_listeners:
            worker.add_stop_listener(listener)
        return worker

    def start(self) -> None:
        """Start the dispatch worker if it has not been started yet."""
        with self._lifecycle_lock:
            if self._stopped or self._worker.state is not WorkerState.IDLE:
                return
            self._worker.start()
        if self._settings.core.atexit_drain_enabled:
            shutdown.register_logger(self)

    def stop(self, timeout: float | None = None) -> bool:
        """Close the queue, let the worker deliver what is queued, and join it.

        Returns False if the worker did not finish within ``timeout``.
        """
        with self._lifecycle_lock:
            self._stopped = True
            self._queue.close()
            worker = self._worker
            if worker.state is WorkerState.IDLE and not self._queue.empty():
                worker.start()
        stopped = worker.join(timeout)
        shutdown.unregister_logger(self)
        return stopped

    def restart(self) -> None:
        """Start a fresh worker after the previous one stopped.

        Records that piled up while the worker was stopped are delivered by
        the new worker, starting with the report of the failure.
        """
        with self._lifecycle_lock:
            if self._worker.state is not WorkerState.STOPPED:
                raise RuntimeError("worker has not stopped")
            self._queue.reopen()
            self._stopped = False
            self._worker = self._new_worker()
        self.start()

    def add_stop_listener(self, listener: Callable[[LoggerWorker], None]) -> None:
        """Call ``listener(worker)`` each time a worker of this logger stops.

        Listeners carry over to the workers created by ``restart()``.
        """
        with self._lifecycle_lock:
            self._stop_listeners.append(listener)
            self._worker.add_stop_listener(listener)

    def drain(
        self,
        poll_interval: float | None = None,
        timeout: float | None = None,
    ) -> bool:
        """Wait until the queue is observed empty.

        This polls the queue length; the record the worker is currently
        writing may still be in flight when it returns. Returns False if the
        timeout expires or the worker is not running while records remain.
        """
        if poll_interval is None:
            poll_interval = self._settings.core.drain_poll_interval_seconds
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._queue.empty():
            if self._worker.state is not WorkerState.RUNNING:
                return False
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(poll_interval)
        return True

    def __enter__(self) -> Logger:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.stop()

    # -- entry points -----------------------------------------------------

    def error(self, cause: Any, prompt: str, *args: Any, depth: int = 0) -> None:
        """Log ``prompt % args`` at ERROR with ``cause`` appended.

        ``cause`` may be an exception, a string, a small integer return code,
        or any other value (rendered opaquely).
        """
        if not Level.ERROR.passes(self._threshold):
            return
        message = describe_cause(as_cause(cause), apply_args(prompt, args))
        self._log(Level.ERROR, message, depth)

    def warning(self, prompt: str, *args: Any, depth: int = 0) -> None:
        if not Level.WARNING.passes(self._threshold):
            return
        self._log(Level.WARNING, apply_args(prompt, args), depth)

    def info(self, prompt: str, *args: Any, depth: int = 0) -> None:
        if not Level.INFO.passes(self._threshold):
            return
        self._log(Level.INFO, apply_args(prompt, args), depth)

    def debug(self, prompt: str, *args: Any, depth: int = 0) -> None:
        if not Level.DEBUG.passes(self._threshold):
            return
        self._log(Level.DEBUG, apply_args(prompt, args), depth)

    def log(self, level: Level, message: str, *, depth: int = 0) -> None:
        """Log a preformatted message at ``level``."""
        if not level.passes(self._threshold):
            return
        self._log(level, message, depth)

    # Letter-code aliases
    ERR = error
    WRN = warning
    INF = info
    DBG = debug

    def _log(self, level: Level, message: str, depth: int) -> None:
        caller = self._resolver.resolve(_INTERNAL_FRAMES + depth)
        self._enqueue(LogRecord(level, format_line(level, caller, message)))

    def _enqueue(self, record: LogRecord) -> None:
        if self._worker.state is WorkerState.IDLE:
            self.start()
        try:
            waited = self._queue.put(record)
        except QueueClosedError:
            diagnostics.warn(
                "logger",
                "message dropped, logger is stopped",
                logger=self._name,
                _rate_limit_key=f"closed:{self._name}",
            )
            return
        self._metrics.record_enqueued(waited=waited)

    def _report_worker_error(self, error: SinkError) -> None:
        # Runs on the worker thread: never block on a full queue here
        if not Level.ERROR.passes(self._threshold):
            return
        cause = error.__cause__ if error.__cause__ is not None else error
        message = describe_cause(ErrorValue(cause), error.message)
        caller = self._resolver.resolve(1)
        record = LogRecord(Level.ERROR, format_line(Level.ERROR, caller, message))
        if self._queue.try_put(record):
            self._metrics.record_enqueued()


def create_logger(settings: Settings | None = None, **kwargs: Any) -> Logger:
    """Construct a logger and start its worker."""
    logger = Logger(settings, **kwargs)
    logger.start()
    return logger


__all__ = ["Logger", "create_logger"]
