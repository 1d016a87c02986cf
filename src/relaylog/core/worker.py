"""
Dispatch worker: the single consumer of a logger's queue.

The worker runs a coroutine on a private event loop inside one dedicated
daemon thread. Dequeueing and all sink I/O happen on that thread, so sink
handles are never shared and every sink sees records in enqueue order. Each
record is stamped once and handed to the sinks in their configured order (console, syslog,
file). A failure from a sink marked ``fatal_on_error`` stops the worker for
good: the error is reported, kept as ``stop_reason``, and nothing more is
taken off the queue. A fresh worker can be started on the same queue later.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from . import diagnostics
from .concurrency import BoundedQueue
from .errors import QueueClosedError, SinkError, SinkWriteError
from .formatting import LogRecord, stamp

if TYPE_CHECKING:
    from ..metrics.metrics import MetricsCollector
    from ..plugins.sinks import BaseSink


class WorkerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


def _sink_name(sink: Any) -> str:
    return getattr(sink, "name", type(sink).__name__)


class LoggerWorker:
    """Background worker that delivers queued records to sinks."""

    def __init__(
        self,
        *,
        queue: BoundedQueue[LogRecord],
        sinks: Sequence[BaseSink],
        clock: Callable[[], datetime] = datetime.now,
        report_error: Callable[[SinkError], None] | None = None,
        metrics: MetricsCollector | None = None,
        name: str = "relaylog-worker",
    ) -> None:
        self._queue = queue
        self._sinks = list(sinks)
        self._clock = clock
        self._report_error = report_error
        self._metrics = metrics
        self._name = name
        self._state = WorkerState.IDLE
        self._stop_reason: SinkError | None = None
        self._thread: threading.Thread | None = None
        self._stopped_event = threading.Event()
        self._listeners: list[Callable[[LoggerWorker], None]] = []

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def stop_reason(self) -> SinkError | None:
        """The sink error that stopped the worker, if any."""
        return self._stop_reason

    @property
    def thread(self) -> threading.Thread | None:
        return self._thread

    def add_stop_listener(self, listener: Callable[[LoggerWorker], None]) -> None:
        """Call ``listener(worker)`` from the worker thread once it stops."""
        self._listeners.append(listener)

    def start(self) -> None:
        """Run the worker in its own daemon thread."""
        if self._state is not WorkerState.IDLE:
            raise RuntimeError(f"worker is {self._state.value}, cannot start")
        self._mark_running()
        self._thread = threading.Thread(
            target=self._thread_main, name=self._name, daemon=True
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the worker to stop; True if it did within ``timeout``."""
        if self._state is WorkerState.IDLE:
            return True
        return self._stopped_event.wait(timeout)

    def _thread_main(self) -> None:
        asyncio.run(self.run())

    def _mark_running(self) -> None:
        self._state = WorkerState.RUNNING
        if self._metrics is not None:
            self._metrics.set_worker_running(True)

    async def run(self) -> None:
        """Consume the queue until it is closed and empty, or a sink fails."""
        if self._state is WorkerState.IDLE:
            self._mark_running()
        try:
            await self._start_sinks()
            while True:
                try:
                    # This loop is private to the worker thread
                    record = self._queue.get()
                except QueueClosedError:
                    return
                if not await self._deliver(record):
                    return
        except asyncio.CancelledError:
            return
        finally:
            await self._stop_sinks()
            self._finish()

    async def _deliver(self, record: LogRecord) -> bool:
        line = stamp(record, self._clock())
        for sink in self._sinks:
            try:
                await sink.write(line)
            except Exception as exc:
                if not getattr(sink, "fatal_on_error", True):
                    continue
                if isinstance(exc, SinkError):
                    error = exc
                else:
                    error = SinkWriteError(
                        str(exc) or type(exc).__name__,
                        sink=_sink_name(sink),
                        cause=exc,
                    )
                self._fail(error)
                return False
        if self._metrics is not None:
            self._metrics.record_delivered()
        return True

    def _fail(self, error: SinkError) -> None:
        self._stop_reason = error
        if self._metrics is not None:
            self._metrics.record_sink_error(sink=error.sink)
        diagnostics.warn(
            "worker",
            "sink failure stopped worker",
            sink=error.sink,
            operation=error.operation,
            error=str(error.__cause__ or error),
        )
        if self._report_error is not None:
            try:
                self._report_error(error)
            except Exception:
                pass

    async def _start_sinks(self) -> None:
        for sink in self._sinks:
            try:
                await sink.start()
            except Exception as exc:
                diagnostics.warn(
                    "sink", "sink start failed", sink=_sink_name(sink), error=str(exc)
                )

    async def _stop_sinks(self) -> None:
        for sink in self._sinks:
            try:
                await sink.stop()
            except Exception as exc:
                diagnostics.warn(
                    "sink", "sink stop failed", sink=_sink_name(sink), error=str(exc)
                )

    def _finish(self) -> None:
        self._state = WorkerState.STOPPED
        if self._metrics is not None:
            self._metrics.set_worker_running(False)
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                pass
        self._stopped_event.set()


__all__ = ["LoggerWorker", "WorkerState"]
