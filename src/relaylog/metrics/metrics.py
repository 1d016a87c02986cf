"""
Pipeline metrics for relaylog.

Implements a small set of Prometheus counters and a gauge for the delivery
pipeline. Producers record from their own threads and the worker records from
its thread, so the collector is synchronous and guarded by a thread lock.

Design goals:
- Zero global state; each logger owns its collector and registry
- Safe no-op exporters when metrics are disabled by settings
- In-memory snapshot always maintained for tests and health checks
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Gauge


@dataclass
class PipelineMetrics:
    """Captured runtime counters for quick assertions in tests."""

    messages_enqueued: int = 0
    messages_delivered: int = 0
    backpressure_waits: int = 0
    sink_errors: int = 0
    worker_running: bool = False


class MetricsCollector:
    """Logger-scoped metrics collector."""

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = threading.Lock()
        self._state = PipelineMetrics()

        self._c_enqueued: Any | None = None
        self._c_delivered: Any | None = None
        self._c_backpressure: Any | None = None
        self._c_sink_errors: Any | None = None
        self._g_worker_running: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            # Isolated registry avoids duplicate registration across loggers
            self._registry = CollectorRegistry()
            self._c_enqueued = Counter(
                "relaylog_messages_enqueued_total",
                "Messages accepted by the threshold and queued",
                registry=self._registry,
            )
            self._c_delivered = Counter(
                "relaylog_messages_delivered_total",
                "Messages taken off the queue and handed to every enabled sink",
                registry=self._registry,
            )
            self._c_backpressure = Counter(
                "relaylog_backpressure_waits_total",
                "Enqueue calls that waited for queue space",
                registry=self._registry,
            )
            self._c_sink_errors = Counter(
                "relaylog_sink_errors_total",
                "Sink failures that stopped the worker",
                ["sink"],
                registry=self._registry,
            )
            self._g_worker_running = Gauge(
                "relaylog_worker_running",
                "1 while the dispatch worker is processing messages",
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    def record_enqueued(self, *, waited: bool = False) -> None:
        with self._lock:
            self._state.messages_enqueued += 1
            if waited:
                self._state.backpressure_waits += 1
        if not self._enabled:
            return
        if self._c_enqueued is not None:
            self._c_enqueued.inc()
        if waited and self._c_backpressure is not None:
            self._c_backpressure.inc()

    def record_delivered(self) -> None:
        with self._lock:
            self._state.messages_delivered += 1
        if self._enabled and self._c_delivered is not None:
            self._c_delivered.inc()

    def record_sink_error(self, *, sink: str | None = None) -> None:
        with self._lock:
            self._state.sink_errors += 1
        if self._enabled and self._c_sink_errors is not None:
            self._c_sink_errors.labels(sink=sink or "unknown").inc()

    def set_worker_running(self, running: bool) -> None:
        with self._lock:
            self._state.worker_running = running
        if self._enabled and self._g_worker_running is not None:
            self._g_worker_running.set(1 if running else 0)

    def snapshot(self) -> PipelineMetrics:
        with self._lock:
            return replace(self._state)
