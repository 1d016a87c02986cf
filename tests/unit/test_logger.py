"""Tests for the logger facade and its worker lifecycle."""

from __future__ import annotations

import inspect
import threading
import time
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from relaylog import Level, Logger, Settings, WorkerState
from relaylog.core import diagnostics
from relaylog.core.caller import FixedCallerResolver, FrameCallerResolver
from relaylog.core import logger as logger_module
from relaylog.core.errors import SinkWriteError
from relaylog.core.formatting import StampedLine
from relaylog.plugins.sinks.daily_file import DailyFileSink
from relaylog.testing import CaptureSink, FailingSink

LoggerFactory = Callable[..., Logger]


def _settings(**core: Any) -> Settings:
    core.setdefault("atexit_drain_enabled", False)
    return Settings(console={"enabled": False}, core=core)


def _wait_for_state(logger: Logger, state: WorkerState, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if logger.worker_state is state:
            return True
        time.sleep(0.01)
    return logger.worker_state is state


class TestFiltering:
    def test_filtered_call_has_no_side_effects(
        self, logger_factory: LoggerFactory
    ) -> None:
        class Boom:
            def __str__(self) -> str:
                raise AssertionError("formatted a filtered message")

        resolver = FixedCallerResolver()
        logger = logger_factory(_settings(level="ERROR"), caller_resolver=resolver)

        logger.warning("w %s", Boom())
        logger.info("i %s", Boom())
        logger.debug("d %s", Boom())
        logger.log(Level.INFO, "preformatted")

        assert resolver.calls == 0
        assert logger.pending == 0
        assert logger.metrics.snapshot().messages_enqueued == 0
        assert logger.worker_state is WorkerState.IDLE

    def test_set_level_changes_threshold(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        logger = logger_factory(sinks=[capture_sink])
        assert logger.level is Level.DEBUG

        logger.set_level("warn")
        logger.info("hidden")
        logger.warning("shown")
        logger.set_level(Level.DEBUG)
        logger.debug("shown too")
        logger.stop(timeout=2.0)

        assert capture_sink.raw == [
            "|W|test():1 shown\n",
            "|D|test():1 shown too\n",
        ]

    def test_set_level_rejects_unknown(self, logger_factory: LoggerFactory) -> None:
        with pytest.raises(ValueError):
            logger_factory().set_level("verbose")


class TestDelivery:
    @pytest.mark.critical
    def test_single_producer_order(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        logger = logger_factory(sinks=[capture_sink])
        for i in range(50):
            logger.info("m %d", i)
        assert logger.stop(timeout=2.0)

        assert capture_sink.raw == [f"|I|test():1 m {i}\n" for i in range(50)]

    def test_many_producers_keep_their_own_order(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        logger = logger_factory(_settings(queue_capacity=16), sinks=[capture_sink])
        per_thread = 100

        def produce(tid: int) -> None:
            for i in range(per_thread):
                logger.debug("%d:%d", tid, i)

        threads = [threading.Thread(target=produce, args=(t,)) for t in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5.0)
        assert logger.stop(timeout=5.0)

        seen: dict[int, list[int]] = {t: [] for t in range(4)}
        for raw in capture_sink.raw:
            tid, i = raw.rsplit(" ", 1)[1].strip().split(":")
            seen[int(tid)].append(int(i))
        assert all(values == list(range(per_thread)) for values in seen.values())

    def test_error_causes(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        logger = logger_factory(sinks=[capture_sink])
        logger.error(OSError("disk full"), "cannot save %s", "r.pdf")
        logger.ERR("timeout", "fetch failed")
        logger.ERR(5, "child exited")
        logger.ERR(2.5, "odd cause")
        logger.stop(timeout=2.0)

        assert capture_sink.raw == [
            "|E|test():1 cannot save r.pdf err{disk full}\n",
            "|E|test():1 fetch failed err{timeout}\n",
            "|E|test():1 child exited RC:05\n",
            "|E|test():1 odd cause ???{type(2.5)=2.5}\n",
        ]

    def test_letter_aliases(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        logger = logger_factory(sinks=[capture_sink])
        logger.WRN("w")
        logger.INF("i")
        logger.DBG("d")
        logger.stop(timeout=2.0)

        assert [raw[:3] for raw in capture_sink.raw] == ["|W|", "|I|", "|D|"]


class _GatedSink(CaptureSink):
    """Capture sink that holds every write until ``gate`` is set."""

    def __init__(self) -> None:
        super().__init__("gated")
        self.gate = threading.Event()

    async def write(self, line: StampedLine) -> None:
        self.gate.wait(timeout=2.0)
        await super().write(line)


def _log_via_helper(logger: Logger) -> None:
    logger.info("from helper", depth=1)


class TestCallerResolution:
    def test_default_resolver_names_calling_method(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        logger = logger_factory(
            sinks=[capture_sink], caller_resolver=FrameCallerResolver()
        )
        line = inspect.currentframe().f_lineno + 1  # type: ignore[union-attr]
        logger.info("here")
        logger.stop(timeout=2.0)

        expected = (
            f"|I|TestCallerResolution.test_default_resolver_names_calling_method()"
            f":{line} here\n"
        )
        assert capture_sink.raw == [expected]

    def test_depth_skips_helper_frames(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        logger = logger_factory(
            sinks=[capture_sink], caller_resolver=FrameCallerResolver()
        )
        line = inspect.currentframe().f_lineno + 1  # type: ignore[union-attr]
        _log_via_helper(logger)
        logger.stop(timeout=2.0)

        assert capture_sink.raw == [
            f"|I|TestCallerResolution.test_depth_skips_helper_frames():{line}"
            " from helper\n"
        ]


class TestLifecycle:
    def test_state_transitions(self, logger_factory: LoggerFactory) -> None:
        logger = logger_factory(sinks=[CaptureSink()])
        assert logger.worker_state is WorkerState.IDLE

        logger.info("first call starts the worker")
        assert logger.worker_state is WorkerState.RUNNING

        assert logger.stop(timeout=2.0)
        assert logger.worker_state is WorkerState.STOPPED
        assert logger.stop_reason is None

    def test_drain_on_idle_empty_logger_returns_immediately(
        self, logger_factory: LoggerFactory
    ) -> None:
        logger = logger_factory()
        assert logger.drain() is True
        assert logger.worker_state is WorkerState.IDLE

    def test_drain_waits_for_queue(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        logger = logger_factory(sinks=[capture_sink])
        for i in range(20):
            logger.info("%d", i)
        assert logger.drain(poll_interval=0.005, timeout=2.0) is True
        assert logger.pending == 0

    def test_drain_gives_up_when_worker_stopped(
        self, logger_factory: LoggerFactory
    ) -> None:
        logger = logger_factory(sinks=[FailingSink()])
        logger.info("fails")
        assert _wait_for_state(logger, WorkerState.STOPPED)
        logger.info("stuck")

        assert logger.drain(timeout=1.0) is False
        assert logger.pending >= 1

    def test_stop_is_idempotent_and_later_calls_are_dropped(
        self, logger_factory: LoggerFactory
    ) -> None:
        captured: list[dict[str, Any]] = []
        diagnostics.configure(enabled=True)
        diagnostics.set_writer_for_tests(captured.append)
        logger = logger_factory()

        assert logger.stop(timeout=1.0)
        assert logger.stop(timeout=1.0)
        logger.info("too late")

        assert logger.pending == 0
        assert logger.worker_state is WorkerState.IDLE
        assert [c["message"] for c in captured] == ["message dropped, logger is stopped"]

    def test_stop_delivers_records_queued_before_start(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        logger = logger_factory(sinks=[capture_sink])
        logger.start = lambda: None  # type: ignore[method-assign]
        logger.info("queued")
        assert logger.worker_state is WorkerState.IDLE

        assert logger.stop(timeout=2.0)
        assert capture_sink.raw == ["|I|test():1 queued\n"]

    def test_context_manager(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        with logger_factory(sinks=[capture_sink]) as logger:
            assert logger.worker_state is WorkerState.RUNNING
            logger.info("inside")
        assert logger.worker_state is WorkerState.STOPPED
        assert capture_sink.raw == ["|I|test():1 inside\n"]

    def test_stop_listener(self, logger_factory: LoggerFactory) -> None:
        stopped = threading.Event()
        logger = logger_factory()
        logger.add_stop_listener(lambda worker: stopped.set())
        logger.start()
        logger.stop(timeout=2.0)
        assert stopped.is_set()

    def test_drain_honours_zero_poll_interval(
        self, logger_factory: LoggerFactory, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        sink = _GatedSink()
        intervals: list[float] = []

        def sleep(seconds: float) -> None:
            intervals.append(seconds)
            sink.gate.set()
            time.sleep(0.001)

        fake_time = SimpleNamespace(monotonic=time.monotonic, sleep=sleep)
        monkeypatch.setattr(logger_module, "time", fake_time)
        logger = logger_factory(sinks=[sink])
        logger.info("a")
        logger.info("b")

        assert logger.drain(poll_interval=0.0, timeout=2.0) is True
        assert intervals
        assert set(intervals) == {0.0}

    def test_sink_io_runs_on_worker_thread(
        self,
        logger_factory: LoggerFactory,
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
    ) -> None:
        threads: set[str] = set()
        original = DailyFileSink._write_sync

        def write_sync(self: DailyFileSink, line: StampedLine) -> None:
            threads.add(threading.current_thread().name)
            original(self, line)

        monkeypatch.setattr(DailyFileSink, "_write_sync", write_sync)
        settings = Settings(
            console={"enabled": False},
            file={"enabled": True, "directory": tmp_path, "basename": "svc"},
            core={"atexit_drain_enabled": False},
        )
        logger = logger_factory(settings)
        for i in range(5):
            logger.info("%d", i)
        assert logger.stop(timeout=2.0)

        assert threads == {f"{logger.name}-worker"}
        assert len(next(tmp_path.glob("svc_*.log")).read_text().splitlines()) == 5


class TestFatalStop:
    def test_failure_is_reported_and_restart_resumes(
        self, logger_factory: LoggerFactory
    ) -> None:
        capture = CaptureSink("capture", fatal_on_error=False)
        failing = FailingSink(fail_on=1)
        logger = logger_factory(sinks=[capture, failing])

        logger.info("a")
        assert _wait_for_state(logger, WorkerState.STOPPED)
        assert isinstance(logger.stop_reason, SinkWriteError)

        logger.info("while stopped")
        assert logger.pending == 2

        logger.restart()
        assert logger.worker_state is WorkerState.RUNNING
        assert logger.stop_reason is None
        assert logger.stop(timeout=2.0)

        assert capture.raw == [
            "|I|test():1 a\n",
            "|E|test():1 simulated write failure err{simulated write failure}\n",
            "|I|test():1 while stopped\n",
        ]
        assert failing.raw == capture.raw[1:]

    def test_stop_listener_survives_restart(self, logger_factory: LoggerFactory) -> None:
        stops: list[WorkerState] = []
        logger = logger_factory(sinks=[FailingSink(fail_on=1)])
        logger.add_stop_listener(lambda worker: stops.append(worker.state))

        logger.info("fails")
        assert _wait_for_state(logger, WorkerState.STOPPED)
        logger.restart()
        assert logger.stop(timeout=2.0)

        assert stops == [WorkerState.STOPPED, WorkerState.STOPPED]

    def test_producers_block_once_stopped_queue_fills(
        self, logger_factory: LoggerFactory
    ) -> None:
        logger = logger_factory(_settings(queue_capacity=3), sinks=[FailingSink()])
        logger.info("fails")
        assert _wait_for_state(logger, WorkerState.STOPPED)
        while logger.pending < 3:
            logger.info("piling up")

        producer = threading.Thread(target=logger.info, args=("blocked",))
        producer.start()
        time.sleep(0.05)
        assert producer.is_alive()
        assert logger.pending == 3

        logger.stop(timeout=1.0)
        producer.join(timeout=2.0)
        assert not producer.is_alive()

    def test_restart_requires_stopped_worker(self, logger_factory: LoggerFactory) -> None:
        with pytest.raises(RuntimeError):
            logger_factory().restart()


class TestBackpressure:
    def test_full_queue_blocks_producer_until_stop(
        self, logger_factory: LoggerFactory, capture_sink: CaptureSink
    ) -> None:
        logger = logger_factory(_settings(queue_capacity=3), sinks=[capture_sink])
        logger.start = lambda: None  # type: ignore[method-assign]
        for i in range(3):
            logger.info("%d", i)

        producer = threading.Thread(target=logger.info, args=("blocked",))
        producer.start()
        time.sleep(0.05)
        assert producer.is_alive()
        assert logger.pending == 3

        assert logger.stop(timeout=2.0)
        producer.join(timeout=2.0)
        assert not producer.is_alive()
        assert capture_sink.raw == [f"|I|test():1 {i}\n" for i in range(3)]

    def test_waits_are_counted(self, logger_factory: LoggerFactory) -> None:
        logger = logger_factory(_settings(queue_capacity=1), sinks=[CaptureSink()])
        logger.start = lambda: None  # type: ignore[method-assign]
        logger.info("a")

        producer = threading.Thread(target=logger.info, args=("b",))
        producer.start()
        time.sleep(0.05)
        assert logger._queue.get(timeout=1.0) is not None
        producer.join(timeout=2.0)

        snap = logger.metrics.snapshot()
        assert snap.messages_enqueued == 2
        assert snap.backpressure_waits == 1
