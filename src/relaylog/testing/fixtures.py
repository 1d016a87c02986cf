"""Pytest fixtures for code that logs through relaylog."""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest

from ..core.caller import FixedCallerResolver
from ..core.logger import Logger
from ..core.settings import Settings
from .mocks import CaptureSink, ManualClock


@pytest.fixture
def capture_sink() -> CaptureSink:
    return CaptureSink()


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def logger_factory() -> Generator[Callable[..., Logger], None, None]:
    """Build loggers that are stopped when the test ends.

    Loggers default to a console-free configuration; pass ``sinks=[...]`` to
    capture output.
    """
    created: list[Logger] = []

    def _make(settings: Settings | None = None, **kwargs: Any) -> Logger:
        if settings is None:
            settings = Settings(
                console={"enabled": False},
                core={"atexit_drain_enabled": False},
            )
        kwargs.setdefault("caller_resolver", FixedCallerResolver("test", 1))
        logger = Logger(settings, **kwargs)
        created.append(logger)
        return logger

    yield _make
    for logger in created:
        logger.stop(timeout=2.0)
