"""
Testing utilities for relaylog and for custom sinks.

Pytest fixtures live in ``relaylog.testing.fixtures``; enable them with
``pytest_plugins = ("relaylog.testing.fixtures",)``.

Example:
    from relaylog.testing import CaptureSink, validate_sink

    def test_my_sink():
        assert validate_sink(MySink()).valid
"""

from .mocks import CaptureSink, FailingSink, ManualClock
from .validators import ProtocolViolationError, ValidationResult, validate_sink

__all__ = [
    "CaptureSink",
    "FailingSink",
    "ManualClock",
    "validate_sink",
    "ValidationResult",
    "ProtocolViolationError",
]
