"""Core pipeline pieces: levels, formatting, queue, worker, and settings."""

from .caller import (
    CallerInfo,
    FixedCallerResolver,
    FrameCallerResolver,
    ProvenanceProvider,
)
from .errors import (
    ConfigurationError,
    QueueClosedError,
    RelaylogError,
    SinkCloseError,
    SinkError,
    SinkOpenError,
    SinkWriteError,
)
from .formatting import (
    Cause,
    CodeValue,
    ErrorValue,
    LogRecord,
    OpaqueValue,
    StampedLine,
    TextValue,
    as_cause,
    describe_cause,
)
from .levels import Level, parse_level
from .settings import Settings

__all__ = [
    "CallerInfo",
    "FixedCallerResolver",
    "FrameCallerResolver",
    "ProvenanceProvider",
    "ConfigurationError",
    "QueueClosedError",
    "RelaylogError",
    "SinkCloseError",
    "SinkError",
    "SinkOpenError",
    "SinkWriteError",
    "Cause",
    "CodeValue",
    "ErrorValue",
    "LogRecord",
    "OpaqueValue",
    "StampedLine",
    "TextValue",
    "as_cause",
    "describe_cause",
    "Level",
    "parse_level",
    "Settings",
]
