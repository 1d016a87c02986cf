"""
Line rendering for log records.

A record is rendered once by the facade, without a timestamp:

    |I|Handler.run():42 request accepted

The worker prefixes the wall-clock time (``HH:MM:SS.ffff``) at delivery for
the console and file sinks; the syslog sink gets the unstamped line because
the daemon adds its own timestamp.

Causes passed to the error path are classified into a small closed set of
variants before rendering, so ``describe_cause`` covers every case.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from .caller import CallerInfo
from .levels import Level


@dataclass(frozen=True)
class LogRecord:
    """A rendered, unstamped line waiting in the queue."""

    level: Level
    text: str


@dataclass(frozen=True)
class StampedLine:
    """A record as the sinks see it at delivery time."""

    raw: str
    stamped: str
    when: datetime


def format_line(level: Level, caller: CallerInfo, message: str) -> str:
    return f"|{level.code}|{caller.name}():{caller.line} {message}\n"


def apply_args(prompt: str, args: tuple[Any, ...]) -> str:
    """printf-style substitution that never raises.

    A template that does not match its arguments keeps the template and
    appends the arguments instead of failing the caller.
    """
    if not args:
        return prompt
    try:
        return prompt % args
    except (TypeError, ValueError, KeyError):
        return f"{prompt} %!(EXTRA {', '.join(repr(a) for a in args)})"


def timestamp_prefix(when: datetime) -> str:
    """Render ``HH:MM:SS.ffff`` (tenths of milliseconds, truncated)."""
    return f"{when:%H:%M:%S}.{when.microsecond // 100:04d}"


def stamp(record: LogRecord, when: datetime) -> StampedLine:
    return StampedLine(
        raw=record.text,
        stamped=timestamp_prefix(when) + record.text,
        when=when,
    )


# -- cause variants -----------------------------------------------------------


@dataclass(frozen=True)
class ErrorValue:
    error: BaseException


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class CodeValue:
    code: int


@dataclass(frozen=True)
class OpaqueValue:
    value: Any


Cause = Union[ErrorValue, TextValue, CodeValue, OpaqueValue]
_CAUSE_TYPES = (ErrorValue, TextValue, CodeValue, OpaqueValue)


def as_cause(value: Any) -> Cause:
    """Classify an arbitrary value passed as an error cause.

    Already-classified causes are returned unchanged. ``bool`` is not treated
    as a return code; a single byte (``bytes`` of length one) is.
    """
    if isinstance(value, _CAUSE_TYPES):
        return value
    if isinstance(value, BaseException):
        return ErrorValue(value)
    if isinstance(value, str):
        return TextValue(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return CodeValue(value)
    if isinstance(value, (bytes, bytearray)) and len(value) == 1:
        return CodeValue(value[0])
    return OpaqueValue(value)


def describe_cause(cause: Cause, prompt: str) -> str:
    """Append the cause to ``prompt`` in its variant's notation."""
    if isinstance(cause, ErrorValue):
        return f"{prompt} err{{{cause.error}}}"
    if isinstance(cause, TextValue):
        return f"{prompt} err{{{cause.text}}}"
    if isinstance(cause, CodeValue):
        return f"{prompt} RC:{cause.code:02d}"
    return f"{prompt} ???{{type({cause.value})={cause.value}}}"


__all__ = [
    "LogRecord",
    "StampedLine",
    "format_line",
    "apply_args",
    "timestamp_prefix",
    "stamp",
    "Cause",
    "ErrorValue",
    "TextValue",
    "CodeValue",
    "OpaqueValue",
    "as_cause",
    "describe_cause",
]
