"""Caller resolution for message provenance.

Every rendered line names the function that logged it and the source line of
the call. The facade asks a provenance provider for that information; the
production provider walks interpreter frames, tests inject a fixed one.
"""

from __future__ import annotations

import inspect
import re
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

NOT_FOUND_NAME = "<nf>"

# Last "Type.method" pair of a dotted qualname, e.g. "Outer.Inner.run"
_METHOD_RE = re.compile(r"(?:^|\.)([A-Za-z_][A-Za-z0-9_]*)\.([A-Za-z_][A-Za-z0-9_]*)$")


@dataclass(frozen=True)
class CallerInfo:
    name: str
    line: int


NOT_FOUND = CallerInfo(NOT_FOUND_NAME, 0)


@runtime_checkable
class ProvenanceProvider(Protocol):
    """Anything that can tell the facade who called it."""

    def resolve(self, skip_frames: int = 0) -> CallerInfo:
        """Describe the caller ``skip_frames`` levels above the direct caller."""
        ...


def qualified_name(module: str, qualname: str) -> str:
    """Render a code object's name the way log lines show it.

    Methods (``Type.method``, including nested classes) are reduced to their
    last ``Type.method`` pair. Plain functions are prefixed with their module.
    Names that are neither, such as closures under ``<locals>`` or module-level
    code, are returned as they are.
    """
    if "." not in qualname:
        if qualname.startswith("<") or not module:
            return qualname
        return f"{module}.{qualname}"
    match = _METHOD_RE.search(qualname)
    if match is None:
        return qualname
    return f"{match.group(1)}.{match.group(2)}"


class FrameCallerResolver:
    """Resolve callers by walking the interpreter stack."""

    def resolve(self, skip_frames: int = 0) -> CallerInfo:
        frame = inspect.currentframe()
        target = frame.f_back if frame is not None else None
        try:
            for _ in range(skip_frames):
                if target is None:
                    break
                target = target.f_back
            if target is None:
                return NOT_FOUND
            code = target.f_code
            module = target.f_globals.get("__name__", "")
            return CallerInfo(
                qualified_name(module, code.co_qualname),
                target.f_lineno or 0,
            )
        finally:
            # Break frame reference cycles
            del frame
            del target


class FixedCallerResolver:
    """Provider that always reports the same caller and counts lookups."""

    def __init__(self, name: str = "test", line: int = 0) -> None:
        self._info = CallerInfo(name, line)
        self.calls = 0

    def resolve(self, skip_frames: int = 0) -> CallerInfo:
        self.calls += 1
        return self._info


__all__ = [
    "CallerInfo",
    "NOT_FOUND",
    "NOT_FOUND_NAME",
    "ProvenanceProvider",
    "FrameCallerResolver",
    "FixedCallerResolver",
    "qualified_name",
]
