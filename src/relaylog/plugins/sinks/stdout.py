from __future__ import annotations

import sys
from typing import TextIO

from ...core.formatting import StampedLine


class StdoutSink:
    """Best-effort console sink writing stamped lines to stdout.

    - Resolves ``sys.stdout`` at write time so redirection is honoured
    - Never raises upstream; write errors are dropped
    """

    name = "stdout"
    fatal_on_error = False

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    async def start(self) -> None:  # lifecycle placeholder
        return None

    async def stop(self) -> None:
        try:
            self._target().flush()
        except Exception:
            return None

    def _target(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def _write_line(self, text: str) -> None:
        target = self._target()
        target.write(text)
        target.flush()

    async def write(self, line: StampedLine) -> None:
        try:
            self._write_line(line.stamped)
        except Exception:
            # Console output is best effort
            return None

