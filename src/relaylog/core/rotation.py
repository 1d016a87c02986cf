"""Daily log file rotation.

The rotation manager owns at most one open file, named for the calendar day
it was opened on (``<basename>_<YYYY-MM-DD>.log``). Rotation is lazy: the
date of each record is compared with the date of the open file when the
record is written, and a different date closes the old file and opens the
next one. Only the dispatch worker calls into this class.
"""

from __future__ import annotations

import os
import sys
from datetime import date, datetime
from pathlib import Path
from typing import TextIO

from .errors import SinkCloseError, SinkOpenError

_OPEN_FLAGS = os.O_APPEND | os.O_CREAT | os.O_WRONLY


def process_basename() -> str:
    """Base name of the running program, used as the default file stem."""
    argv0 = sys.argv[0] if sys.argv and sys.argv[0] else "python"
    return Path(argv0).name or "python"


def log_filename(basename: str, day: date) -> str:
    return f"{basename}_{day:%Y-%m-%d}.log"


class RotationManager:
    """Track the open daily file and swap it when the date changes."""

    def __init__(
        self,
        *,
        directory: Path | str = ".",
        basename: str | None = None,
        mode: int = 0o600,
        sink_name: str = "file",
    ) -> None:
        self._directory = Path(directory)
        self._basename = basename or process_basename()
        self._mode = mode
        self._sink_name = sink_name
        self._handle: TextIO | None = None
        self._day: date | None = None
        self._path: Path | None = None

    @property
    def current_day(self) -> date | None:
        return self._day

    @property
    def current_path(self) -> Path | None:
        return self._path

    def path_for(self, day: date) -> Path:
        return self._directory / log_filename(self._basename, day)

    def handle_for(self, when: datetime) -> TextIO:
        """Return the file for ``when``'s date, rotating if needed.

        Raises:
            SinkCloseError: If the previous day's file fails to close.
            SinkOpenError: If the file for the new day cannot be opened.
        """
        day = when.date()
        if self._handle is not None and self._day == day:
            return self._handle
        if self._handle is not None:
            self.close()
        return self._open(day)

    def _open(self, day: date) -> TextIO:
        path = self.path_for(day)
        try:
            fd = os.open(path, _OPEN_FLAGS, self._mode)
            handle = os.fdopen(fd, "a", encoding="utf-8")
        except OSError as exc:
            raise SinkOpenError(
                f"Error creating logfile {path}", sink=self._sink_name, cause=exc
            ) from exc
        self._handle = handle
        self._day = day
        self._path = path
        return handle

    def close(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            handle.close()
        except OSError as exc:
            raise SinkCloseError(
                f"Error closing logfile {self._path}",
                sink=self._sink_name,
                cause=exc,
            ) from exc
