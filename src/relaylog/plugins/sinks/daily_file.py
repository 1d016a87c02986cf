from __future__ import annotations

from pathlib import Path

from ...core import diagnostics
from ...core.errors import SinkError, SinkWriteError
from ...core.formatting import StampedLine
from ...core.rotation import RotationManager


class DailyFileSink:
    """Append stamped lines to ``<basename>_<YYYY-MM-DD>.log``.

    The file for a line is chosen by the line's delivery time, so a record
    stamped after midnight lands in the next day's file. Open, close and write
    failures raise ``SinkError``.
    """

    name = "file"
    fatal_on_error = True

    def __init__(
        self,
        *,
        directory: Path | str = ".",
        basename: str | None = None,
        mode: int = 0o600,
        rotation: RotationManager | None = None,
    ) -> None:
        self._rotation = rotation or RotationManager(
            directory=directory, basename=basename, mode=mode, sink_name=self.name
        )

    @property
    def rotation(self) -> RotationManager:
        return self._rotation

    async def start(self) -> None:  # file is opened on first write
        return None

    async def stop(self) -> None:
        try:
            self._rotation.close()
        except SinkError as exc:
            diagnostics.warn("sink", "logfile close failed", error=str(exc))

    def _write_sync(self, line: StampedLine) -> None:
        handle = self._rotation.handle_for(line.when)
        try:
            handle.write(line.stamped)
            handle.flush()
        except OSError as exc:
            raise SinkWriteError(
                "Error writing to logfile", sink=self.name, cause=exc
            ) from exc

    async def write(self, line: StampedLine) -> None:
        self._write_sync(line)
