from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ...core.formatting import StampedLine

if TYPE_CHECKING:
    from ...core.settings import Settings


@runtime_checkable
class BaseSink(Protocol):
    """Base async sink interface.

    Sinks receive each record once, in enqueue order, from the dispatch
    worker. A sink with ``fatal_on_error`` set reports failures by raising
    ``SinkError``, which stops the worker; a best-effort sink contains its own
    errors and never raises.
    """

    name: str
    fatal_on_error: bool

    async def start(self) -> None:  # Optional lifecycle hook
        ...

    async def stop(self) -> None:  # Optional lifecycle hook
        ...

    async def write(self, line: StampedLine) -> None:
        """Write a single stamped line to the sink destination."""
        ...


def sinks_from_settings(settings: Settings) -> list[BaseSink]:
    """Build the enabled sinks in delivery order: console, syslog, file."""
    from .daily_file import DailyFileSink
    from .stdout import StdoutSink
    from .syslog import SyslogSink

    sinks: list[BaseSink] = []
    if settings.console.enabled:
        sinks.append(StdoutSink())
    if settings.syslog.enabled:
        sinks.append(
            SyslogSink(
                tag=settings.syslog.tag,
                facility=settings.syslog.facility,
                address=settings.syslog.address,
            )
        )
    if settings.file.enabled:
        sinks.append(
            DailyFileSink(
                directory=settings.file.directory,
                basename=settings.file.basename,
                mode=settings.file.mode,
            )
        )
    return sinks


__all__ = [
    "BaseSink",
    "sinks_from_settings",
]
