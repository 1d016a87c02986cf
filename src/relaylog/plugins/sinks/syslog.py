"""
Local syslog sink.

Lines go to the host's syslog daemon over its unix socket using the BSD
message format (``<PRI>Mmm dd HH:MM:SS TAG[PID]: message``) at the
informational priority. The connection is opened on the first write, and a
failure to open or to send raises ``SinkError`` so the dispatch worker stops.
"""

from __future__ import annotations

import os
import socket
from datetime import datetime
from logging.handlers import SysLogHandler
from typing import Callable, Protocol

from ...core import diagnostics
from ...core.errors import ConfigurationError, SinkOpenError, SinkWriteError
from ...core.formatting import StampedLine

DEFAULT_ADDRESSES: tuple[str, ...] = ("/dev/log", "/var/run/syslog", "/var/run/log")


class SyslogTransport(Protocol):
    def send(self, message: str) -> None: ...

    def close(self) -> None: ...


def encode_priority(facility: str) -> int:
    """Priority value for ``facility`` at the informational severity."""
    try:
        code = SysLogHandler.facility_names[facility]
    except KeyError:
        raise ValueError(f"Unknown syslog facility: {facility!r}") from None
    return SysLogHandler.encodePriority(code, SysLogHandler.LOG_INFO)


class UnixSyslogTransport:
    """Datagram (falling back to stream) connection to the local daemon."""

    def __init__(
        self,
        *,
        tag: str,
        facility: str = "user",
        address: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._tag = tag
        self._priority = encode_priority(facility)
        self._clock = clock
        self._sock = self._connect(address)

    @staticmethod
    def _connect(address: str | None) -> socket.socket:
        candidates = (address,) if address else DEFAULT_ADDRESSES
        last_error: OSError | None = None
        for path in candidates:
            for sock_type in (socket.SOCK_DGRAM, socket.SOCK_STREAM):
                sock = socket.socket(socket.AF_UNIX, sock_type)
                try:
                    sock.connect(path)
                except OSError as exc:
                    sock.close()
                    last_error = exc
                    continue
                return sock
        raise last_error or OSError("no syslog socket available")

    def format(self, message: str) -> bytes:
        now = self._clock()
        stamp = f"{now:%b} {now.day:2d} {now:%H:%M:%S}"
        if not message.endswith("\n"):
            message += "\n"
        return (
            f"<{self._priority}>{stamp} {self._tag}[{os.getpid()}]: {message}"
        ).encode("utf-8")

    def send(self, message: str) -> None:
        self._sock.sendall(self.format(message))

    def close(self) -> None:
        self._sock.close()


class SyslogSink:
    """Send unstamped lines to the local syslog daemon."""

    name = "syslog"
    fatal_on_error = True

    def __init__(
        self,
        *,
        tag: str,
        facility: str = "user",
        address: str | None = None,
        transport_factory: Callable[[], SyslogTransport] | None = None,
    ) -> None:
        if not tag:
            raise ConfigurationError("syslog tag must not be empty")
        try:
            encode_priority(facility)
        except ValueError as exc:
            raise ConfigurationError(str(exc), cause=exc) from exc
        self._tag = tag
        self._facility = facility
        self._address = address
        self._factory = transport_factory or self._default_factory
        self._transport: SyslogTransport | None = None

    @property
    def connected(self) -> bool:
        return self._transport is not None

    def _default_factory(self) -> SyslogTransport:
        return UnixSyslogTransport(
            tag=self._tag, facility=self._facility, address=self._address
        )

    async def start(self) -> None:  # connection is opened on first write
        return None

    async def stop(self) -> None:
        transport, self._transport = self._transport, None
        if transport is None:
            return
        try:
            transport.close()
        except Exception as exc:
            diagnostics.warn("sink", "syslog close failed", error=str(exc))

    def _write_sync(self, text: str) -> None:
        if self._transport is None:
            try:
                self._transport = self._factory()
            except Exception as exc:
                raise SinkOpenError(
                    "Error creating syslog", sink=self.name, cause=exc
                ) from exc
        try:
            self._transport.send(text)
        except Exception as exc:
            raise SinkWriteError(
                "Error writing to syslog", sink=self.name, cause=exc
            ) from exc

    async def write(self, line: StampedLine) -> None:
        self._write_sync(line.raw)
