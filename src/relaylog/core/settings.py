"""
Configuration models for relaylog using Pydantic v2 Settings.

Settings are read once, when a logger is constructed. Sink enable flags and
the syslog tag are fixed for the lifetime of that logger; only the level
threshold can change afterwards (``Logger.set_level``).

Environment variables use the ``RELAYLOG_`` prefix and ``__`` for nesting:

    RELAYLOG_CORE__LEVEL=INFO
    RELAYLOG_FILE__ENABLED=true
    RELAYLOG_SYSLOG__TAG=billing
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .levels import Level, parse_level

DEFAULT_QUEUE_CAPACITY = 1000
DEFAULT_SYSLOG_TAG = "GOLOGGER"


class CoreSettings(BaseModel):
    """Queue, threshold, and internal behaviour."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="DEBUG",
        description="Minimum severity processed; DEBUG lets everything through",
    )
    queue_capacity: int = Field(
        default=DEFAULT_QUEUE_CAPACITY,
        ge=1,
        description="Pending messages held before producers block",
    )
    drain_poll_interval_seconds: float = Field(
        default=0.1,
        gt=0.0,
        description="Sleep between queue checks in drain()",
    )
    internal_logging_enabled: bool = Field(
        default=False,
        description="Emit relaylog's own diagnostics to stderr",
    )
    enable_metrics: bool = Field(
        default=False,
        description="Export Prometheus counters for the pipeline",
    )
    atexit_drain_enabled: bool = Field(
        default=True,
        description="Drain and stop running loggers at interpreter exit",
    )
    atexit_drain_timeout_seconds: float = Field(
        default=2.0,
        gt=0.0,
        description="Upper bound on the exit-time drain per logger",
    )

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> object:
        if isinstance(value, (str, int)):
            try:
                return parse_level(value).name
            except ValueError:
                return value
        return value

    @property
    def threshold(self) -> Level:
        return Level[self.level]


class ConsoleSettings(BaseModel):
    enabled: bool = Field(default=True, description="Write stamped lines to stdout")


class SyslogSettings(BaseModel):
    enabled: bool = Field(default=False, description="Send lines to local syslog")
    tag: str = Field(default=DEFAULT_SYSLOG_TAG, description="Syslog identifier")
    facility: Literal[
        "kern",
        "user",
        "daemon",
        "local0",
        "local1",
        "local2",
        "local3",
        "local4",
        "local5",
        "local6",
        "local7",
    ] = Field(default="user", description="Syslog facility")
    address: str | None = Field(
        default=None,
        description="Syslog socket path; first existing default when unset",
    )

    @field_validator("tag")
    @classmethod
    def _ensure_tag_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("syslog tag must not be empty")
        return value


class FileSettings(BaseModel):
    enabled: bool = Field(default=False, description="Write to a daily log file")
    directory: Path = Field(
        default=Path("."), description="Directory holding the log files"
    )
    basename: str | None = Field(
        default=None,
        description="File name stem; the process base name when unset",
    )
    mode: int = Field(
        default=0o600,
        ge=0,
        le=0o777,
        description="Permissions for newly created files",
    )


class Settings(BaseSettings):
    """Top-level relaylog configuration."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    console: ConsoleSettings = Field(default_factory=ConsoleSettings)
    syslog: SyslogSettings = Field(default_factory=SyslogSettings)
    file: FileSettings = Field(default_factory=FileSettings)

    model_config = SettingsConfigDict(
        env_prefix="RELAYLOG_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    def to_dict(self) -> dict[str, object]:
        from typing import cast

        return cast(dict[str, object], self.model_dump(mode="json"))


__all__ = [
    "CoreSettings",
    "ConsoleSettings",
    "SyslogSettings",
    "FileSettings",
    "Settings",
    "DEFAULT_QUEUE_CAPACITY",
    "DEFAULT_SYSLOG_TAG",
]
