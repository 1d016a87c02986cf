"""Severity levels and threshold checks.

Levels carry the syslog priority as their rank, so a lower rank means a more
severe (and less verbose) level. A message passes the threshold when its rank
is at or below the configured threshold's rank:

    >>> Level.ERROR.passes(Level.INFO)
    True
    >>> Level.DEBUG.passes(Level.INFO)
    False
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final


class Level(IntEnum):
    """Severity ranks, most severe first."""

    ERROR = 3
    WARNING = 4
    INFO = 6
    DEBUG = 7

    @property
    def code(self) -> str:
        """One-letter code used in rendered lines."""
        return _CODES[self]

    def passes(self, threshold: Level) -> bool:
        """Return True if a message at this level is processed under threshold."""
        return self.value <= threshold.value


_CODES: Final[dict[Level, str]] = {
    Level.ERROR: "E",
    Level.WARNING: "W",
    Level.INFO: "I",
    Level.DEBUG: "D",
}

_ALIASES: Final[dict[str, Level]] = {
    "ERR": Level.ERROR,
    "WARN": Level.WARNING,
    "WRN": Level.WARNING,
    "INF": Level.INFO,
    "DBG": Level.DEBUG,
}


def parse_level(value: str | int | Level) -> Level:
    """Coerce a name, alias, or syslog priority into a Level.

    Raises:
        ValueError: If the value does not name a known level.
    """
    if isinstance(value, Level):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Level(value)
        except ValueError:
            raise ValueError(f"Unknown level priority: {value}") from None
    if isinstance(value, str):
        name = value.strip().upper()
        if name in Level.__members__:
            return Level[name]
        if name in _ALIASES:
            return _ALIASES[name]
    raise ValueError(f"Unknown level: {value!r}")
