"""Audit log for file system activity.

Every mutation and every denied request leaves a record behind, so a
session can be replayed in the reader's head afterwards: who created
what, who was refused, which user was removed.

- **LogLevel** — severity, ordered so ``min_level`` filtering is a ``>=``.
- **LogEntry** — one immutable record (level, message, source, user).
- **Logger** — the append-only buffer the ``FileSystem`` writes into.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The subsystem that generated the event ("fs", "users").
        user: The username that triggered the event.

    """

    level: LogLevel
    message: str
    source: str
    user: str = "root"

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Append-only log buffer with filtering."""

    def __init__(self) -> None:
        """Create an empty logger."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        user: str = "root",
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Subsystem that generated the event.
            user: Username associated with the event.

        """
        self._entries.append(LogEntry(level=level, message=message, source=source, user=user))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        user: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.
            user: If set, only return entries triggered by this user.

        Returns:
            A filtered list of log entries.

        """
        result = list(self._entries)
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        if user is not None:
            result = [e for e in result if e.user == user]
        return result

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()
