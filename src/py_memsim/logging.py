"""Allocator event log.

The simulator records every decision it makes: placements, parked and
rejected requests, reclaimed blocks, merges, queue admissions and
layout switches.  Each record is numbered in the order it happened, so
the log doubles as a replayable trace of how the block list reached
its current shape.

Records carry the owner id they concern, which lets a front end show
the life of one process (``history``) next to the global trace
(``dmesg``).

The log lives in memory and is discarded together with its simulator.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity of an allocator event, ordered for minimum-level filtering."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """One allocator event.

    Attributes:
        seq: Position of the event in the log, starting at 1.
        level: Severity of the event.
        source: Subsystem that produced it (``allocator``, ``paging``,
            ``buddy``, ``segmentation``, ``queue`` or ``reclaim``).
        message: What happened.
        owner: The owner id the event concerns, if any.

    """

    seq: int
    level: LogLevel
    source: str
    message: str
    owner: int | None = None

    def __str__(self) -> str:
        """Format as ``#seq [LEVEL] source: message``."""
        return f"#{self.seq} [{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Numbered, append-only record of allocator events."""

    def __init__(self) -> None:
        """Create an empty log."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return every event, oldest first."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        owner: int | None = None,
    ) -> LogEntry:
        """Record an event and return it.

        Args:
            level: Severity of the event.
            message: What happened.
            source: Subsystem that produced the event.
            owner: Owner id the event concerns.

        Returns:
            The new entry, numbered after the previous one.

        """
        entry = LogEntry(
            seq=len(self._entries) + 1,
            level=level,
            source=source,
            message=message,
            owner=owner,
        )
        self._entries.append(entry)
        return entry

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        owner: int | None = None,
    ) -> list[LogEntry]:
        """Return the events matching every given criterion, oldest first."""
        return [
            e
            for e in self._entries
            if (min_level is None or e.level >= min_level)
            and (source is None or e.source == source)
            and (owner is None or e.owner == owner)
        ]

    def history(self, owner: int) -> list[LogEntry]:
        """Return the life of one owner: request, placement or parking, release.

        Debug-level detail (segment placements, page mappings) is left
        out; ``filter(owner=...)`` returns everything.
        """
        return self.filter(min_level=LogLevel.INFO, owner=owner)
