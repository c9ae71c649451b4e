"""Tests for the allocator event log.

Every placement, parked request and reclamation leaves a numbered
entry, giving a replayable trace of the simulator.
"""

from py_memsim.logging import LogEntry, Logger, LogLevel
from py_memsim.simulator import MemorySimulator


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry structure."""

    def test_entry_str(self) -> None:
        """String form is ``#seq [LEVEL] source: message``."""
        entry = LogEntry(seq=4, level=LogLevel.WARNING, source="queue", message="parked", owner=2)
        assert str(entry) == "#4 [WARNING] queue: parked"


class TestLogger:
    """Verify the logger."""

    def test_entries_are_numbered_in_order(self) -> None:
        """Sequence numbers start at 1 and follow insertion order."""
        logger = Logger()
        first = logger.log(LogLevel.INFO, "first", source="allocator")
        second = logger.log(LogLevel.DEBUG, "second", source="buddy")
        assert (first.seq, second.seq) == (1, 2)
        assert [e.message for e in logger.entries] == ["first", "second"]

    def test_filter_by_level_source_and_owner(self) -> None:
        """Filters combine."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "noise", source="buddy")
        logger.log(LogLevel.WARNING, "parked", source="queue", owner=1)
        logger.log(LogLevel.ERROR, "rejected", source="allocator")
        logger.log(LogLevel.WARNING, "parked", source="queue", owner=2)
        assert len(logger.filter(min_level=LogLevel.WARNING)) == 3
        assert len(logger.filter(source="queue")) == 2
        assert [e.owner for e in logger.filter(source="queue", owner=2)] == [2]

    def test_entries_returns_a_copy(self) -> None:
        """Mutating the returned list does not change the log."""
        logger = Logger()
        logger.log(LogLevel.INFO, "x", source="allocator")
        logger.entries.clear()
        assert len(logger.entries) == 1

    def test_history_skips_debug_detail(self) -> None:
        """History keeps one owner's INFO-and-above events."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "code segment", source="segmentation", owner=1)
        logger.log(LogLevel.INFO, "allocated", source="allocator", owner=1)
        logger.log(LogLevel.INFO, "allocated", source="allocator", owner=2)
        logger.log(LogLevel.INFO, "released", source="reclaim", owner=1)
        assert [e.message for e in logger.history(1)] == ["allocated", "released"]
        assert logger.history(3) == []


class TestSimulatorLogging:
    """Verify the simulator writes meaningful events."""

    def test_allocation_and_reclamation_are_logged(self) -> None:
        """Placements, parking, frees and admissions all leave entries."""
        sim = MemorySimulator()
        sim.allocate(1024)
        sim.allocate(10)
        sim.deallocate(1)
        assert sim.logger.filter(source="allocator", owner=1)
        assert sim.logger.filter(source="queue", min_level=LogLevel.WARNING, owner=2)
        assert sim.logger.filter(source="reclaim", owner=1)
        assert any("Admitted queued P2" in line for line in sim.dmesg())

    def test_owner_history(self) -> None:
        """An owner's history covers placement and release."""
        sim = MemorySimulator()
        sim.allocate(30, "segmentation")
        sim.deallocate(1)
        sources = [e.source for e in sim.logger.history(1)]
        assert sources == ["allocator", "reclaim"]

    def test_not_found_is_a_warning(self) -> None:
        """Deallocating an unknown owner is logged as a warning."""
        sim = MemorySimulator()
        sim.deallocate(7)
        entries = sim.logger.filter(min_level=LogLevel.WARNING, owner=7)
        assert "not found" in entries[0].message
