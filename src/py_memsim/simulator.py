"""Memory simulator: the allocation and reclamation engine.

The simulator owns every piece of state of one simulated address space:

- the **partition** (block list): what is where;
- the **frame table**: frame ownership for the paging strategy;
- the **admission queue**: requests waiting for space;
- the **owner-id counter**: monotonic, starting at 1, reset only by
  building a new simulator;
- the **event log**: a dmesg-style record of every decision.

Two operations mutate it:

``allocate(size, strategy)``
    Validate, dispatch to the strategy's policy, and either record the
    new allocation or park the request in the queue.

``deallocate(owner)``
    Release the owner's frames or blocks, merge free neighbours, give
    the queue head one chance to get in, and refresh the statistics.

Both run to completion before returning; the partition, frame table
and queue change together and are never observed half-updated.

Layout modes:
    Paging and the contiguous strategies see the same capacity through
    two incompatible views.  ``LayoutMode`` records which view produced
    the current block list.  Switching views keeps the historical
    behaviour (a paging call rebuilds the block list from frames and
    drops any contiguous allocations), and every lossy switch is logged.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from py_memsim.config import SimulatorConfig
from py_memsim.logging import Logger, LogLevel
from py_memsim.memory.blocks import Block, MemoryStats, Partition
from py_memsim.memory.frames import FrameTable, OutOfMemoryError
from py_memsim.memory.queue import AdmissionQueue, PendingRequest
from py_memsim.memory.strategies import Strategy, policy_for


class AllocationOutcome(StrEnum):
    """Result of an allocation request."""

    ALLOCATED = "allocated"
    QUEUED = "queued"
    REJECTED = "rejected"


class LayoutMode(StrEnum):
    """Which view of the address space produced the block list."""

    CONTIGUOUS = "contiguous"
    PAGED = "paged"


@dataclass(frozen=True)
class MemorySnapshot:
    """Read-only view of the simulator, enough to render its state."""

    capacity: int
    used: int
    free: int
    fragmentation_percent: float
    layout: LayoutMode
    next_owner: int
    blocks: tuple[Block, ...]
    pending: tuple[PendingRequest, ...]

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly dict."""
        return {
            "capacity": self.capacity,
            "used": self.used,
            "free": self.free,
            "fragmentation_percent": round(self.fragmentation_percent, 2),
            "layout": str(self.layout),
            "next_owner": self.next_owner,
            "blocks": [b.to_dict() for b in self.blocks],
            "pending": [p.to_dict() for p in self.pending],
        }


class MemorySimulator:
    """Allocate and reclaim variable-sized requests in one address space."""

    def __init__(self, config: SimulatorConfig | None = None) -> None:
        """Create a simulator with the whole capacity free.

        Args:
            config: Address-space dimensions; defaults to
                ``SimulatorConfig()`` (1024 units, frames of 4,
                partitions of 256).

        """
        self._config = config or SimulatorConfig()
        self._partition = Partition(capacity=self._config.capacity)
        self._frames = FrameTable(
            total_frames=self._config.total_frames,
            frame_size=self._config.frame_size,
        )
        self._queue = AdmissionQueue()
        self._logger = Logger()
        self._layout = LayoutMode.CONTIGUOUS
        self._next_owner = 1
        self._stats = self._partition.stats()
        self._logger.log(
            LogLevel.INFO,
            f"Address space of {self._config.capacity} units ready "
            f"({self._config.total_frames} frames of {self._config.frame_size})",
            source="allocator",
        )

    # -- Accessors ----------------------------------------------------------

    @property
    def config(self) -> SimulatorConfig:
        """Return the address-space dimensions."""
        return self._config

    @property
    def capacity(self) -> int:
        """Return the total number of units."""
        return self._config.capacity

    @property
    def partition(self) -> Partition:
        """Return the live block list (placement policies mutate it)."""
        return self._partition

    @property
    def frames(self) -> FrameTable:
        """Return the frame table used by paging."""
        return self._frames

    @property
    def queue(self) -> AdmissionQueue:
        """Return the admission queue."""
        return self._queue

    @property
    def logger(self) -> Logger:
        """Return the event log."""
        return self._logger

    @property
    def layout(self) -> LayoutMode:
        """Return the view that produced the current block list."""
        return self._layout

    @property
    def next_owner(self) -> int:
        """Return the owner id the next request will be issued."""
        return self._next_owner

    @property
    def stats(self) -> MemoryStats:
        """Return the statistics from the last refresh."""
        return self._stats

    def dmesg(self) -> list[str]:
        """Return the event log as formatted lines."""
        return [str(entry) for entry in self._logger.entries]

    def snapshot(self) -> MemorySnapshot:
        """Return a read-only view of the current state."""
        return MemorySnapshot(
            capacity=self._stats.capacity,
            used=self._stats.used,
            free=self._stats.free,
            fragmentation_percent=self._stats.fragmentation_percent,
            layout=self._layout,
            next_owner=self._next_owner,
            blocks=tuple(self._partition.blocks),
            pending=tuple(self._queue.pending()),
        )

    # -- Allocation ---------------------------------------------------------

    def allocate(self, size: int, strategy: str = Strategy.FIRST_FIT) -> AllocationOutcome:
        """Place a request of *size* units using the named strategy.

        Unknown strategy names fall back to first-fit.  A request that
        cannot be placed is parked in the admission queue under a newly
        issued owner id.

        Args:
            size: Requested units.
            strategy: A ``Strategy`` identifier such as ``"best-fit"``.

        Returns:
            ``REJECTED`` for a non-positive or over-capacity size (no
            state change), ``QUEUED`` if the request was parked,
            ``ALLOCATED`` otherwise.

        """
        if size <= 0 or size > self.capacity:
            self._logger.log(
                LogLevel.ERROR,
                f"Rejected request of {size}: size must be in 1..{self.capacity}",
                source="allocator",
            )
            return AllocationOutcome.REJECTED

        chosen = Strategy.parse(strategy)
        if chosen != strategy:
            self._logger.log(
                LogLevel.DEBUG,
                f"Unknown strategy {strategy!r}, using {chosen}",
                source="allocator",
            )
        policy = policy_for(chosen, partition_size=self._config.partition_size)
        owner = self._next_owner

        try:
            policy.place(self, size, owner)
        except OutOfMemoryError as e:
            parked = self._queue.park(owner=self._issue_owner(), size=size)
            self._logger.log(
                LogLevel.WARNING,
                f"{chosen}: {e}; parked request of {size} as P{parked.owner}",
                source="queue",
                owner=parked.owner,
            )
            self._refresh()
            return AllocationOutcome.QUEUED

        self._issue_owner()
        if chosen is not Strategy.PAGING:
            self._enter_contiguous()
        self._logger.log(
            LogLevel.INFO,
            f"{chosen}: allocated {size} to P{owner}",
            source="allocator",
            owner=owner,
        )
        self._refresh()
        return AllocationOutcome.ALLOCATED

    # -- Reclamation --------------------------------------------------------

    def deallocate(self, owner: int) -> bool:
        """Release everything held by *owner*.

        Paged owners give back their frames and the block view is
        rebuilt; contiguous owners have every allocated block freed.
        Either way free neighbours are merged and the queue head gets
        one admission attempt.

        Args:
            owner: The owner id to release.

        Returns:
            True if the owner held anything, False if it was not found.

        """
        if self._frames.owns(owner):
            released = self._frames.free(owner)
            self._logger.log(
                LogLevel.INFO,
                f"Released {len(released)} frames of P{owner}",
                source="reclaim",
                owner=owner,
            )
            self.install_frame_view(released=owner)
        else:
            count = self._partition.release_owner(owner)
            if count == 0:
                self._logger.log(
                    LogLevel.WARNING,
                    f"Deallocation of P{owner}: not found",
                    source="reclaim",
                    owner=owner,
                )
                return False
            self._logger.log(
                LogLevel.INFO,
                f"Released {count} block(s) of P{owner}",
                source="reclaim",
                owner=owner,
            )

        merges = self._partition.merge_free()
        if merges:
            self._logger.log(
                LogLevel.DEBUG,
                f"Merged {merges} adjacent free block(s)",
                source="reclaim",
            )
        self._retry_queue_head()
        self._refresh()
        return True

    def install_frame_view(self, *, released: int | None = None) -> None:
        """Replace the block list with one block per frame.

        Contiguous allocations that are not backed by frames disappear
        from the block list; that loss is logged.

        Args:
            released: A paged owner that was just freed on purpose and
                must not be reported as lost.

        """
        before = {o for o in self._partition.owners() if o != released}
        self._partition.replace(self._frames.to_blocks())
        lost = sorted(before - set(self._partition.owners()))
        if lost:
            names = ", ".join(f"P{o}" for o in lost)
            self._logger.log(
                LogLevel.WARNING,
                f"Paged view discarded contiguous allocations of {names}",
                source="paging",
            )
        self._layout = LayoutMode.PAGED

    # -- Internals ----------------------------------------------------------

    def _issue_owner(self) -> int:
        owner = self._next_owner
        self._next_owner += 1
        return owner

    def _enter_contiguous(self) -> None:
        if self._layout is LayoutMode.PAGED:
            holders = sorted(self._frames.page_tables())
            if holders:
                names = ", ".join(f"P{o}" for o in holders)
                self._logger.log(
                    LogLevel.WARNING,
                    f"Contiguous placement over a paged view; frames of {names} stay reserved",
                    source="allocator",
                )
        self._layout = LayoutMode.CONTIGUOUS

    def _retry_queue_head(self) -> None:
        admitted = self._queue.admit_head(self._partition)
        if admitted is None:
            return
        self._enter_contiguous()
        self._logger.log(
            LogLevel.INFO,
            f"Admitted queued P{admitted.owner} ({admitted.size})",
            source="queue",
            owner=admitted.owner,
        )

    def _refresh(self) -> None:
        self._stats = self._partition.stats()
        self._partition.validate()
