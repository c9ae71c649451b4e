"""Placement strategies: seven textbook ways to find room for a request.

The simulator is the *context*; a PlacementPolicy is the *strategy*.
Each policy receives the simulator, the requested size and the owner id
the request will carry, and either mutates the address space to hold it
or raises ``OutOfMemoryError``.  The simulator parks failed requests in
the admission queue, so a policy never queues anything itself.

- **FixedPartitionPolicy**: slice the space into equal partitions on
  first use, then hand out whole free partitions.
- **FirstFitPolicy**: the lowest-address free block that is big enough.
- **BestFitPolicy**: the free block leaving the smallest leftover.
- **WorstFitPolicy**: the free block leaving the largest leftover.
- **PagingPolicy**: claim free frames and rebuild the block view from
  frame ownership.
- **SegmentationPolicy**: place code, data and stack segments
  independently with first-fit, all under one owner id.
- **BuddyPolicy**: round up to a power of two and split power-of-two
  blocks in halves until the size matches.

Ties in best-fit and worst-fit go to the lowest address: blocks are
scanned in address order and only a strict improvement replaces the
current choice.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from py_memsim.logging import LogLevel
from py_memsim.memory.blocks import Block, BlockStatus, is_power_of_two
from py_memsim.memory.frames import OutOfMemoryError

if TYPE_CHECKING:
    from py_memsim.simulator import MemorySimulator


class PartitionTooLargeError(OutOfMemoryError):
    """Raise when a request exceeds the fixed partition size."""


class SegmentationError(OutOfMemoryError):
    """Raise when one of a process's segments cannot be placed."""


class Strategy(StrEnum):
    """String identifiers of the placement strategies."""

    FIXED_PARTITIONING = "fixed-partitioning"
    FIRST_FIT = "first-fit"
    BEST_FIT = "best-fit"
    WORST_FIT = "worst-fit"
    PAGING = "paging"
    SEGMENTATION = "segmentation"
    BUDDY_SYSTEM = "buddy-system"

    @classmethod
    def parse(cls, name: str) -> Strategy:
        """Return the strategy whose identifier is exactly *name*, else first-fit."""
        try:
            return cls(name)
        except ValueError:
            return cls.FIRST_FIT


class PlacementPolicy(Protocol):
    """Interface that every placement strategy must satisfy."""

    def place(self, sim: MemorySimulator, size: int, owner: int) -> None:
        """Make room for *size* units owned by *owner*.

        Raises:
            OutOfMemoryError: If the request cannot be placed.

        """
        ...  # pragma: no cover


class FixedPartitionPolicy:
    """Fixed partitioning: equal slots carved once, reused forever.

    The first request that fits on an untouched address space slices it
    into ``capacity // partition_size`` partitions and takes the first.
    Any tail shorter than a partition stays behind as a free block.
    Later requests only accept a free block of exactly the partition
    size, and the whole partition is allocated even when the request is
    smaller (internal fragmentation).
    """

    def __init__(self, *, partition_size: int) -> None:
        """Create a policy for partitions of *partition_size* units."""
        self._partition_size = partition_size

    def place(self, sim: MemorySimulator, size: int, owner: int) -> None:
        """Take a whole free partition, slicing the space on first use."""
        ps = self._partition_size
        if size > ps:
            msg = f"Request of {size} exceeds the fixed partition size {ps}"
            raise PartitionTooLargeError(msg)

        partition = sim.partition
        for i in range(len(partition)):
            block = partition[i]
            if block.is_free and block.size == ps:
                partition.split(i, ps, owner=owner)
                return

        if partition.is_pristine() and partition.capacity >= ps:
            count, tail = divmod(partition.capacity, ps)
            blocks = [Block(start=i * ps, size=ps) for i in range(count)]
            if tail:
                blocks.append(Block(start=count * ps, size=tail))
            blocks[0].status = BlockStatus.ALLOCATED
            blocks[0].owner = owner
            partition.replace(blocks)
            sim.logger.log(
                LogLevel.INFO,
                f"Sliced address space into {count} partitions of {ps}",
                source="allocator",
                owner=owner,
            )
            return

        msg = f"No free partition of size {ps} for request of {size}"
        raise OutOfMemoryError(msg)


class FirstFitPolicy:
    """First fit: the lowest-address free block that is large enough."""

    def place(self, sim: MemorySimulator, size: int, owner: int) -> None:
        """Split the first sufficient free block."""
        index = sim.partition.first_fit(size)
        if index is None:
            msg = f"No free block of at least {size}"
            raise OutOfMemoryError(msg)
        sim.partition.split(index, size, owner=owner)


class BestFitPolicy:
    """Best fit: the free block that leaves the least space behind."""

    def place(self, sim: MemorySimulator, size: int, owner: int) -> None:
        """Split the free block with the smallest non-negative leftover."""
        partition = sim.partition
        best_idx: int | None = None
        best_leftover = partition.capacity + 1
        for i in range(len(partition)):
            block = partition[i]
            if block.is_free and block.size >= size:
                leftover = block.size - size
                if leftover < best_leftover:
                    best_leftover = leftover
                    best_idx = i
        if best_idx is None:
            msg = f"No free block of at least {size}"
            raise OutOfMemoryError(msg)
        partition.split(best_idx, size, owner=owner)


class WorstFitPolicy:
    """Worst fit: the free block that leaves the most space behind.

    The idea is that a large leftover is more likely to be useful to a
    later request than a sliver.
    """

    def place(self, sim: MemorySimulator, size: int, owner: int) -> None:
        """Split the free block with the largest leftover."""
        partition = sim.partition
        worst_idx: int | None = None
        worst_leftover = -1
        for i in range(len(partition)):
            block = partition[i]
            if block.is_free and block.size >= size:
                leftover = block.size - size
                if leftover > worst_leftover:
                    worst_leftover = leftover
                    worst_idx = i
        if worst_idx is None:
            msg = f"No free block of at least {size}"
            raise OutOfMemoryError(msg)
        partition.split(worst_idx, size, owner=owner)


class PagingPolicy:
    """Paging: scatter the request over free frames.

    Frame state is independent of the block list.  After claiming the
    frames, the block view is rebuilt from frame ownership, which throws
    away whatever contiguous layout existed before.
    """

    def place(self, sim: MemorySimulator, size: int, owner: int) -> None:
        """Claim frames and regenerate the block view."""
        frames = sim.frames.allocate(owner, size=size)
        sim.logger.log(
            LogLevel.DEBUG,
            f"Mapped {len(frames)} pages to frames {frames}",
            source="paging",
            owner=owner,
        )
        sim.install_frame_view()


class SegmentationPolicy:
    """Segmentation: code, data and stack placed as separate blocks.

    The request splits into ``size // 3`` for code, ``size // 3`` for
    data and the remainder for stack.  Each segment goes through
    first-fit on its own, under the same owner id.  Empty segments (for
    requests below 3 units) are not materialised.

    If a segment does not fit and the code segment was already placed,
    the owner is rolled back through the simulator's regular
    deallocation path, which releases every block carrying the owner id.
    """

    SEGMENTS = ("code", "data", "stack")

    @staticmethod
    def segment_sizes(size: int) -> tuple[int, int, int]:
        """Return the (code, data, stack) sizes for a request."""
        code = size // 3
        data = size // 3
        return code, data, size - code - data

    def place(self, sim: MemorySimulator, size: int, owner: int) -> None:
        """Place all three segments or roll back."""
        partition = sim.partition
        code_placed = False
        for name, seg_size in zip(self.SEGMENTS, self.segment_sizes(size), strict=True):
            if seg_size == 0:
                continue
            index = partition.first_fit(seg_size)
            if index is None:
                if code_placed:
                    sim.deallocate(owner)
                msg = f"No room for the {name} segment ({seg_size}) of owner {owner}"
                raise SegmentationError(msg)
            block = partition.split(index, seg_size, owner=owner)
            sim.logger.log(
                LogLevel.DEBUG,
                f"Placed {name} segment of {seg_size} at {block.start}",
                source="segmentation",
                owner=owner,
            )
            if name == "code":
                code_placed = True


class BuddyPolicy:
    """Buddy system: power-of-two blocks split and merged in pairs.

    The request is rounded up to a power of two.  The first free block
    whose size is a power of two and large enough is halved repeatedly,
    each half leaving a free buddy right behind it, until it matches.

    When no such block exists, free buddy pairs are merged and the
    search is retried.  The retry stops as soon as the rounded size
    exceeds the free memory or a merge pass finds nothing to merge, so
    a request that can never fit is parked instead of looping.
    """

    @staticmethod
    def round_up(size: int) -> int:
        """Return the smallest power of two that is at least *size*."""
        return 1 << (size - 1).bit_length()

    def place(self, sim: MemorySimulator, size: int, owner: int) -> None:
        """Split a power-of-two block down to the rounded size."""
        partition = sim.partition
        target = self.round_up(size)
        while True:
            if target > partition.free_units():
                msg = f"Buddy block of {target} exceeds free memory ({partition.free_units()})"
                raise OutOfMemoryError(msg)

            for i in range(len(partition)):
                block = partition[i]
                if block.is_free and is_power_of_two(block.size) and block.size >= target:
                    while partition[i].size > target:
                        partition.halve(i)
                    partition.split(i, target, owner=owner)
                    return

            merges = partition.merge_buddies()
            if merges == 0:
                msg = f"No power-of-two free block of at least {target}"
                raise OutOfMemoryError(msg)
            sim.logger.log(
                LogLevel.DEBUG,
                f"Merged {merges} buddy pairs",
                source="buddy",
                owner=owner,
            )


def policy_for(strategy: Strategy, *, partition_size: int) -> PlacementPolicy:
    """Return the policy implementing *strategy*.

    Args:
        strategy: The strategy identifier.
        partition_size: Slot size used by fixed partitioning.

    """
    match strategy:
        case Strategy.FIXED_PARTITIONING:
            return FixedPartitionPolicy(partition_size=partition_size)
        case Strategy.BEST_FIT:
            return BestFitPolicy()
        case Strategy.WORST_FIT:
            return WorstFitPolicy()
        case Strategy.PAGING:
            return PagingPolicy()
        case Strategy.SEGMENTATION:
            return SegmentationPolicy()
        case Strategy.BUDDY_SYSTEM:
            return BuddyPolicy()
        case _:
            return FirstFitPolicy()
