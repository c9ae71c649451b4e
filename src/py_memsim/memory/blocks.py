"""Address-space partition: the ground truth of "what is where".

The simulated address space is an integer range ``[0, capacity)`` cut
into **blocks**.  Each block is a contiguous run of units carrying a
status tag and, when allocated, the id of the process that owns it.

The partition keeps one invariant at all times::

    blocks sorted by start, mutually non-overlapping,
    sizes summing exactly to the capacity

Contiguous strategies mutate the partition through a single primitive,
``split()``: shrink a free block to the requested size, relabel it, and
insert the leftover as a new free block right after it.  Reclamation
undoes splits with ``merge_free()``, which coalesces neighbouring free
blocks.  The buddy system uses its own, stricter ``merge_buddies()``.

Statistics are *derived*, never maintained incrementally: ``stats()``
walks the block list each time it is called.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import StrEnum


class PartitionError(Exception):
    """Raise when the block list breaks the partition invariant."""


class BlockStatus(StrEnum):
    """Status tag of a block.

    ``FRAGMENTED`` is counted by the statistics but no strategy ever
    produces it; it stays available for extensions that model
    fragmentation explicitly.
    """

    FREE = "free"
    ALLOCATED = "allocated"
    FRAGMENTED = "fragmented"


@dataclass
class Block:
    """A contiguous, labelled sub-range of the address space.

    Attributes:
        start: Offset of the first unit.
        size: Number of units covered.
        status: Free, allocated or fragmented.
        owner: Owning process id, or None when the block is unowned.

    """

    start: int
    size: int
    status: BlockStatus = BlockStatus.FREE
    owner: int | None = None

    @property
    def end(self) -> int:
        """Return the offset one past the last unit."""
        return self.start + self.size

    @property
    def is_free(self) -> bool:
        """Return True if the block is free."""
        return self.status is BlockStatus.FREE

    def release(self) -> None:
        """Turn the block back into an unowned free block."""
        self.status = BlockStatus.FREE
        self.owner = None

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly view of the block."""
        return {
            "owner": self.owner,
            "start": self.start,
            "size": self.size,
            "status": str(self.status),
        }


@dataclass(frozen=True)
class MemoryStats:
    """Totals derived from one pass over the block list."""

    capacity: int
    used: int
    fragmented: int

    @property
    def free(self) -> int:
        """Return the capacity not held by allocated blocks."""
        return self.capacity - self.used

    @property
    def fragmentation_percent(self) -> float:
        """Return fragmented units as a percentage of the capacity."""
        return self.fragmented / self.capacity * 100.0


def is_power_of_two(n: int) -> bool:
    """Return True if *n* is a positive power of two."""
    return n > 0 and n & (n - 1) == 0


class Partition:
    """Ordered block list covering the full capacity."""

    def __init__(self, *, capacity: int) -> None:
        """Create a partition holding one free block over the whole capacity.

        Args:
            capacity: Total units in the address space.

        """
        self._capacity = capacity
        self._blocks: list[Block] = [Block(start=0, size=capacity)]

    @property
    def capacity(self) -> int:
        """Return the total number of units."""
        return self._capacity

    @property
    def blocks(self) -> list[Block]:
        """Return copies of the blocks in address order."""
        return [dataclasses.replace(b) for b in self._blocks]

    def __len__(self) -> int:
        """Return the number of blocks."""
        return len(self._blocks)

    def __getitem__(self, index: int) -> Block:
        """Return the live block at *index* (strategies mutate it)."""
        return self._blocks[index]

    def is_pristine(self) -> bool:
        """Return True if the space is still one free whole-capacity block."""
        return (
            len(self._blocks) == 1
            and self._blocks[0].is_free
            and self._blocks[0].size == self._capacity
        )

    def free_units(self) -> int:
        """Return the total size of all free blocks."""
        return sum(b.size for b in self._blocks if b.is_free)

    def owners(self) -> list[int]:
        """Return the distinct owners of allocated blocks, in address order."""
        seen: dict[int, None] = {}
        for block in self._blocks:
            if block.status is BlockStatus.ALLOCATED and block.owner is not None:
                seen.setdefault(block.owner, None)
        return list(seen)

    def replace(self, blocks: list[Block]) -> None:
        """Discard the current layout and install *blocks* instead.

        Used by fixed partitioning (slicing the pristine block) and by
        paging (regenerating the view from frame ownership).
        """
        self._blocks = list(blocks)

    def first_fit(self, size: int) -> int | None:
        """Return the index of the lowest-address free block of at least *size*."""
        for i, block in enumerate(self._blocks):
            if block.is_free and block.size >= size:
                return i
        return None

    def split(self, index: int, size: int, *, owner: int) -> Block:
        """Carve an allocated block of *size* units out of a free block.

        The block at *index* shrinks to *size* and is labelled allocated
        to *owner*.  Any leftover becomes a new free block immediately
        after it.

        Args:
            index: Position of a free block at least *size* units long.
            size: Units to allocate.
            owner: The owner id to record.

        Returns:
            The (live) allocated block.

        """
        block = self._blocks[index]
        leftover = block.size - size
        block.size = size
        block.status = BlockStatus.ALLOCATED
        block.owner = owner
        if leftover > 0:
            self._blocks.insert(index + 1, Block(start=block.end, size=leftover))
        return block

    def halve(self, index: int) -> None:
        """Split the free block at *index* into two equal free buddies."""
        block = self._blocks[index]
        block.size //= 2
        self._blocks.insert(index + 1, Block(start=block.end, size=block.size))

    def release_owner(self, owner: int) -> int:
        """Free every allocated block held by *owner*.

        Returns:
            The number of blocks released.

        """
        released = 0
        for block in self._blocks:
            if block.status is BlockStatus.ALLOCATED and block.owner == owner:
                block.release()
                released += 1
        return released

    def merge_free(self) -> int:
        """Coalesce adjacent free blocks until no two neighbours are free.

        After a merge the same position is checked again, since the grown
        block may now touch another free neighbour.

        Returns:
            The number of merges performed.

        """
        merges = 0
        i = 0
        while i < len(self._blocks) - 1:
            current, following = self._blocks[i], self._blocks[i + 1]
            if current.is_free and following.is_free:
                current.size += following.size
                del self._blocks[i + 1]
                merges += 1
            else:
                i += 1
        return merges

    def merge_buddies(self) -> int:
        """Merge free buddy pairs until none is left.

        Two neighbours are buddies when both are free, equally sized,
        the second starts where the first ends, and the first sits on an
        even multiple of their size.  The scan restarts from the
        beginning after every merge.

        Returns:
            The number of merges performed.

        """
        merges = 0
        merged = True
        while merged:
            merged = False
            for i in range(len(self._blocks) - 1):
                current, following = self._blocks[i], self._blocks[i + 1]
                if (
                    current.is_free
                    and following.is_free
                    and current.size == following.size
                    and (current.start // current.size) % 2 == 0
                    and current.end == following.start
                ):
                    current.size *= 2
                    del self._blocks[i + 1]
                    merges += 1
                    merged = True
                    break
        return merges

    def stats(self) -> MemoryStats:
        """Recompute used and fragmented totals from the block list."""
        used = 0
        fragmented = 0
        for block in self._blocks:
            if block.status is BlockStatus.ALLOCATED:
                used += block.size
            elif block.status is BlockStatus.FRAGMENTED:
                fragmented += block.size
        return MemoryStats(capacity=self._capacity, used=used, fragmented=fragmented)

    def validate(self) -> None:
        """Check the partition invariant.

        Raises:
            PartitionError: If blocks are unsorted, overlapping, leave a
                gap, or do not sum to the capacity.

        """
        position = 0
        for block in self._blocks:
            if block.start != position:
                msg = f"Block at {block.start} breaks contiguity (expected start {position})"
                raise PartitionError(msg)
            if block.size <= 0:
                msg = f"Block at {block.start} has non-positive size {block.size}"
                raise PartitionError(msg)
            position = block.end
        if position != self._capacity:
            msg = f"Blocks cover {position} units, capacity is {self._capacity}"
            raise PartitionError(msg)
