"""Frame table: the paging view of the address space.

For paging, the capacity is divided into fixed-size **frames**.  The
frame table tracks two things:

- An **occupancy array**: one boolean per frame.
- A **page table dict** mapping each owner id to the frames it holds.

A frame index appears in at most one owner's entry, and a frame is
occupied exactly when some owner holds it.

Frames are handed out lowest-index first and need not be contiguous:
any free frame can satisfy any page, which is the whole point of paging
(no external fragmentation).

The frame table never edits the partition directly.  Instead
``to_blocks()`` regenerates a block per frame from current ownership,
and the caller installs that list in place of the old layout.
"""

from py_memsim.memory.blocks import Block, BlockStatus


class OutOfMemoryError(Exception):
    """Raise when an allocation cannot be satisfied."""


class FrameTable:
    """Manage frame occupancy and per-owner page tables."""

    def __init__(self, *, total_frames: int, frame_size: int) -> None:
        """Create a frame table with every frame free.

        Args:
            total_frames: Number of frames covering the capacity.
            frame_size: Units per frame.

        """
        self._frame_size = frame_size
        self._occupied: list[bool] = [False] * total_frames
        self._page_tables: dict[int, list[int]] = {}

    @property
    def total_frames(self) -> int:
        """Return the total number of frames."""
        return len(self._occupied)

    @property
    def frame_size(self) -> int:
        """Return the number of units per frame."""
        return self._frame_size

    @property
    def free_frames(self) -> int:
        """Return the number of currently unoccupied frames."""
        return self._occupied.count(False)

    def pages_needed(self, size: int) -> int:
        """Return how many frames a request of *size* units needs (ceiling)."""
        return -(-size // self._frame_size)

    def owns(self, owner: int) -> bool:
        """Return True if *owner* currently holds frames."""
        return owner in self._page_tables

    def pages_for(self, owner: int) -> list[int]:
        """Return the frames held by *owner* (empty if none)."""
        return list(self._page_tables.get(owner, []))

    def page_tables(self) -> dict[int, list[int]]:
        """Return a copy of every owner's frame list."""
        return {owner: list(frames) for owner, frames in self._page_tables.items()}

    def allocate(self, owner: int, *, size: int) -> list[int]:
        """Claim the lowest-index free frames for a request of *size* units.

        Nothing changes if there are not enough free frames.

        Args:
            owner: The owner id receiving the frames.
            size: Requested units.

        Returns:
            The claimed frame indices, in ascending order.

        Raises:
            OutOfMemoryError: If fewer free frames exist than are needed.

        """
        needed = self.pages_needed(size)
        available = self.free_frames
        if needed > available:
            msg = f"Cannot allocate {needed} frames for owner {owner}: only {available} free"
            raise OutOfMemoryError(msg)

        claimed: list[int] = []
        for frame, occupied in enumerate(self._occupied):
            if len(claimed) == needed:
                break
            if not occupied:
                self._occupied[frame] = True
                claimed.append(frame)

        self._page_tables[owner] = claimed
        return claimed

    def free(self, owner: int) -> list[int]:
        """Release every frame held by *owner*.

        Freeing an unknown owner is a no-op.

        Returns:
            The released frame indices (empty if the owner held none).

        """
        frames = self._page_tables.pop(owner, [])
        for frame in frames:
            self._occupied[frame] = False
        return frames

    def to_blocks(self) -> list[Block]:
        """Build one block per frame, labelled from current ownership."""
        holder: dict[int, int] = {}
        for owner, frames in self._page_tables.items():
            for frame in frames:
                holder.setdefault(frame, owner)

        blocks: list[Block] = []
        for frame in range(self.total_frames):
            owner = holder.get(frame)
            status = BlockStatus.FREE if owner is None else BlockStatus.ALLOCATED
            blocks.append(
                Block(
                    start=frame * self._frame_size,
                    size=self._frame_size,
                    status=status,
                    owner=owner,
                )
            )
        return blocks
