"""Tests for the admission queue.

Parked requests are admitted head first, with first-fit placement, and
only the head is ever tried.
"""

from py_memsim.memory.blocks import Block, BlockStatus, Partition
from py_memsim.memory.queue import AdmissionQueue, PendingRequest

CAPACITY = 100


def _partition_with_hole(hole: int) -> Partition:
    """Return a partition whose only free block is *hole* units at 0."""
    partition = Partition(capacity=CAPACITY)
    partition.replace(
        [
            Block(start=0, size=hole),
            Block(start=hole, size=CAPACITY - hole, status=BlockStatus.ALLOCATED, owner=50),
        ]
    )
    return partition


class TestAdmissionQueue:
    """Verify FIFO parking and head-only admission."""

    def test_park_keeps_fifo_order(self) -> None:
        """Requests come out in the order they were parked."""
        queue = AdmissionQueue()
        queue.park(owner=1, size=40)
        queue.park(owner=2, size=10)
        assert queue.pending() == [PendingRequest(1, 40), PendingRequest(2, 10)]
        assert queue.head == PendingRequest(1, 40)
        assert len(queue) == 2

    def test_empty_queue_admits_nothing(self) -> None:
        """An empty queue returns None."""
        queue = AdmissionQueue()
        assert not queue
        assert queue.admit_head(Partition(capacity=CAPACITY)) is None

    def test_head_that_fits_is_admitted(self) -> None:
        """A fitting head is placed first-fit under its parked owner id."""
        queue = AdmissionQueue()
        queue.park(owner=3, size=15)
        partition = _partition_with_hole(20)
        assert queue.admit_head(partition) == PendingRequest(3, 15)
        assert partition[0].owner == 3
        assert partition[0].size == 15
        assert partition[1] == Block(start=15, size=5)
        assert not queue

    def test_head_of_line_blocking(self) -> None:
        """A large head blocks a smaller request that would fit."""
        queue = AdmissionQueue()
        queue.park(owner=1, size=40)
        queue.park(owner=2, size=10)
        partition = _partition_with_hole(20)
        assert queue.admit_head(partition) is None
        assert queue.pending() == [PendingRequest(1, 40), PendingRequest(2, 10)]
        assert partition[0].is_free

    def test_to_dict(self) -> None:
        """Pending requests serialise to owner and size."""
        assert PendingRequest(owner=4, size=12).to_dict() == {"owner": 4, "size": 12}
