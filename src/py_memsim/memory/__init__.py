"""Memory subsystem: partition, frames, placement strategies and queue.

Re-exports public symbols so callers can write::

    from py_memsim.memory import Partition, Strategy
"""

from py_memsim.memory.blocks import (
    Block,
    BlockStatus,
    MemoryStats,
    Partition,
    PartitionError,
    is_power_of_two,
)
from py_memsim.memory.frames import FrameTable, OutOfMemoryError
from py_memsim.memory.queue import AdmissionQueue, PendingRequest
from py_memsim.memory.strategies import (
    BestFitPolicy,
    BuddyPolicy,
    FirstFitPolicy,
    FixedPartitionPolicy,
    PagingPolicy,
    PartitionTooLargeError,
    PlacementPolicy,
    SegmentationError,
    SegmentationPolicy,
    Strategy,
    WorstFitPolicy,
    policy_for,
)

__all__ = [
    "AdmissionQueue",
    "BestFitPolicy",
    "Block",
    "BlockStatus",
    "BuddyPolicy",
    "FirstFitPolicy",
    "FixedPartitionPolicy",
    "FrameTable",
    "MemoryStats",
    "OutOfMemoryError",
    "PagingPolicy",
    "Partition",
    "PartitionError",
    "PartitionTooLargeError",
    "PendingRequest",
    "PlacementPolicy",
    "SegmentationError",
    "SegmentationPolicy",
    "Strategy",
    "WorstFitPolicy",
    "is_power_of_two",
    "policy_for",
]
