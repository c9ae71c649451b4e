"""Admission queue: requests waiting for memory to become free.

A request that no strategy can place right away is **parked** here with
the owner id it was issued.  Whenever reclamation frees space, the
simulator asks the queue to admit its head:

- Only the **head** is tried, using first-fit placement.
- If it fits, it leaves the queue and becomes an allocated block.
- If not, the queue is left untouched until the next reclamation.

This is plain FIFO admission with head-of-line blocking: a small request
stuck behind a large one waits, even if it would fit.  Scanning the
whole queue would change the scheduling policy, so it is deliberately
not done here.
"""

from collections import deque
from dataclasses import dataclass

from py_memsim.memory.blocks import Partition


@dataclass(frozen=True)
class PendingRequest:
    """A parked allocation request."""

    owner: int
    size: int

    def to_dict(self) -> dict[str, int]:
        """Return a JSON-friendly view of the request."""
        return {"owner": self.owner, "size": self.size}


class AdmissionQueue:
    """FIFO of parked requests with head-only admission."""

    def __init__(self) -> None:
        """Create an empty queue."""
        self._pending: deque[PendingRequest] = deque()

    def park(self, *, owner: int, size: int) -> PendingRequest:
        """Append a request to the back of the queue."""
        request = PendingRequest(owner=owner, size=size)
        self._pending.append(request)
        return request

    @property
    def head(self) -> PendingRequest | None:
        """Return the oldest parked request, or None if the queue is empty."""
        return self._pending[0] if self._pending else None

    def pending(self) -> list[PendingRequest]:
        """Return the parked requests, oldest first."""
        return list(self._pending)

    def admit_head(self, partition: Partition) -> PendingRequest | None:
        """Try to place the head request with first-fit.

        Args:
            partition: The block list to place into.

        Returns:
            The admitted request, or None if the queue is empty or the
            head does not fit.

        """
        request = self.head
        if request is None:
            return None
        index = partition.first_fit(request.size)
        if index is None:
            return None
        partition.split(index, request.size, owner=request.owner)
        self._pending.popleft()
        return request

    def __len__(self) -> int:
        """Return the number of parked requests."""
        return len(self._pending)

    def __bool__(self) -> bool:
        """Return True if any request is parked."""
        return bool(self._pending)
