"""Random workload: auto-play for the simulator.

Watching a partition evolve by hand is slow.  The workload generator
plays a stream of random requests against a simulator, one step at a
time:

- With probability one half, and while more than 50 units are free,
  allocate a random size between 20 and 120 using first-fit, best-fit
  or worst-fit (chosen at random).
- Otherwise, if anything is allocated, deallocate the owner of a random
  allocated block.

The generator takes its own ``random.Random`` so a seeded run is
reproducible.
"""

import random
from dataclasses import dataclass

from py_memsim.memory.blocks import BlockStatus
from py_memsim.memory.strategies import Strategy
from py_memsim.simulator import MemorySimulator

ALLOCATE_PROBABILITY = 0.5
MIN_FREE_FOR_ALLOCATION = 50
MIN_REQUEST = 20
MAX_REQUEST = 120
WORKLOAD_STRATEGIES = (Strategy.FIRST_FIT, Strategy.BEST_FIT, Strategy.WORST_FIT)


@dataclass(frozen=True)
class WorkloadStep:
    """What one step of the workload did."""

    action: str  # "allocate", "deallocate" or "idle"
    detail: str

    def __str__(self) -> str:
        """Format as ``action: detail``."""
        return f"{self.action}: {self.detail}"


class RandomWorkload:
    """Drive a simulator with random allocations and deallocations."""

    def __init__(self, sim: MemorySimulator, *, rng: random.Random | None = None) -> None:
        """Create a workload bound to *sim*.

        Args:
            sim: The simulator to drive.
            rng: Source of randomness; a fresh unseeded one by default.

        """
        self._sim = sim
        self._rng = rng or random.Random()

    def step(self) -> WorkloadStep:
        """Perform one random action."""
        sim = self._sim
        if (
            self._rng.random() < ALLOCATE_PROBABILITY
            and sim.stats.free > MIN_FREE_FOR_ALLOCATION
        ):
            size = self._rng.randint(MIN_REQUEST, MAX_REQUEST)
            strategy = self._rng.choice(WORKLOAD_STRATEGIES)
            outcome = sim.allocate(size, strategy)
            return WorkloadStep("allocate", f"{size} with {strategy} -> {outcome}")

        allocated = [
            b for b in sim.partition.blocks if b.status is BlockStatus.ALLOCATED
        ]
        if allocated:
            victim = self._rng.choice(allocated)
            assert victim.owner is not None  # allocated blocks always carry an owner
            sim.deallocate(victim.owner)
            return WorkloadStep("deallocate", f"P{victim.owner}")
        return WorkloadStep("idle", "nothing to do")

    def run(self, steps: int) -> list[WorkloadStep]:
        """Perform *steps* random actions and return what each did."""
        return [self.step() for _ in range(steps)]
