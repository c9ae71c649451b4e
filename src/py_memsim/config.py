"""Simulator configuration: the fixed dimensions of the address space.

Three numbers shape every run:

- ``capacity``: total units in the simulated address space.
- ``frame_size``: units per frame for the paging strategy.
- ``partition_size``: units per slot for fixed partitioning.

Front ends read them from the process environment (``MEMSIM_*``
variables) so a demo can be resized without touching code, the same
way a Unix process picks up its configuration from ``KEY=VALUE`` pairs.
"""

from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_CAPACITY = 1024
DEFAULT_FRAME_SIZE = 4
DEFAULT_PARTITION_SIZE = 256

ENV_CAPACITY = "MEMSIM_CAPACITY"
ENV_FRAME_SIZE = "MEMSIM_FRAME_SIZE"
ENV_PARTITION_SIZE = "MEMSIM_PARTITION_SIZE"


@dataclass(frozen=True)
class SimulatorConfig:
    """Immutable dimensions of one simulated address space.

    Raises:
        ValueError: If any dimension is non-positive, or the capacity
            is not a whole number of frames.

    """

    capacity: int = DEFAULT_CAPACITY
    frame_size: int = DEFAULT_FRAME_SIZE
    partition_size: int = DEFAULT_PARTITION_SIZE

    def __post_init__(self) -> None:
        """Validate the dimensions."""
        for name in ("capacity", "frame_size", "partition_size"):
            value = getattr(self, name)
            if value <= 0:
                msg = f"{name} must be positive, got {value}"
                raise ValueError(msg)
        if self.capacity % self.frame_size:
            msg = f"capacity {self.capacity} is not a multiple of frame_size {self.frame_size}"
            raise ValueError(msg)

    @property
    def total_frames(self) -> int:
        """Return the number of paging frames covering the capacity."""
        return self.capacity // self.frame_size

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "SimulatorConfig":
        """Build a config from ``MEMSIM_*`` variables, defaulting the rest.

        Args:
            environ: A mapping such as ``os.environ``.

        Raises:
            ValueError: If a variable is set but is not an integer.

        """
        return cls(
            capacity=_int_var(environ, ENV_CAPACITY, DEFAULT_CAPACITY),
            frame_size=_int_var(environ, ENV_FRAME_SIZE, DEFAULT_FRAME_SIZE),
            partition_size=_int_var(environ, ENV_PARTITION_SIZE, DEFAULT_PARTITION_SIZE),
        )


def _int_var(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        msg = f"{key} must be an integer, got {raw!r}"
        raise ValueError(msg) from None
